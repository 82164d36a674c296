"""Multi-portal session resolution and authentication for the marketplace."""
