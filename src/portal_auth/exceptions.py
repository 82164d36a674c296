"""Custom exceptions for session resolution and portal authentication.

Every error carries a generic ``user_message`` that is safe to show on a login
screen. The exception text itself holds the specific cause and is meant for
logs only.
"""


class PortalAuthError(Exception):
    """Base exception for all portal authentication errors."""

    user_message = "Unauthorized"


class ProfileNotFoundError(PortalAuthError):
    """Raised when profile resolution exhausted every source without a match."""

    pass


class UnauthorizedRoleError(PortalAuthError):
    """Raised when a profile was found but its role is not eligible for the portal."""

    pass


class AuthProviderError(PortalAuthError):
    """Raised when the identity provider rejects the supplied credentials."""

    user_message = "Invalid credentials"


class NetworkError(PortalAuthError):
    """Raised on transient transport failures (timeouts, 5xx, connection errors)."""

    pass
