"""Bearer token storage for the SuperAdmin console."""

SUPERADMIN_TOKEN_SCOPE = "itm_superadmin_token"


class TokenStore:
    """
    Opaque, scoped holder of one bearer token.

    The SuperAdmin console does not use the identity provider's cookie
    session; its token lives here and is attached to each console request.

    Attributes:
        scope: Storage key the token belongs to
    """

    def __init__(self, scope: str = SUPERADMIN_TOKEN_SCOPE) -> None:
        self.scope = scope
        self._token: str | None = None

    def get(self) -> str | None:
        return self._token

    def set(self, token: str | None) -> None:
        self._token = token or None

    def clear(self) -> None:
        self._token = None
