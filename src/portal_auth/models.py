"""Data models for identities, profiles and portal sessions."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.portal_auth.roles import PROVIDER_RESERVED_ROLES, normalize_role

# Legacy column spellings seen across the buyers, vendors and employees tables
ROLE_FIELDS = (
    "role",
    "user_role",
    "userRole",
    "role_name",
    "roleName",
    "employee_role",
    "employeeRole",
    "type",
)
NAME_FIELDS = (
    "name",
    "full_name",
    "fullName",
    "employee_name",
    "employeeName",
    "employee_full_name",
    "display_name",
    "displayName",
)
STATUS_FIELDS = ("status", "account_status", "accountStatus")
ID_FIELDS = ("id", "user_id", "userId", "employee_id", "employeeId")
AVATAR_FIELDS = ("avatar_url", "avatarUrl", "avatar", "profile_image", "image_url")


def pick_first(*values: Any) -> Any:
    """Return the first value that is not None and not blank."""
    for value in values:
        if value is not None and str(value).strip() != "":
            return value
    return None


def _field(source: Any, name: str) -> Any:
    if source is None:
        return None
    if isinstance(source, dict):
        return source.get(name)
    return getattr(source, name, None)


class AuthEvent(str, Enum):
    """Identity provider events the session layer reacts to."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class SessionState(str, Enum):
    """Lifecycle state of a portal session."""

    BOOTING = "booting"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class Identity(BaseModel):
    """
    Account issued by the identity provider.

    Attributes:
        id: Provider user id (the ``sub`` claim)
        email: Login email, lower-cased
        role: Role claim set by the provider (usually "authenticated")
        app_metadata: Server-controlled metadata (may carry a portal role)
        user_metadata: User-editable metadata (may carry a portal role, avatar)
    """

    id: str
    email: str | None = None
    role: str | None = None
    app_metadata: dict[str, Any] = Field(default_factory=dict)
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_provider_user(cls, user: Any) -> "Identity":
        """
        Build an identity from a provider user object or dict.

        Args:
            user: Supabase ``User`` model, or a dict with the same keys

        Returns:
            Identity with the email lower-cased
        """
        email = _field(user, "email")
        return cls(
            id=str(_field(user, "id")),
            email=str(email).strip().lower() if email else None,
            role=_field(user, "role"),
            app_metadata=dict(_field(user, "app_metadata") or {}),
            user_metadata=dict(_field(user, "user_metadata") or {}),
        )

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "Identity":
        """Build an identity from verified JWT claims."""
        return cls.from_provider_user(
            {
                "id": claims.get("sub"),
                "email": claims.get("email"),
                "role": claims.get("role"),
                "app_metadata": claims.get("app_metadata"),
                "user_metadata": claims.get("user_metadata"),
            }
        )

    @property
    def role_hint(self) -> str | None:
        """
        Portal role hinted by the identity's own metadata.

        The provider's built-in claim values ("authenticated", "anon", ...)
        are not portal roles and are skipped.
        """
        for candidate in (
            self.role,
            self.app_metadata.get("role"),
            self.user_metadata.get("role"),
        ):
            normalized = normalize_role(candidate)
            if normalized and normalized not in PROVIDER_RESERVED_ROLES:
                return normalized
        return None


class ProviderSession(BaseModel):
    """Session held by the identity provider for a signed-in identity."""

    access_token: str | None = None
    refresh_token: str | None = None
    identity: Identity

    @classmethod
    def from_provider_session(cls, session: Any) -> "ProviderSession | None":
        """Convert a provider session (or None) into a ``ProviderSession``."""
        user = _field(session, "user")
        if user is None:
            return None
        return cls(
            access_token=_field(session, "access_token"),
            refresh_token=_field(session, "refresh_token"),
            identity=Identity.from_provider_user(user),
        )


class Profile(BaseModel):
    """
    Role-specific business record (buyer, vendor or employee row).

    Attributes:
        id: Row id
        email: Contact email of the row, falling back to the identity email
        name: Display name, falling back to the email local part
        role: Normalized role (canonical member or upper-cased unknown value)
        status: Account status, upper-cased (ACTIVE, SUSPENDED, ...)
        avatar_url: Avatar image, if any
        user_id: Identity reference column (None on pre-migration rows)
        data: The untouched source row
    """

    id: str | None = None
    email: str | None = None
    name: str = "User"
    role: str | None = None
    status: str = "ACTIVE"
    avatar_url: str | None = None
    user_id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_row(
        cls,
        raw: dict[str, Any] | list[dict[str, Any]],
        email: str | None = None,
        implied_role: str | None = None,
    ) -> "Profile":
        """
        Normalize a table row or API payload into a profile.

        Args:
            raw: Row dict (a single-element list is unwrapped)
            email: Identity email used when the row has none
            implied_role: Role implied by the table itself (buyers, vendors).
                When given it takes precedence over any role-like column.

        Returns:
            Normalized profile

        Example:
            >>> Profile.from_row({"id": 7, "full_name": "Asha", "role": "dataentry"})
            Profile(id='7', ..., name='Asha', role=<CanonicalRole.DATA_ENTRY: ...>, ...)
        """
        row = raw[0] if isinstance(raw, list) else raw
        row = row or {}

        if implied_role:
            role = normalize_role(implied_role)
        else:
            role = normalize_role(pick_first(*(row.get(f) for f in ROLE_FIELDS)))
        row_email = pick_first(row.get("email"), email)
        name = pick_first(*(row.get(f) for f in NAME_FIELDS))
        if not name:
            name = str(row_email).split("@")[0] if row_email else "User"
        status = pick_first(*(row.get(f) for f in STATUS_FIELDS)) or "ACTIVE"
        row_id = pick_first(*(row.get(f) for f in ID_FIELDS))
        user_id = row.get("user_id")

        return cls(
            id=str(row_id) if row_id is not None else None,
            email=str(row_email) if row_email else None,
            name=str(name),
            role=role,
            status=str(status).strip().upper(),
            avatar_url=pick_first(*(row.get(f) for f in AVATAR_FIELDS)),
            user_id=str(user_id) if user_id else None,
            data=dict(row),
        )


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of a portal session handed to route guards."""

    state: SessionState = SessionState.BOOTING
    identity: Identity | None = None
    profile: Profile | None = None
    role: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.state is SessionState.BOOTING

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    @property
    def user(self) -> Profile | None:
        return self.profile if self.is_authenticated else None
