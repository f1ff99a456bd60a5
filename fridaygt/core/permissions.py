# fridaygt/core/permissions.py
"""
Central authorization policy.

Every route asks the same question through `authorize()`:

    can <principal> perform <action> on <resource>?

The answer is a Decision (allowed, or denied with a status + reason).
`enforce()` turns a denial into the matching HTTPException so handlers
never re-implement ownership or role checks.
"""
import uuid
from dataclasses import dataclass
from typing import Literal

from fastapi import HTTPException, status

from fridaygt.core.config import get_settings

Action = Literal["view", "create", "edit", "delete", "transfer", "administer"]

ROLE_PENDING = "PENDING"
ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"

ACTIVE_ROLES = frozenset({ROLE_USER, ROLE_ADMIN})

_WRITE_ACTIONS = frozenset({"create", "edit", "delete"})
_OWNER_ACTIONS = frozenset({"edit", "delete"})
_ADMIN_ACTIONS = frozenset({"transfer", "administer"})
_KNOWN_ACTIONS = _WRITE_ACTIONS | _ADMIN_ACTIONS | {"view"}


@dataclass(frozen=True)
class Principal:
    """
    The caller as seen by the authorization layer.

    `user_id` is None when the signed-in identity has no application
    User row yet; such a caller always carries the PENDING role.
    """

    email: str
    role: str = ROLE_PENDING
    user_id: uuid.UUID | None = None
    gamertag: str | None = None
    name: str | None = None
    identity_id: uuid.UUID | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN and self.user_id is not None

    @property
    def is_active(self) -> bool:
        return self.role in ACTIVE_ROLES and self.user_id is not None


@dataclass(frozen=True)
class ResourceRef:
    """Ownership and visibility of the resource being acted on."""

    owner_id: uuid.UUID | None
    is_public: bool = False


@dataclass(frozen=True)
class Decision:
    allowed: bool
    status_code: int | None = None
    reason: str | None = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, status_code: int, reason: str) -> "Decision":
        return cls(False, status_code, reason)


def _is_owner(principal: Principal, resource: ResourceRef) -> bool:
    return principal.user_id is not None and resource.owner_id == principal.user_id


def authorize(
    principal: Principal | None,
    action: Action,
    resource: ResourceRef | None = None,
    require_gamertag: bool = False,
) -> Decision:
    """
    Pure policy function; no I/O.

    Rules:
      - anonymous callers may only view public resources (or listings)
      - view: public, owner, or admin
      - create/edit/delete: active role (USER/ADMIN); edit/delete also
        need owner or admin
      - transfer/administer: admin only
      - require_gamertag: writes are refused until a gamertag is set
    """
    if action not in _KNOWN_ACTIONS:
        raise ValueError(f"Unknown action: {action}")

    if principal is None:
        if action == "view" and (resource is None or resource.is_public):
            return Decision.allow()
        return Decision.deny(status.HTTP_401_UNAUTHORIZED, "Unauthorized")

    if action == "view":
        if resource is None or resource.is_public:
            return Decision.allow()
        if _is_owner(principal, resource) or principal.is_admin:
            return Decision.allow()
        return Decision.deny(status.HTTP_403_FORBIDDEN, "Forbidden")

    if action in _ADMIN_ACTIONS:
        if principal.is_admin:
            return Decision.allow()
        return Decision.deny(status.HTTP_403_FORBIDDEN, "Admin access required")

    # create / edit / delete
    if not principal.is_active:
        return Decision.deny(
            status.HTTP_403_FORBIDDEN,
            "Your account is pending approval",
        )

    if require_gamertag and not principal.gamertag:
        return Decision.deny(
            status.HTTP_403_FORBIDDEN,
            "Please set a gamertag in your profile first",
        )

    if action in _OWNER_ACTIONS:
        if resource is None:
            raise ValueError(f"Action '{action}' needs a resource")
        if not (_is_owner(principal, resource) or principal.is_admin):
            return Decision.deny(status.HTTP_403_FORBIDDEN, "Forbidden")

    return Decision.allow()


def enforce(
    principal: Principal | None,
    action: Action,
    resource: ResourceRef | None = None,
) -> None:
    """
    Apply `authorize()` with the configured gamertag rule.

    Raises:
        HTTPException(401/403) when the decision is a denial.
    """
    decision = authorize(
        principal,
        action,
        resource,
        require_gamertag=get_settings().REQUIRE_GAMERTAG_FOR_WRITES,
    )
    if not decision.allowed:
        raise HTTPException(
            status_code=decision.status_code,
            detail=decision.reason,
        )
