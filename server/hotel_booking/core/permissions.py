"""Roles, permissions and the per-request principal."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable
from uuid import UUID

from .exceptions import AuthorizationError


class Role(str, Enum):
    """User role enumeration."""
    ADMIN = "admin"
    MODERATOR = "moderator"
    WORKER = "worker"
    GUEST = "guest"


class Permission(str, Enum):
    """Capabilities checked by the service layer."""
    BOOKING_CREATE = "booking:create"
    BOOKING_CANCEL_ANY = "booking:cancel_any"
    BOOKING_VIEW_ANY = "booking:view_any"
    ROOM_VIEW = "room:view"
    ROOM_CLEAN = "room:clean"


ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.ADMIN: frozenset(Permission),
    Role.MODERATOR: frozenset({
        Permission.BOOKING_CREATE,
        Permission.BOOKING_VIEW_ANY,
        Permission.ROOM_VIEW,
        Permission.ROOM_CLEAN,
    }),
    Role.WORKER: frozenset({
        Permission.BOOKING_CREATE,
        Permission.ROOM_VIEW,
        Permission.ROOM_CLEAN,
    }),
    Role.GUEST: frozenset({
        Permission.BOOKING_CREATE,
        Permission.ROOM_VIEW,
    }),
}


def parse_roles(roles: Iterable[Role | str]) -> frozenset[Role]:
    """Parse role names, ignoring ones this service does not know."""
    known: set[Role] = set()
    for raw in roles:
        try:
            known.add(Role(raw))
        except ValueError:
            continue
    return frozenset(known)


def resolve_permissions(roles: Iterable[Role | str]) -> frozenset[Permission]:
    """
    Resolve role names into the union of their permissions.

    Unknown role names are ignored so a token minted for another service
    does not grant anything here.
    """
    granted: set[Permission] = set()
    for role in parse_roles(roles):
        granted |= ROLE_PERMISSIONS[role]
    return frozenset(granted)


@dataclass(frozen=True)
class Principal:
    """The authenticated actor of a request and what it may do."""

    user_id: UUID
    roles: frozenset[Role] = frozenset()
    permissions: frozenset[Permission] = field(default=frozenset())
    username: str | None = None

    @classmethod
    def from_roles(cls, user_id: UUID, roles: Iterable[Role | str], username: str | None = None) -> "Principal":
        """Build a principal, resolving its permission set once."""
        known = parse_roles(roles)
        return cls(
            user_id=user_id,
            roles=known,
            permissions=resolve_permissions(known),
            username=username,
        )

    def has(self, permission: Permission) -> bool:
        return permission in self.permissions

    def require(self, permission: Permission, detail: str | None = None) -> None:
        """Raise AuthorizationError unless the principal holds ``permission``."""
        if not self.has(permission):
            raise AuthorizationError(
                detail=detail or f"Permission '{permission.value}' is required",
                required_permissions=[permission.value],
            )

    def require_owner_or(self, owner_id: UUID, permission: Permission, detail: str | None = None) -> None:
        """Raise AuthorizationError unless the principal owns the resource or holds ``permission``."""
        if self.user_id == owner_id or self.has(permission):
            return
        raise AuthorizationError(
            detail=detail or "Not authorized to access this resource",
            required_permissions=[permission.value],
        )
