"""Roles, permissions and the table that maps one to the other."""

from enum import Enum
from typing import Iterable


class Role(str, Enum):
    """Roles carried in bearer tokens."""
    CUSTOMER = "customer"
    STAFF = "staff"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Permission(str, Enum):
    """Actions guarded by the HTTP surface."""
    AVAILABILITY_READ = "availability:read"
    PRICING_QUOTE = "pricing:quote"
    ALLOCATION_CREATE = "allocation:create"
    ALLOCATION_READ = "allocation:read"
    ALLOCATION_UPDATE = "allocation:update"
    ALLOCATION_CANCEL = "allocation:cancel"
    RATE_READ = "rate:read"
    RATE_MANAGE = "rate:manage"


_GUEST_FACING = frozenset({
    Permission.AVAILABILITY_READ,
    Permission.PRICING_QUOTE,
    Permission.ALLOCATION_CREATE,
    Permission.ALLOCATION_READ,
})

_FRONT_DESK = _GUEST_FACING | {
    Permission.ALLOCATION_UPDATE,
    Permission.RATE_READ,
}

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.CUSTOMER: _GUEST_FACING,
    Role.STAFF: _FRONT_DESK,
    Role.MANAGER: _FRONT_DESK | {Permission.ALLOCATION_CANCEL},
    Role.ADMIN: frozenset(Permission),
    Role.SUPER_ADMIN: frozenset(Permission),
}


def permissions_for(roles: Iterable[str]) -> frozenset[Permission]:
    """Union of the permissions granted by the given role names; unknown names grant nothing."""
    granted: set[Permission] = set()
    for name in roles:
        try:
            granted |= ROLE_PERMISSIONS[Role(name)]
        except ValueError:
            continue
    return frozenset(granted)


def has_permission(roles: Iterable[str], permission: Permission) -> bool:
    return permission in permissions_for(roles)
