"""Capability tokens and the guard that checks them."""
from __future__ import annotations

from enum import Enum
from typing import Any, Iterable

from storefront.core.errors import AuthorizationError, ValidationError


class Permission(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"
    ITEMCREATE = "ITEMCREATE"
    ITEMUPDATE = "ITEMUPDATE"
    ITEMDELETE = "ITEMDELETE"
    PERMISSIONUPDATE = "PERMISSIONUPDATE"


DEFAULT_PERMISSIONS = frozenset({Permission.USER})
PERMISSION_ADMINS = frozenset({Permission.ADMIN, Permission.PERMISSIONUPDATE})
ITEM_UPDATERS = frozenset({Permission.ADMIN, Permission.ITEMUPDATE})
ITEM_DELETERS = frozenset({Permission.ADMIN, Permission.ITEMDELETE})


def parse_permissions(values: Iterable[Any]) -> set[Permission]:
    """Turn raw names into Permission members, rejecting unknown or empty input."""
    parsed: set[Permission] = set()
    for value in values or ():
        try:
            parsed.add(value if isinstance(value, Permission) else Permission(str(value).strip().upper()))
        except ValueError:
            raise ValidationError(f"Unknown permission: {value}")
    if not parsed:
        raise ValidationError("At least one permission is required")
    return parsed


def permissions_of(user) -> set[Permission]:
    """Stored permission names of a user; unknown names are ignored."""
    held: set[Permission] = set()
    for value in getattr(user, "permissions", None) or ():
        try:
            held.add(Permission(value))
        except ValueError:
            continue
    return held


def has_any(user, required_any: Iterable[Permission]) -> bool:
    return bool(permissions_of(user) & set(required_any))


def authorize(user, required_any: Iterable[Permission]) -> None:
    """Raise AuthorizationError unless the user holds at least one required permission."""
    required = set(required_any)
    if not has_any(user, required):
        names = ", ".join(sorted(p.value for p in required))
        raise AuthorizationError(f"You do not have sufficient permissions: {names}")


def authorize_owner_or(user, owner_id: int, required_any: Iterable[Permission]) -> None:
    """Owners pass; everyone else needs one of the listed permissions."""
    if user is not None and user.id == owner_id:
        return
    authorize(user, required_any)


def serialize_permissions(permissions: Iterable[Permission]) -> list[str]:
    return sorted(p.value for p in permissions)
