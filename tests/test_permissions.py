from __future__ import annotations

from types import SimpleNamespace

import pytest

from storefront.core.errors import AuthorizationError, ValidationError
from storefront.domain.permissions import (
    PERMISSION_ADMINS,
    Permission,
    authorize,
    authorize_owner_or,
    parse_permissions,
)


def _user(*perms, user_id=1):
    return SimpleNamespace(id=user_id, permissions=list(perms))


def test_authorize_passes_on_any_intersection():
    authorize(_user("USER", "PERMISSIONUPDATE"), PERMISSION_ADMINS)
    authorize(_user("ADMIN"), PERMISSION_ADMINS)


def test_authorize_rejects_without_intersection():
    with pytest.raises(AuthorizationError):
        authorize(_user("USER", "ITEMDELETE"), PERMISSION_ADMINS)


def test_authorize_ignores_unknown_stored_names():
    # "PERMISSIONSUPDATE" is not a capability and must not grant anything
    with pytest.raises(AuthorizationError):
        authorize(_user("PERMISSIONSUPDATE"), PERMISSION_ADMINS)


def test_owner_passes_without_capability():
    authorize_owner_or(_user("USER", user_id=7), 7, {Permission.ITEMDELETE})
    with pytest.raises(AuthorizationError):
        authorize_owner_or(_user("USER", user_id=8), 7, {Permission.ITEMDELETE})


def test_parse_permissions_normalizes_and_rejects():
    assert parse_permissions(["admin", "USER", "USER"]) == {Permission.ADMIN, Permission.USER}
    with pytest.raises(ValidationError):
        parse_permissions(["ADMIN", "SUPERUSER"])
    with pytest.raises(ValidationError):
        parse_permissions([])
