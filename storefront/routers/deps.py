"""FastAPI dependencies shared by the routers."""
from __future__ import annotations

from fastapi import Request

from storefront.repositories.sql_repository import SQLRepository
from storefront.services.admin_service import AdminService
from storefront.services.auth_service import AuthService
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService
from storefront.services.context import CallerContext, build_caller_context
from storefront.services.item_service import ItemService
from storefront.services.password_reset_service import PasswordResetService
from storefront.services.session_service import SESSION_COOKIE_NAME


def get_caller(request: Request) -> CallerContext:
    """Build the caller context fresh for each request from the session cookie."""
    return build_caller_context(request.cookies.get(SESSION_COOKIE_NAME), SQLRepository())


def get_auth_service() -> AuthService:
    return AuthService()


def get_password_reset_service() -> PasswordResetService:
    return PasswordResetService()


def get_item_service() -> ItemService:
    return ItemService()


def get_cart_service() -> CartService:
    return CartService()


def get_checkout_service() -> CheckoutService:
    return CheckoutService()


def get_admin_service() -> AdminService:
    return AdminService()
