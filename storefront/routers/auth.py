from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from storefront.core.rate_limiter import rate_limit_ip
from storefront.routers.deps import get_auth_service, get_caller, get_password_reset_service
from storefront.schemas import (
    MessageOut,
    RequestResetPayload,
    ResetPasswordPayload,
    SigninPayload,
    SignupPayload,
    UserOut,
)
from storefront.services.auth_service import AuthService
from storefront.services.context import CallerContext
from storefront.services.password_reset_service import PasswordResetService
from storefront.services.session_service import clear_session_cookie, set_session_cookie

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserOut)
def signup(
    payload: SignupPayload,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
):
    rate_limit_ip(request, "auth:signup", limit=5, window_seconds=300)
    result = service.signup(payload.email, payload.password, payload.name)
    set_session_cookie(response, result.session_token)
    return result.user


@router.post("/signin", response_model=UserOut)
def signin(
    payload: SigninPayload,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
):
    rate_limit_ip(request, "auth:signin", limit=10, window_seconds=60)
    result = service.signin(payload.email, payload.password)
    set_session_cookie(response, result.session_token)
    return result.user


@router.post("/signout", response_model=MessageOut)
def signout(response: Response, service: AuthService = Depends(get_auth_service)):
    clear_session_cookie(response)
    return MessageOut(message=service.signout())


@router.get("/me", response_model=Optional[UserOut])
def me(caller: CallerContext = Depends(get_caller), service: AuthService = Depends(get_auth_service)):
    return service.current_user(caller)


@router.post("/request-reset", response_model=MessageOut)
def request_reset(
    payload: RequestResetPayload,
    request: Request,
    service: PasswordResetService = Depends(get_password_reset_service),
):
    rate_limit_ip(request, "auth:request-reset", limit=5, window_seconds=300)
    return MessageOut(message=service.request_reset(payload.email))


@router.post("/reset", response_model=UserOut)
def reset_password(
    payload: ResetPasswordPayload,
    response: Response,
    service: PasswordResetService = Depends(get_password_reset_service),
):
    result = service.reset_password(payload.reset_token, payload.password, payload.confirm_password)
    set_session_cookie(response, result.session_token)
    return result.user
