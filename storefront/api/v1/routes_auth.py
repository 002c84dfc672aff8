# storefront/api/v1/routes_auth.py
from fastapi import APIRouter, Depends, Request

from storefront.auth.service import AuthService, AuthUser
from storefront.core.errors import AuthenticationError
from storefront.core.logger import AppLogger
from storefront.core.pipeline import (
    READ,
    WRITE,
    RequestGuard,
    get_auth_service,
    get_bearer_token,
    get_logger,
    parse_json_body,
    success_response,
)
from storefront.domain.validation.validators import validate_admin_login


router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_payload(auth: AuthService, user: AuthUser) -> dict:
    return {"id": user.id, "email": user.email, "is_admin": auth.is_admin(user)}


@router.post("/login", dependencies=[Depends(RequestGuard(WRITE, ["POST"], access="public"))])
async def login_endpoint(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
    logger: AppLogger = Depends(get_logger),
):
    credentials = await parse_json_body(request, validate_admin_login)

    try:
        session = await auth.sign_in(credentials.email, credentials.password)
    except AuthenticationError as exc:
        logger.auth_attempt(credentials.email, False, request, exc.message)
        raise AuthenticationError("Invalid email or password") from exc

    logger.auth_attempt(credentials.email, True, request)
    return success_response({
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "token_type": session.token_type,
        "expires_in": session.expires_in,
        "user": _user_payload(auth, session.user),
    }, "Signed in successfully")


@router.post("/logout")
async def logout_endpoint(
    request: Request,
    user: AuthUser = Depends(RequestGuard(WRITE, ["POST"], access="user")),
    auth: AuthService = Depends(get_auth_service),
):
    await auth.sign_out(get_bearer_token(request))
    return success_response(None, "Signed out successfully")


@router.get("/session")
async def session_endpoint(
    user: AuthUser = Depends(RequestGuard(READ, ["GET"], access="user")),
    auth: AuthService = Depends(get_auth_service),
):
    return success_response({"user": _user_payload(auth, user)})
