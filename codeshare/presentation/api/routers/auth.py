import math
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from ....application.services.auth_service import TOKEN_UNKNOWN, AuthService
from ....core.dependencies import get_auth_service, get_clock
from ....domain.clock import Clock
from ....domain.models import Session, User
from ...api.dependencies import get_session_token, require_session
from ...api.responses import envelope, error_response, respond
from ...api.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    PasswordResetConfirmRequest,
    PasswordResetRequest,
    ProfileUpdateRequest,
    RegisterRequest,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])

RESET_REQUESTED_MESSAGE = "If an account exists for this email, a reset link has been sent."


def _session_view(session: Session) -> Dict[str, Any]:
    return {"user": session.user, "expiresAt": session.expires_at}


@router.post("/register")
def register(
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    result = auth_service.register(payload.name, payload.email, payload.password)
    return respond(result, User.public_view, success_status=status.HTTP_201_CREATED)


@router.post("/login")
def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    clock: Clock = Depends(get_clock),
) -> JSONResponse:
    decision = auth_service.check_rate_limit(payload.email)
    if not decision.allowed and decision.retry_after is not None:
        wait = max(1, math.ceil((decision.retry_after - clock()).total_seconds()))
        return error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "Too many login attempts. Please try again later.",
            headers={"Retry-After": str(wait)},
        )
    return respond(auth_service.login(payload.email, payload.password), Session.to_record)


@router.post("/logout")
def logout(
    token: Optional[str] = Depends(get_session_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    auth_service.logout(token)
    return envelope()


@router.get("/session")
def current_session(session: Session = Depends(require_session)) -> Dict[str, Any]:
    return envelope(_session_view(session))


@router.post("/refresh")
def refresh_session(
    token: Optional[str] = Depends(get_session_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    session = auth_service.get_session(token) if auth_service.refresh_session(token) else None
    if session is None:
        return error_response(status.HTTP_401_UNAUTHORIZED, "Invalid or expired session")
    return JSONResponse(content=envelope(_session_view(session)))


@router.patch("/profile")
def update_profile(
    payload: ProfileUpdateRequest,
    session: Session = Depends(require_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    return respond(auth_service.update_profile(session.user_id, payload.name), User.public_view)


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    session: Session = Depends(require_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    result = auth_service.change_password(session.user_id, payload.current_password, payload.new_password)
    return respond(result)


@router.post("/password-reset/request")
def request_password_reset(
    payload: PasswordResetRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    # The token only travels by email.
    result = auth_service.request_password_reset(payload.email)
    if not result.success:
        return respond(result)
    return JSONResponse(content=envelope({"message": RESET_REQUESTED_MESSAGE}))


@router.get("/password-reset/validate")
def validate_reset_token(
    token: Optional[str] = Query(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    check = auth_service.validate_reset_token(token)
    if not check.valid:
        code = status.HTTP_404_NOT_FOUND if check.error == TOKEN_UNKNOWN else status.HTTP_400_BAD_REQUEST
        return error_response(code, check.error or TOKEN_UNKNOWN)
    return JSONResponse(content=envelope({"email": check.email}))


@router.post("/password-reset/confirm")
def confirm_password_reset(
    payload: PasswordResetConfirmRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    return respond(auth_service.reset_password_with_token(payload.token, payload.new_password))
