import logging

from fastapi import APIRouter, Depends, Response

from app.api.deps import get_guard, require_admin, session_token
from app.api.schemas.appointment import MessageResponse
from app.api.schemas.auth import AdminPublic, LoginRequest
from app.core.exceptions import AuthError, ValidationError
from app.services.auth_service import AdminSessionGuard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["auth"])


@router.post("/login", response_model=MessageResponse)
async def login(
    body: LoginRequest,
    response: Response,
    guard: AdminSessionGuard = Depends(get_guard),
) -> MessageResponse:
    if not body.email or not body.password:
        raise ValidationError("Email and password are required")
    if not guard.validate_credentials(body.email, body.password):
        logger.warning("Failed admin login attempt for %s", body.email)
        raise AuthError("Invalid email or password")
    token = await guard.create_session(body.email)
    guard.set_session_cookie(response, token)
    return MessageResponse(message="Logged in successfully")


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    guard: AdminSessionGuard = Depends(get_guard),
    token: str | None = Depends(session_token),
    email: str = Depends(require_admin),
) -> MessageResponse:
    await guard.destroy_session(token)
    guard.clear_session_cookie(response)
    logger.info("Admin %s logged out", email)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=AdminPublic)
async def me(email: str = Depends(require_admin)) -> AdminPublic:
    return AdminPublic(email=email)
