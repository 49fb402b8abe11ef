from fastapi import Depends, Request

from app.core.config import Settings
from app.core.exceptions import AuthError
from app.services.appointment_service import AppointmentWorkflow
from app.services.appointment_store import AppointmentStore
from app.services.auth_service import AdminSessionGuard
from app.services.faq_service import FaqResponder


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> AppointmentStore:
    return request.app.state.store


def get_workflow(request: Request) -> AppointmentWorkflow:
    return request.app.state.workflow


def get_guard(request: Request) -> AdminSessionGuard:
    return request.app.state.guard


def get_faq_responder(request: Request) -> FaqResponder:
    return request.app.state.faq


def session_token(request: Request, guard: AdminSessionGuard = Depends(get_guard)) -> str | None:
    """Read the admin session cookie."""
    return request.cookies.get(guard.cookie_name)


async def require_admin(
    guard: AdminSessionGuard = Depends(get_guard),
    token: str | None = Depends(session_token),
) -> str:
    """Returns the signed-in admin email or raises AuthError (401)."""
    if not token:
        raise AuthError("Unauthorized")
    email = await guard.get_session_email(token)
    if not email:
        raise AuthError("Invalid or expired session")
    return email
