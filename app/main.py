import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.api.routes import admin, appointments, auth, chat, slots
from app.core.config import Settings, _ENV_FILE, get_settings
from app.core.db import create_engine_from_settings, create_session_maker, init_db
from app.core.exceptions import AppError, RateLimitError
from app.core.rate_limit import RateLimiter
from app.services.appointment_service import AppointmentWorkflow
from app.services.appointment_store import AppointmentStore
from app.services.auth_service import AdminSessionGuard
from app.services.email_service import MailTransport, NotificationDispatcher
from app.services.faq_service import FaqResponder

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    if not settings.is_production:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(
            level=logging.INFO,
            format='{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}',
        )
    # SQL echo is controlled by the engine; keep the aiosqlite driver quiet
    logging.getLogger("aiosqlite").setLevel(logging.INFO)


def _cors_headers(settings: Settings, origin: str | None) -> dict[str, str]:
    """Add CORS headers to error responses so the browser doesn't block them."""
    headers = {
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }
    origins = settings.cors_origins_list
    if origin and origin in origins:
        headers["Access-Control-Allow-Origin"] = origin
    elif origins:
        headers["Access-Control-Allow-Origin"] = origins[0]
    return headers


def _field_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
    return errors


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        headers = _cors_headers(settings, request.headers.get("origin"))
        if isinstance(exc, RateLimitError) and exc.extra.get("retry_after"):
            headers["Retry-After"] = str(exc.extra["retry_after"])
        content: dict = {"success": False, "detail": exc.detail}
        errors = getattr(exc, "errors", None)
        if errors:
            content["errors"] = errors
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed JSON or wrongly typed fields are a 400, like any other bad input."""
        return JSONResponse(
            status_code=400,
            content={"success": False, "detail": "Invalid request body", "errors": _field_errors(exc)},
            headers=_cors_headers(settings, request.headers.get("origin")),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "detail": exc.detail},
            headers={**_cors_headers(settings, request.headers.get("origin")), **(exc.headers or {})},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Log the real error; the client only ever sees a generic message."""
        logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "detail": "Something went wrong"},
            headers=_cors_headers(settings, request.headers.get("origin")),
        )


def create_app(settings: Settings | None = None, mail_transport: MailTransport | None = None) -> FastAPI:
    """Build the application. Services are constructed in the lifespan and kept on ``app.state``."""
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
        engine = create_engine_from_settings(settings)
        if settings.auto_create_tables:
            await init_db(engine)
        session_maker = create_session_maker(engine)

        notifier = NotificationDispatcher(settings, transport=mail_transport)
        if notifier.transport is None:
            logger.warning("Email: NOT configured. Set SMTP_USER and SMTP_PASSWORD to enable notifications")
        else:
            logger.info("Email: configured (host=%s port=%s)", settings.smtp_host, settings.smtp_port)

        store = AppointmentStore(session_maker)
        app.state.settings = settings
        app.state.store = store
        app.state.notifier = notifier
        app.state.workflow = AppointmentWorkflow(store, notifier)
        app.state.guard = AdminSessionGuard(settings, session_maker)
        app.state.faq = FaqResponder()
        app.state.rate_limiter = RateLimiter(
            limit=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title="SmileCraft Dental API",
        description="Backend for SmileCraft Dental: appointment requests, admin back-office, FAQ chat",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(slots.router)
    app.include_router(appointments.router)
    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(chat.router)
    _register_exception_handlers(app, settings)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app
