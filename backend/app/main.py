import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException

from app.core.base import Base
from app.core.config import Settings, require_secret_key, settings as default_settings
from app.core.database import build_engine, build_session_factory
from app.core.errors import AppError
# Import models so they register with SQLAlchemy metadata.
from app.models.job_entry import JobEntry  # noqa: F401
from app.models.user import User  # noqa: F401
from app.routes.auth import router as auth_router
from app.routes.job_entries import router as jobs_router
from app.routes.stories import router as stories_router

logger = logging.getLogger(__name__)

_ERROR_CODE_BY_STATUS: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
}


def _error_code(status_code: int) -> str:
    return _ERROR_CODE_BY_STATUS.get(int(status_code), "HTTP_ERROR")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def app_error_handler(request: Request, exc: AppError):  # noqa: ARG001
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


def http_exception_handler(request: Request, exc: HTTPException):  # noqa: ARG001
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": _error_code(exc.status_code), "message": message},
    )


def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Invalid request payload",
            "details": {"errors": exc.errors()},
        },
    )


def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": "An internal error occurred."},
    )


def create_app(app_settings: Settings | None = None, *, create_tables: bool = True) -> FastAPI:
    """
    Build the application around one Settings object.

    Handlers receive it through app.dependencies.settings.get_settings. The
    engine and session factory behind get_db are built from its database_url.
    """
    current = app_settings or default_settings
    require_secret_key(current)
    configure_logging(current.LOG_LEVEL)

    engine = build_engine(current.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if create_tables:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables verified")
        yield
        engine.dispose()

    app = FastAPI(title="Job Board", lifespan=lifespan)
    app.state.settings = current
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    logger.info(
        "Startup config: ENV=%s auth_header=%s invalid_token_status=%s "
        "federation_error_status=%s update_requires_owner=%s google_configured=%s",
        current.ENV,
        current.AUTH_HEADER_NAME,
        current.INVALID_TOKEN_STATUS,
        current.FEDERATION_ERROR_STATUS,
        current.JOB_UPDATE_REQUIRES_OWNER,
        bool(current.GOOGLE_CLIENT_ID),
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=current.CORS_ORIGINS,
        allow_credentials="*" not in current.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(jobs_router)
    app.include_router(stories_router)

    @app.get("/", response_class=PlainTextResponse)
    def index():
        return "Hello World!"

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app
