from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.routes import feedback, quizzes, submissions, users
from core.config import Settings
from core.exceptions import AppError, Internal
from core.logger import logger
from db.session import Database
from services.auth_service import TokenVerifier
from utils.middleware import AuthMiddleware, RequestContextMiddleware

# API Documentation
API_DESCRIPTION = """
## Quizroom API

REST API for authoring multiple-choice quizzes, taking them and collecting feedback.

### Authentication

Every endpoint except `/api/health` requires a bearer token issued for the
caller's identity:

- Header: `Authorization: Bearer <token>`

After signing in, clients call `POST /api/users` once to create or refresh
their local profile. Admin-only endpoints answer `403` for other users.

### Errors

Errors are returned as `{"error": "<message>"}` with the HTTP status.
"""

TAGS_METADATA = [
    {"name": "quizzes", "description": "Quiz catalog: browse quizzes, admins create, update and delete them."},
    {"name": "submissions", "description": "Submit answers for grading and list past attempts."},
    {"name": "feedback", "description": "User feedback; reviewed by admins."},
    {"name": "users", "description": "Profile sync with the identity provider."},
    {"name": "info", "description": "Public endpoints."},
]


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("Request failed", error=exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()]
        logger.info("Request rejected", reason="validation", errors=len(details))
        return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details})

    @app.exception_handler(SQLAlchemyError)
    async def db_error_handler(request: Request, exc: SQLAlchemyError):
        # Never leak driver messages to the caller
        logger.error("Database error", error=str(exc), exc_info=exc)
        return JSONResponse(status_code=Internal.status_code, content={"error": Internal.default_message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error", error=str(exc), exc_info=exc)
        return JSONResponse(status_code=Internal.status_code, content={"error": Internal.default_message})


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the application around an explicitly owned storage handle.

    When ``database`` is not given one is built from settings and disposed
    on shutdown; a caller-provided one stays owned by the caller.
    """
    if settings is None:
        from core.config import settings as default_settings
        settings = default_settings

    owns_database = database is None
    if database is None:
        database = Database.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.AUTO_CREATE_TABLES:
            await database.create_all()
        logger.info("API started", env=settings.ENV)
        yield
        if owns_database:
            await database.dispose()
        logger.info("API stopped")

    app = FastAPI(
        title="Quizroom API",
        description=API_DESCRIPTION,
        version="1.0.0",
        openapi_tags=TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = database
    app.state.verifier = TokenVerifier(settings.AUTH_SECRET, settings.TOKEN_TTL_SECONDS)

    # Added innermost first: CORS wraps request logging, which wraps auth
    app.add_middleware(AuthMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_exception_handlers(app)

    app.include_router(users.router)
    app.include_router(quizzes.router)
    app.include_router(submissions.router)
    app.include_router(feedback.router)

    @app.get("/api/health", tags=["info"], summary="Liveness probe")
    async def health():
        return {"status": "ok"}

    return app
