"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from app.api import auth_router
from app.core.config import settings
from app.core.rate_limit import limiter
from app.db.migrations import run_migrations
from app.db.session import verify_connection


logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    try:
        logger.info("Startup: verifying database connection")
        verify_connection()
        logger.info("Startup: database connection verified")
        app.state.database_url = settings.database_url

        logger.info("Startup: running database migrations")
        try:
            run_migrations()
            logger.info("Startup: migrations completed")
        except Exception as migration_exc:
            logger.error("Startup: migration failed", exc_info=True)
            raise migration_exc
    except Exception:
        logger.error("Startup failure", exc_info=True)
        raise

    yield

    logger.info("Shutdown complete")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed input as 400 with the list of field errors."""

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"errors": jsonable_encoder(exc.errors())},
    )


async def storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Collapse database failures into a generic 500 without leaking details."""

    logger.error(
        "Storage failure while handling %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


logger.info("Creating FastAPI application instance")
app = FastAPI(title="QueenB Mentorship API", lifespan=lifespan)
logger.info("FastAPI application created")

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, storage_exception_handler)

logger.info("Configuring CORS middleware")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info("Configuring Session middleware")
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret_key,
    session_cookie=settings.session_cookie_name,
    max_age=settings.session_max_age_seconds,
    same_site=settings.session_same_site,
    https_only=settings.session_https_only,
)


@app.get("/")
async def root():
    return {"message": "QueenB server is running"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


logger.info("Registering API routers")
app.include_router(auth_router, prefix="/api/auth")
logger.info("Routers registered; application ready to accept requests")
