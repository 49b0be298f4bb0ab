"""groupchat application assembly.

Importing this module configures logging, builds the process-wide
TokenService from settings, creates the key-value table and exposes ``app``.
Serve it with ``uvicorn groupchat.main:app``.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import __version__
from . import models  # noqa: F401  (registers tables on Base)
from .api import auth_router, messages_router
from .core.auth import build_token_service
from .core.config import ConfigurationError, Environment, settings
from .core.logging_config import setup_logging
from .database import Base, engine, get_db
from .exceptions import ChatException
from .jose import TokenService
from .middleware.exception_handler import chat_exception_handler, unhandled_exception_handler
from .middleware.request_context import RequestContextMiddleware

setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)

SERVICE_NAME = "groupchat API"

_started_at = time.monotonic()


def _startup_blocked(error: ConfigurationError) -> SystemExit:
    logger.critical("Startup blocked: %s", error)
    return SystemExit(1)


def _load_token_service() -> TokenService:
    # A bad algorithm or an empty secret is a broken deployment.
    try:
        return build_token_service(settings)
    except ConfigurationError as e:
        raise _startup_blocked(e) from e


def _check_deployment() -> None:
    """Refuse insecure production settings; only warn in development."""
    try:
        problems = settings.validate_production_config()
    except ConfigurationError as e:
        raise _startup_blocked(e) from e
    if settings.environment is Environment.DEVELOPMENT:
        for problem in problems:
            logger.warning("Insecure setting: %s", problem)


token_service = _load_token_service()
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _check_deployment()
    logger.info(
        "%s %s ready",
        SERVICE_NAME,
        __version__,
        extra={
            "environment": settings.environment.value,
            "alg": token_service.algorithm,
            "default_secret": settings.uses_default_secret,
        },
    )
    yield


app = FastAPI(
    title=SERVICE_NAME,
    version=__version__,
    description=(
        "Sign up, log in, then post and read messages in named groups.\n\n"
        "`/send-message` and `/messages` need the token from `/login` as "
        "`Authorization: Bearer <token>`."
    ),
    lifespan=lifespan,
)
app.state.token_service = token_service

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(ChatException, chat_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(auth_router)
app.include_router(messages_router)


@app.get("/", tags=["Service"])
def root():
    return {"name": SERVICE_NAME, "version": __version__, "status": "running"}


def _store_reachable(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Health check could not reach the store", exc_info=True)
        return False
    return True


@app.get("/health", tags=["Service"])
def health(db: Session = Depends(get_db)):
    """Store reachability and uptime. Reports ``degraded`` instead of failing."""
    reachable = _store_reachable(db)
    return {
        "status": "healthy" if reachable else "degraded",
        "db": "ok" if reachable else "error",
        "uptime_seconds": round(time.monotonic() - _started_at),
        "version": __version__,
    }
