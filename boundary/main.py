"""Boundary API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Collaborators (account store, token verifier) are created or injected
      per application instance — no module-level mutable state
    - Global error handlers keep every response in the envelope shape
    - CORS configured from settings (not hardcoded)
    - Logging configured on startup via lifespan context manager
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from boundary.api.auth_guard import AuthGuard
from boundary.api.error_handlers import register_error_handlers
from boundary.api.routes import accounts, health
from boundary.config import Settings, get_settings
from boundary.core.repository_protocols import AccountRepository, TokenVerifier
from boundary.infrastructure.account_store import InMemoryAccountStore
from boundary.infrastructure.observability import setup_logging
from boundary.services.accounts import AccountService
from boundary.services.pipeline import RequestPipeline

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    account_store: AccountRepository | None = None,
    token_verifier: TokenVerifier | None = None,
) -> FastAPI:
    """Build a fully wired application."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        logger.info(f"{settings.app_name} started")
        yield
        logger.info(f"{settings.app_name} shutting down")

    app = FastAPI(
        title=settings.app_name, version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    pipeline = RequestPipeline(
        service_timeout_seconds=settings.service_timeout_seconds,
        disconnect_poll_seconds=settings.disconnect_poll_seconds,
    )
    guard = AuthGuard(
        cookie_name=settings.auth_cookie_name,
        login_url=settings.login_url,
        verifier=token_verifier,
    )
    account_service = AccountService(account_store or InMemoryAccountStore())

    app.include_router(health.router)
    app.include_router(accounts.build_router(account_service, pipeline, guard))

    register_error_handlers(app)
    return app


app = create_app()
