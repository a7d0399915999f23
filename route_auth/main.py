from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from route_auth.config import load_security_config
from route_auth.logging_config import configure_app_logging
from route_auth.openapi import configure_openapi
from route_auth.routers import accounts, health, reports
from route_auth.routing import apply_security_config
from route_auth.settings import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        config_path = settings.resolved_security_config_path()
        app.state.security_config = load_security_config(config_path)
        apply_security_config(app, app.state.security_config)
        # Routes changed; drop any schema generated before startup.
        app.openapi_schema = None
        logger.info("Security config applied: %s", config_path)

        yield
        # Shutdown (nothing to clean up in this demo)

    app = FastAPI(title=settings.title, lifespan=lifespan)

    app.include_router(health.router)
    app.include_router(accounts.router)
    app.include_router(reports.router)

    configure_openapi(app)
    return app


app = create_app()
