# -*- coding: utf-8 -*-
"""
db-inspector application entry point
FastAPI application
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from . import __version__
from .api.routes import router
from .config.settings import get_settings
from .db.connector import get_db_manager
from .db.url import split_alias
from .errors import InspectorError, sanitize_error_message
from .logging import configure_logging
from .observability.metrics import setup_metrics
from .security.sanitizer import redact

logger = structlog.get_logger(__name__)


async def register_configured_databases() -> list[str]:
    """
    Register every URL in `database_urls`

    A URL that fails validation or the connectivity check is logged and
    skipped; the others are still registered.

    Returns:
        Registered aliases
    """
    settings = get_settings()
    db_manager = get_db_manager()
    registered = []

    for entry in settings.database_url_list:
        alias, url = split_alias(entry)
        try:
            registered.append(await db_manager.add_database(url, name=alias))
        except InspectorError as e:
            logger.error(
                "database_registration_failed",
                url=redact(url),
                code=e.code,
                error=sanitize_error_message(e),
            )

    return registered


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    settings = get_settings()
    configure_logging(settings.inspector_log_level, settings.inspector_log_json)

    logger.info("db_inspector_starting", env=settings.inspector_env, version=__version__)

    aliases = await register_configured_databases()
    if settings.database_url_list and not aliases:
        logger.warning("no_databases_registered", configured=len(settings.database_url_list))
    logger.info("databases_registered", aliases=aliases)

    yield

    logger.info("db_inspector_stopping")
    await get_db_manager().close_all()
    logger.info("db_inspector_stopped")


def create_app() -> FastAPI:
    """Create the FastAPI application"""
    settings = get_settings()

    app = FastAPI(
        title="db-inspector",
        description="Read-only MySQL/PostgreSQL schema inspection and query analysis over MCP tools",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    setup_metrics(app)
    app.include_router(router)

    @app.get("/")
    async def root():
        return {
            "name": "db-inspector",
            "version": __version__,
            "tools": "/mcp/v1/tools",
        }

    return app


# Application instance
app = create_app()


__all__ = ["app", "create_app", "lifespan", "register_configured_databases"]
