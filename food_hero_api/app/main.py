"""
Main entrypoint for the Food Hero API.

This module assembles the FastAPI application, sets up logging, wires
the services and includes versioned routers.  ``create_app`` builds and
configures the app; ``app`` is the instance created from environment
settings, so the service can be run with::

    uvicorn food_hero_api.app.main:app --reload
"""

import logging
from typing import Optional

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.config import Settings, settings as default_settings
from .core.errors import register_exception_handlers
from .core.logging_config import setup_logging
from .dependencies import build_services
from .services.image_store import ImageStore


logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, image_store: Optional[ImageStore] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use; defaults to the environment-derived
        module settings.
    image_store : Optional[ImageStore]
        Image backend overriding ``settings.image_backend``.

    Returns
    -------
    FastAPI
        A configured application.  The database schema is migrated when
        the application starts.
    """
    settings = settings or default_settings
    # Initialise logging before anything else so that the wiring below
    # can log.
    setup_logging(settings.log_level, settings.log_file or None, settings.server_log_level or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.state.services = build_services(settings, image_store)
    register_exception_handlers(app)

    app.include_router(v1_router, prefix="/api/v1")

    @app.get("/health", tags=["health"])
    def health() -> dict:
        return {"status": "ok"}

    @app.on_event("startup")
    def startup_event() -> None:
        app.state.services.db.init_db()
        logger.info("%s %s started", settings.project_name, settings.api_version)

    return app


app = create_app()
