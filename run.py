"""Entry point for the Food Hero API.

Starts the FastAPI application under uvicorn.  Configuration such as
``DATABASE_URL``, ``SECRET_KEY`` and the image backend credentials is
read from environment variables (see ``food_hero_api.app.core.config``).

Usage:
    python run.py
"""
import logging

from uvicorn import Config, Server

from food_hero_api.app.core.config import settings
from food_hero_api.app.main import app


def main() -> None:
    """Serve the API on ``HOST``:``PORT`` (defaults ``0.0.0.0:8000``)."""
    # create_app already routed the uvicorn loggers through the service handlers.
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_config=None,
        log_level=(settings.server_log_level or settings.log_level).lower(),
    )
    server = Server(config)
    server.run()


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        logging.getLogger(__name__).info("Shutting down")
