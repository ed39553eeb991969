"""
Logging for the Food Hero service.

Application modules log under the ``food_hero_api`` namespace and the
server logs under ``uvicorn``.  ``setup_logging`` gives each namespace
its own level and sends both through the same handlers: a console
stream and, when ``LOG_FILE`` is set, a UTF-8 log file.  Server and
application lines therefore share one format and one file.

Every call replaces the handlers installed by the previous call, so
each ``create_app`` gets the destination its settings ask for.
"""

import logging
from pathlib import Path
from typing import List, Optional


APP_LOGGER = "food_hero_api"
SERVER_LOGGER = "uvicorn"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _ServiceHandlerMixin:
    """Marks handlers owned by ``setup_logging``."""


class ServiceStreamHandler(_ServiceHandlerMixin, logging.StreamHandler):
    pass


class ServiceFileHandler(_ServiceHandlerMixin, logging.FileHandler):
    pass


def level_for(name: Optional[str], default: int = logging.INFO) -> int:
    """``"debug"`` -> ``logging.DEBUG``; unknown or empty names give ``default``."""
    if not name:
        return default
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def _build_handlers(logfile: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [ServiceStreamHandler()]
    if logfile:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(ServiceFileHandler(log_path, encoding="utf-8"))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def _replace_handlers(logger: logging.Logger, handlers: List[logging.Handler]) -> None:
    for old in [h for h in logger.handlers if isinstance(h, _ServiceHandlerMixin)]:
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.propagate = False


def setup_logging(level: str = "INFO", logfile: Optional[str] = None, server_level: Optional[str] = None) -> None:
    """Configure the ``food_hero_api`` and ``uvicorn`` loggers.

    Parameters
    ----------
    level : str
        Level for application modules, e.g. ``"DEBUG"``.
    logfile : Optional[str]
        Also write to this file; its directory is created if missing.
    server_level : Optional[str]
        Level for uvicorn's loggers; defaults to ``level``.
    """
    handlers = _build_handlers(logfile)

    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(level_for(level))
    _replace_handlers(app_logger, handlers)

    server_logger = logging.getLogger(SERVER_LOGGER)
    server_logger.setLevel(level_for(server_level, app_logger.level))
    _replace_handlers(server_logger, handlers)
