"""
Service container and FastAPI dependencies.

``build_services`` wires the database, stores and controllers together
once per application.  ``create_app`` keeps the result on
``app.state.services``; endpoints reach it through the small getter
dependencies below instead of importing module-level singletons.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .core.config import Settings
from .core.db import Database
from .services.actor_service import ActorDirectory
from .services.image_store import ImageStore, build_image_store
from .services.lifecycle_service import LifecycleController
from .services.query_service import WasteQueryService
from .services.waste_store import WasteEntryStore


@dataclass
class Services:
    settings: Settings
    db: Database
    actors: ActorDirectory
    store: WasteEntryStore
    lifecycle: LifecycleController
    queries: WasteQueryService
    images: ImageStore


def build_services(settings: Settings, image_store: Optional[ImageStore] = None) -> Services:
    """Construct every service for ``settings``.

    ``image_store`` overrides the backend chosen by
    ``settings.image_backend``.
    """
    db = Database.from_url(settings.database_url, settings.db_timeout_seconds)
    images = image_store or build_image_store(settings)
    actors = ActorDirectory(db)
    store = WasteEntryStore(db)
    return Services(
        settings=settings,
        db=db,
        actors=actors,
        store=store,
        lifecycle=LifecycleController(db, store, actors, images),
        queries=WasteQueryService(store),
        images=images,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_lifecycle(request: Request) -> LifecycleController:
    return get_services(request).lifecycle


def get_queries(request: Request) -> WasteQueryService:
    return get_services(request).queries


def get_actors(request: Request) -> ActorDirectory:
    return get_services(request).actors
