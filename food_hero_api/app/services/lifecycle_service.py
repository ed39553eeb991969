"""
Lifecycle of a waste entry: post, receive, deliver, delete.

``LifecycleController`` is the only writer of waste entries.  Each
transition runs in one database transaction that contains the
conditional entry write and the matching counter update, so either both
become visible or neither does.

    posted --receive (farmer)--> received --deliver (owning school)--> delivered
      |
      +--delete (owning school)--> (gone)

Transitions never move backwards and never skip a state.  Repeating
a transition that already happened fails with ``ConflictError``.
Entries that a farmer has already received cannot be deleted, so a
farmer's receive count never refers to an entry that no longer exists.
"""

import logging
from datetime import date as Date
from typing import Optional

from ..core.db import Database
from ..core.errors import ConflictError, ForbiddenError, PreconditionError
from ..schemas.user import ActorContext
from ..schemas.waste import DeliveredEntry, PostedEntry, ReceiveResult
from .actor_service import ActorDirectory
from .image_store import ImageStore, decode_data_uri
from .waste_store import WasteEntryStore, validate_entry_fields


logger = logging.getLogger(__name__)


class LifecycleController:
    """Validates and applies waste entry transitions."""

    def __init__(
        self,
        db: Database,
        store: WasteEntryStore,
        actors: ActorDirectory,
        images: ImageStore,
    ) -> None:
        self.db = db
        self.store = store
        self.actors = actors
        self.images = images

    def post(
        self,
        actor: ActorContext,
        menu: str,
        weight: float,
        date: Date,
        image_data: Optional[str] = None,
    ) -> PostedEntry:
        """Create a new entry for the calling school and bump its post count.

        ``image_data`` is a base64 data URI.  The image is uploaded before
        the entry is written; if the write fails the upload is purged.
        """
        if not actor.is_school:
            raise ForbiddenError("Only schools can post waste entries")
        menu, weight, date = validate_entry_fields(menu, weight, date)

        image_url = None
        if image_data:
            data, content_type = decode_data_uri(image_data)
            image_url = self.images.save(data, content_type)

        try:
            with self.db.transaction() as conn:
                entry = self.store.create(conn, actor.user_id, menu, weight, date, image_url)
                stars = self.actors.increment_posts(conn, actor.user_id)
        except Exception:
            if image_url:
                self._purge_image(image_url)
            raise
        logger.info("School %s posted waste entry %s (%s kg, stars=%s)", actor.user_id, entry.id, weight, stars)
        return entry

    def receive(self, actor: ActorContext, entry_id: int) -> ReceiveResult:
        """Claim a posted entry for the calling farmer.

        Fails with ``ConflictError`` when the entry was already received,
        including by a concurrent request that won the race.
        """
        if not actor.is_farmer:
            raise ForbiddenError("Only farmers can receive waste entries")
        with self.db.transaction() as conn:
            if not self.store.mark_received(conn, entry_id, actor.user_id):
                current = self.store.fetch(conn, entry_id)
                logger.info(
                    "Farmer %s could not receive entry %s: already %s", actor.user_id, entry_id, current.status
                )
                raise ConflictError(f"Waste entry {entry_id} has already been received")
            stars = self.actors.increment_received(conn, actor.user_id)
            entry = self.store.fetch(conn, entry_id)
        logger.info("Farmer %s received waste entry %s (stars=%s)", actor.user_id, entry_id, stars)
        return ReceiveResult(entry=entry, stars=stars)

    def confirm_delivery(self, actor: ActorContext, entry_id: int) -> DeliveredEntry:
        """Mark a received entry as handed over.  Owning school only."""
        if not actor.is_school:
            raise ForbiddenError("Only schools can confirm deliveries")
        with self.db.transaction() as conn:
            if not self.store.mark_delivered(conn, entry_id, actor.user_id):
                current = self.store.fetch(conn, entry_id)
                if current.school_id != actor.user_id:
                    raise ForbiddenError("Not allowed to confirm delivery of another school's entry")
                if current.is_delivered:
                    raise ConflictError(f"Waste entry {entry_id} has already been delivered")
                if not current.is_received:
                    raise PreconditionError(f"Waste entry {entry_id} has not been received yet")
                raise ConflictError(f"Waste entry {entry_id} changed during delivery confirmation")
            entry = self.store.fetch(conn, entry_id)
        logger.info("School %s confirmed delivery of waste entry %s", actor.user_id, entry_id)
        return entry

    def delete(self, actor: ActorContext, entry_id: int) -> None:
        """Remove a posted entry owned by the calling school.

        The post counter is decremented (never below zero) and the
        image, if any, is purged after the deletion commits.
        """
        if not actor.is_school:
            raise ForbiddenError("Only schools can delete waste entries")
        with self.db.transaction() as conn:
            entry = self.store.fetch(conn, entry_id)
            if entry.school_id != actor.user_id:
                raise ForbiddenError("Not allowed to delete another school's entry")
            if entry.is_received:
                raise ConflictError(f"Waste entry {entry_id} has already been received and cannot be deleted")
            if not self.store.delete_posted(conn, entry_id, actor.user_id):
                raise ConflictError(f"Waste entry {entry_id} was received before it could be deleted")
            stars = self.actors.decrement_posts(conn, actor.user_id)
        logger.info("School %s deleted waste entry %s (stars=%s)", actor.user_id, entry_id, stars)
        if entry.image_url:
            self._purge_image(entry.image_url)

    def _purge_image(self, url: str) -> None:
        try:
            self.images.delete(url)
        except Exception as exc:
            logger.warning("Failed to delete image %s: %s", url, exc)
