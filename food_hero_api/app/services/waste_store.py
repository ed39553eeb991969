"""
Persistence for waste entries.

``WasteEntryStore`` maps rows of the ``waste_entries`` table (joined
with the owning school's profile) onto the ``PostedEntry`` /
``ReceivedEntry`` / ``DeliveredEntry`` variants.

Lifecycle writes are conditional: every transition is a single
``UPDATE``/``DELETE`` whose ``WHERE`` clause repeats the precondition
(current status, owner).  The returned boolean tells the caller whether
the row still satisfied the precondition at write time; a ``False``
means another request got there first, or the precondition never held.
"""

import logging
import math
import sqlite3
from datetime import date as Date, datetime
from numbers import Real
from typing import Any, List, Optional, Sequence

from ..core.db import Database, utcnow
from ..core.errors import NotFoundError, ValidationError
from ..schemas.waste import DeliveredEntry, PostedEntry, ReceivedEntry, SchoolSummary


logger = logging.getLogger(__name__)

ENTRY_SELECT = """
    SELECT w.id, w.school_id, w.menu, w.weight, w.date, w.image_url, w.posted_at,
           w.status, w.received_by, w.received_at, w.delivered_at,
           u.institute_name AS school_institute_name,
           u.contact_number AS school_contact_number,
           u.email AS school_email,
           u.address AS school_address
    FROM waste_entries w
    LEFT JOIN users u ON u.id = w.school_id
"""

STATUS_POSTED = "posted"
STATUS_RECEIVED = "received"
STATUS_DELIVERED = "delivered"


def _timestamp(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


def row_to_entry(row: sqlite3.Row):
    """Build the variant matching ``row["status"]``."""
    school = None
    if row["school_email"] is not None:
        school = SchoolSummary(
            id=row["school_id"],
            institute_name=row["school_institute_name"],
            contact_number=row["school_contact_number"],
            email=row["school_email"],
            address=row["school_address"],
        )
    common = dict(
        id=row["id"],
        school_id=row["school_id"],
        menu=row["menu"],
        weight=row["weight"],
        date=row["date"],
        image_url=row["image_url"],
        posted_at=row["posted_at"],
        school=school,
    )
    status = row["status"]
    if status == STATUS_POSTED:
        return PostedEntry(**common)
    if status == STATUS_RECEIVED:
        return ReceivedEntry(received_by=row["received_by"], received_at=row["received_at"], **common)
    if status == STATUS_DELIVERED:
        return DeliveredEntry(
            received_by=row["received_by"],
            received_at=row["received_at"],
            delivered_at=row["delivered_at"],
            **common,
        )
    raise ValueError(f"Unknown waste entry status {status!r} for entry {row['id']}")


def validate_entry_fields(menu: Any, weight: Any, date: Any) -> tuple:
    """Check the content of a new entry and return it normalised.

    Raises ``ValidationError`` when a field is missing, ``menu`` is
    blank or ``weight`` is not a positive finite number.
    """
    if menu is None or weight is None or date is None:
        missing = [name for name, value in (("menu", menu), ("weight", weight), ("date", date)) if value is None]
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")
    if not isinstance(menu, str) or not menu.strip():
        raise ValidationError("menu must be a non-empty string")
    if isinstance(weight, bool) or not isinstance(weight, Real) or not weight > 0:
        raise ValidationError("weight must be a positive number")
    if not math.isfinite(weight):
        raise ValidationError("weight must be finite")
    if isinstance(date, datetime):
        date = date.date()
    if not isinstance(date, Date):
        raise ValidationError("date must be a calendar date")
    return menu.strip(), float(weight), date


class WasteEntryStore:
    """Durable storage of waste entries keyed by id."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def create(
        self,
        conn: sqlite3.Connection,
        school_id: int,
        menu: str,
        weight: float,
        date: Date,
        image_url: Optional[str] = None,
    ) -> PostedEntry:
        """Insert a new entry in the posted state with ``posted_at = now``."""
        menu, weight, date = validate_entry_fields(menu, weight, date)
        cursor = conn.execute(
            """
            INSERT INTO waste_entries (school_id, menu, weight, date, image_url, posted_at, status)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (school_id, menu, weight, date.isoformat(), image_url, _timestamp(utcnow()), STATUS_POSTED),
        )
        return self.fetch(conn, cursor.lastrowid)

    def fetch(self, conn: sqlite3.Connection, entry_id: int):
        """Return the entry with ``entry_id`` using ``conn`` or raise ``NotFoundError``."""
        row = conn.execute(ENTRY_SELECT + " WHERE w.id = ?", (entry_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"Waste entry {entry_id} not found")
        return row_to_entry(row)

    def get(self, entry_id: int):
        with self.db.reader() as conn:
            return self.fetch(conn, entry_id)

    def list_entries(
        self,
        where: Sequence[str] = (),
        params: Sequence[Any] = (),
        order_by: str = "w.posted_at DESC, w.id DESC",
        limit: Optional[int] = None,
    ) -> List:
        """Return entries matching all ``where`` clauses in ``order_by`` order."""
        query = ENTRY_SELECT
        if where:
            query += " WHERE " + " AND ".join(where)
        query += f" ORDER BY {order_by}"
        params = list(params)
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        with self.db.reader() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [row_to_entry(row) for row in rows]

    # ------------------------------------------------------------------
    # Conditional transitions
    # ------------------------------------------------------------------

    def mark_received(self, conn: sqlite3.Connection, entry_id: int, farmer_id: int) -> bool:
        cursor = conn.execute(
            "UPDATE waste_entries SET status = ?, received_by = ?, received_at = ? "
            "WHERE id = ? AND status = ?",
            (STATUS_RECEIVED, farmer_id, _timestamp(utcnow()), entry_id, STATUS_POSTED),
        )
        return cursor.rowcount == 1

    def mark_delivered(self, conn: sqlite3.Connection, entry_id: int, school_id: int) -> bool:
        cursor = conn.execute(
            "UPDATE waste_entries SET status = ?, delivered_at = ? "
            "WHERE id = ? AND school_id = ? AND status = ?",
            (STATUS_DELIVERED, _timestamp(utcnow()), entry_id, school_id, STATUS_RECEIVED),
        )
        return cursor.rowcount == 1

    def delete_posted(self, conn: sqlite3.Connection, entry_id: int, school_id: int) -> bool:
        cursor = conn.execute(
            "DELETE FROM waste_entries WHERE id = ? AND school_id = ? AND status = ?",
            (entry_id, school_id, STATUS_POSTED),
        )
        return cursor.rowcount == 1
