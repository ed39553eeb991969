"""
Read-side views over waste entries.

Every view is scoped by the caller's role: the public feed is shared,
pending deliveries belong to a school, received history belongs to a
farmer.  Filters that target the entry itself are pushed into SQL;
case-insensitive text matching and the school-name filter (an
attribute of the joined owner, not the entry) run in Python.
"""

import logging
from typing import Dict, List, Optional

from ..core.errors import ForbiddenError, ValidationError
from ..schemas.user import ActorContext
from ..schemas.waste import MenuTotal, WasteAnalysis, WasteFilter
from .waste_store import STATUS_DELIVERED, STATUS_RECEIVED, WasteEntryStore


logger = logging.getLogger(__name__)

ANALYSIS_WINDOW = 7

FEED_ORDER = "w.posted_at DESC, w.id DESC"
RECEIVED_ORDER = "w.received_at DESC, w.id DESC"
ANALYSIS_ORDER = "w.date ASC, w.id ASC"


def _contains(haystack: Optional[str], needle: str) -> bool:
    return haystack is not None and needle.casefold() in haystack.casefold()


class WasteQueryService:
    """Role-scoped listings and the school analysis."""

    def __init__(self, store: WasteEntryStore) -> None:
        self.store = store

    def get(self, entry_id: int):
        return self.store.get(entry_id)

    def public_feed(self) -> List:
        """All entries that have not been delivered yet, newest post first."""
        return self.store.list_entries(["w.status != ?"], [STATUS_DELIVERED], FEED_ORDER)

    def pending_deliveries(self, actor: ActorContext) -> List:
        """The school's received entries that still await delivery confirmation."""
        if not actor.is_school:
            raise ForbiddenError("Only schools have pending deliveries")
        return self.store.list_entries(
            ["w.school_id = ?", "w.status = ?"],
            [actor.user_id, STATUS_RECEIVED],
            RECEIVED_ORDER,
        )

    def received_history(self, actor: ActorContext) -> List:
        """Everything the farmer has received, delivered or not."""
        if not actor.is_farmer:
            raise ForbiddenError("Only farmers have a received history")
        return self.store.list_entries(
            ["w.received_by = ?", "w.status IN (?, ?)"],
            [actor.user_id, STATUS_RECEIVED, STATUS_DELIVERED],
            RECEIVED_ORDER,
        )

    def filter_feed(self, criteria: WasteFilter) -> List:
        """Narrow the public feed.

        Weight bounds are inclusive and each is optional; ``menu`` and
        ``school_name`` are case-insensitive substring matches; ``date``
        matches the event's calendar day exactly.
        """
        if (
            criteria.weight_min is not None
            and criteria.weight_max is not None
            and criteria.weight_min > criteria.weight_max
        ):
            raise ValidationError("weight_min must not be greater than weight_max")

        where = ["w.status != ?"]
        params: list = [STATUS_DELIVERED]
        if criteria.weight_min is not None:
            where.append("w.weight >= ?")
            params.append(criteria.weight_min)
        if criteria.weight_max is not None:
            where.append("w.weight <= ?")
            params.append(criteria.weight_max)
        if criteria.date is not None:
            where.append("w.date = ?")
            params.append(criteria.date.isoformat())
        entries = self.store.list_entries(where, params, FEED_ORDER)

        if criteria.menu:
            entries = [entry for entry in entries if _contains(entry.menu, criteria.menu)]
        if criteria.school_name:
            entries = [
                entry
                for entry in entries
                if entry.school is not None and _contains(entry.school.institute_name, criteria.school_name)
            ]
        logger.debug("Filter %s matched %d entries", criteria.model_dump(exclude_none=True), len(entries))
        return entries

    def analyze(self, actor: ActorContext) -> WasteAnalysis:
        """Total weight per menu over the school's seven earliest-dated entries."""
        if not actor.is_school:
            raise ForbiddenError("Only schools can analyse their waste")
        entries = self.store.list_entries(
            ["w.school_id = ?"], [actor.user_id], ANALYSIS_ORDER, limit=ANALYSIS_WINDOW
        )
        totals: Dict[str, float] = {}
        for entry in entries:
            totals[entry.menu] = totals.get(entry.menu, 0.0) + entry.weight
        return WasteAnalysis(
            analysis=[MenuTotal(menu=menu, total_weight=weight) for menu, weight in totals.items()],
            raw_data=entries,
        )
