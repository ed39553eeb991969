"""
Waste entry endpoints for API v1.

Schools post, delete and confirm delivery of their entries; farmers
receive entries and browse or filter the feed.  The handlers only
translate HTTP into calls on ``LifecycleController`` and
``WasteQueryService``; domain errors are rendered by the handlers in
``core.errors``.
"""

from datetime import date as Date
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from food_hero_api.app.core.security import get_current_actor, require_roles
from food_hero_api.app.dependencies import get_lifecycle, get_queries
from food_hero_api.app.schemas.user import ActorContext, Role
from food_hero_api.app.schemas.waste import (
    DeliveredEntry,
    PostedEntry,
    ReceiveResult,
    WasteAnalysis,
    WasteEntryCreate,
    WasteEntryRead,
    WasteFilter,
)
from food_hero_api.app.services.lifecycle_service import LifecycleController
from food_hero_api.app.services.query_service import WasteQueryService


router = APIRouter()


@router.post("/", response_model=PostedEntry, status_code=status.HTTP_201_CREATED)
def post_waste_entry(
    payload: WasteEntryCreate,
    current: ActorContext = Depends(require_roles(Role.SCHOOL)),
    lifecycle: LifecycleController = Depends(get_lifecycle),
) -> PostedEntry:
    """Post a new waste entry for the calling school.

    Increments the school's post counter and recomputes its stars.
    """
    return lifecycle.post(current, payload.menu, payload.weight, payload.date, payload.image_data)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_waste_entry(
    entry_id: int = Path(..., description="ID of the waste entry"),
    current: ActorContext = Depends(require_roles(Role.SCHOOL)),
    lifecycle: LifecycleController = Depends(get_lifecycle),
) -> None:
    """Delete one of the school's entries that nobody has received yet."""
    lifecycle.delete(current, entry_id)
    return None


@router.post("/{entry_id}/receive", response_model=ReceiveResult)
def receive_waste_entry(
    entry_id: int = Path(..., description="ID of the waste entry"),
    current: ActorContext = Depends(require_roles(Role.FARMER)),
    lifecycle: LifecycleController = Depends(get_lifecycle),
) -> ReceiveResult:
    """Claim a posted entry.  Returns the entry and the farmer's new star count."""
    return lifecycle.receive(current, entry_id)


@router.post("/{entry_id}/deliver", response_model=DeliveredEntry)
def confirm_delivery(
    entry_id: int = Path(..., description="ID of the waste entry"),
    current: ActorContext = Depends(require_roles(Role.SCHOOL)),
    lifecycle: LifecycleController = Depends(get_lifecycle),
) -> DeliveredEntry:
    """Confirm that a received entry was handed over to the farmer."""
    return lifecycle.confirm_delivery(current, entry_id)


@router.get("/posts", response_model=List[WasteEntryRead])
def list_posts(
    current: ActorContext = Depends(get_current_actor),
    queries: WasteQueryService = Depends(get_queries),
):
    """Public feed: every entry not yet delivered, newest first."""
    return queries.public_feed()


@router.get("/posts/{entry_id}", response_model=WasteEntryRead)
def get_post(
    entry_id: int = Path(..., description="ID of the waste entry"),
    current: ActorContext = Depends(get_current_actor),
    queries: WasteQueryService = Depends(get_queries),
):
    return queries.get(entry_id)


@router.get("/pending-deliveries", response_model=List[WasteEntryRead])
def list_pending_deliveries(
    current: ActorContext = Depends(require_roles(Role.SCHOOL)),
    queries: WasteQueryService = Depends(get_queries),
):
    """Entries of the calling school that were received but not yet delivered."""
    return queries.pending_deliveries(current)


@router.get("/received", response_model=List[WasteEntryRead])
def list_received(
    current: ActorContext = Depends(require_roles(Role.FARMER)),
    queries: WasteQueryService = Depends(get_queries),
):
    """Everything the calling farmer has received, most recent first."""
    return queries.received_history(current)


@router.get("/filter", response_model=List[WasteEntryRead])
def filter_posts(
    weight_min: Optional[float] = Query(None, description="Minimum weight (inclusive)"),
    weight_max: Optional[float] = Query(None, description="Maximum weight (inclusive)"),
    menu: Optional[str] = Query(None, description="Case-insensitive menu substring"),
    date: Optional[Date] = Query(None, description="Event date (YYYY-MM-DD)"),
    school_name: Optional[str] = Query(None, description="Case-insensitive school name substring"),
    current: ActorContext = Depends(require_roles(Role.FARMER)),
    queries: WasteQueryService = Depends(get_queries),
):
    """Filter the public feed by weight range, menu, date and school name."""
    criteria = WasteFilter(
        weight_min=weight_min,
        weight_max=weight_max,
        menu=menu,
        date=date,
        school_name=school_name,
    )
    return queries.filter_feed(criteria)


@router.get("/analyze", response_model=WasteAnalysis)
def analyze_waste(
    current: ActorContext = Depends(require_roles(Role.SCHOOL)),
    queries: WasteQueryService = Depends(get_queries),
) -> WasteAnalysis:
    """Total weight per menu over the school's seven earliest-dated entries."""
    return queries.analyze(current)
