"""
Pydantic models for waste entries.

An entry is modelled as a tagged variant discriminated by ``status``:

* ``PostedEntry``: freshly posted by a school, visible in the feed.
* ``ReceivedEntry``: claimed by a farmer; carries ``received_by`` and
  ``received_at``.
* ``DeliveredEntry``: handover confirmed by the school; additionally
  carries ``delivered_at``.

Each variant only has the fields that are valid in that state, so a
received entry without a receiver cannot be constructed.
"""

from datetime import date as Date, datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class SchoolSummary(BaseModel):
    """Owner details joined onto entries returned by the API."""

    id: int
    institute_name: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class WasteEntryCreate(BaseModel):
    """Schema for posting a waste entry.

    ``image_data`` is an optional base64 ``data:`` URI
    (``data:image/jpeg;base64,...``) that is uploaded to the image
    store before the entry is saved.
    """

    menu: str = Field(..., examples=["Fried rice"])
    weight: float = Field(..., allow_inf_nan=False, examples=[5.0], description="Weight in kilograms")
    date: Date = Field(..., examples=["2025-06-02"])
    image_data: Optional[str] = Field(None, description="Image as a base64 data URI")

    @field_validator("menu")
    @classmethod
    def menu_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("menu must not be empty")
        return value

    @field_validator("weight")
    @classmethod
    def weight_positive(cls, value: float) -> float:
        if not value > 0:
            raise ValueError("weight must be positive")
        return value


class WasteEntryBase(BaseModel):
    id: int
    school_id: int
    menu: str
    weight: float
    date: Date
    image_url: Optional[str] = None
    posted_at: datetime
    school: Optional[SchoolSummary] = None

    model_config = {
        "from_attributes": True,
    }

    @property
    def is_received(self) -> bool:
        return self.status != "posted"

    @property
    def is_delivered(self) -> bool:
        return self.status == "delivered"


class PostedEntry(WasteEntryBase):
    status: Literal["posted"] = "posted"


class ReceivedEntry(WasteEntryBase):
    status: Literal["received"] = "received"
    received_by: int
    received_at: datetime


class DeliveredEntry(WasteEntryBase):
    status: Literal["delivered"] = "delivered"
    received_by: int
    received_at: datetime
    delivered_at: datetime


WasteEntryRead = Annotated[
    Union[PostedEntry, ReceivedEntry, DeliveredEntry],
    Field(discriminator="status"),
]


class ReceiveResult(BaseModel):
    """Returned to a farmer after a successful receive."""

    entry: ReceivedEntry
    stars: int


class WasteFilter(BaseModel):
    """Farmer-side narrowing of the public feed.  All fields optional."""

    weight_min: Optional[float] = None
    weight_max: Optional[float] = None
    menu: Optional[str] = None
    date: Optional[Date] = None
    school_name: Optional[str] = None


class MenuTotal(BaseModel):
    menu: str
    total_weight: float


class WasteAnalysis(BaseModel):
    """Per-menu totals over a school's seven earliest entries."""

    analysis: List[MenuTotal]
    raw_data: List[WasteEntryRead]
