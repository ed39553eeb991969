"""
Pydantic models for actors (schools and farmers).

Registration carries role-specific profile fields: schools describe
their institute, farmers describe themselves and why they collect
food waste.  ``UserRead`` never includes the password hash.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class Role(str, Enum):
    SCHOOL = "school"
    FARMER = "farmer"


class UserCreate(BaseModel):
    """Schema for registering a school or a farmer.

    * School: ``institute_name`` is required; ``address`` and
      ``contact_number`` are optional.
    * Farmer: ``name`` is required; ``contact_number``, ``purpose`` and
      ``other_purpose`` are optional.

    Fields that do not belong to the chosen role are dropped.
    """

    email: str = Field(..., min_length=3, examples=["school@example.com"])
    password: str = Field(..., min_length=6, examples=["strongpassword"])
    role: Role
    institute_name: Optional[str] = Field(None, examples=["Phuket Wittayalai School"])
    address: Optional[str] = None
    contact_number: Optional[str] = None
    name: Optional[str] = Field(None, examples=["Somchai"])
    purpose: Optional[str] = Field(None, examples=["animal feed"])
    other_purpose: Optional[str] = None

    @model_validator(mode="after")
    def check_role_fields(self) -> "UserCreate":
        if self.role == Role.SCHOOL:
            if not (self.institute_name and self.institute_name.strip()):
                raise ValueError("institute_name is required for schools")
            self.name = None
            self.purpose = None
            self.other_purpose = None
        else:
            if not (self.name and self.name.strip()):
                raise ValueError("name is required for farmers")
            self.institute_name = None
            self.address = None
        return self


class UserLogin(BaseModel):
    email: str
    password: str


class UserRead(BaseModel):
    """Schema for reading an actor profile from the API."""

    id: int
    email: str
    role: Role
    institute_name: Optional[str] = None
    address: Optional[str] = None
    contact_number: Optional[str] = None
    name: Optional[str] = None
    purpose: Optional[str] = None
    other_purpose: Optional[str] = None
    waste_posts_count: int = 0
    waste_received_count: int = 0
    stars: int = 0
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class TokenRead(BaseModel):
    """Returned by register and login."""

    access_token: str
    token_type: str = "bearer"
    user: UserRead


class ActorContext(BaseModel):
    """The authenticated caller as seen by the services."""

    user_id: int
    role: Role
    email: Optional[str] = None

    @property
    def is_school(self) -> bool:
        return self.role == Role.SCHOOL

    @property
    def is_farmer(self) -> bool:
        return self.role == Role.FARMER
