"""
Pydantic models for event data.

``EventRead`` is returned by list and mutation endpoints;
``EventDetail`` extends it with the event's registrations and, when the
caller is logged in, whether they are registered themselves.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .registration import RegistrationRead


class EventRead(BaseModel):
    """Schema for reading an event from the API."""

    id: int
    name: str = Field(..., examples=["Forritarahittingur"])
    slug: str = Field(..., examples=["forritarahittingur"])
    description: Optional[str] = Field(None, examples=["Monthly meetup"])
    creator_id: Optional[int] = None
    created: datetime
    updated: datetime

    model_config = {
        "from_attributes": True,
    }


class EventDetail(EventRead):
    registrations: List[RegistrationRead] = []
    registered: Optional[bool] = None
