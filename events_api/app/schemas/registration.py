"""
Pydantic models for event registrations.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class RegistrationRead(BaseModel):
    id: int
    name: str
    comment: Optional[str] = None
    event_id: int
    user_id: Optional[int] = None
    created: datetime

    model_config = {
        "from_attributes": True,
    }
