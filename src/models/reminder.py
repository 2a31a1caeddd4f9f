"""
Reminder model definition for calendar and dashboard entries.
"""
from datetime import date
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from src.utils.dates import parse_calendar_date

class Reminder(BaseModel):
    """
    A due-date entry, either created by hand or generated from a care event.

    Generated reminders carry the id of their care event in source_event_id.
    Reminders without a pet_id are general reminders for the owner.
    """
    reminder_id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    pet_id: Optional[str] = None
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    due_date: date
    due_time: Optional[str] = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    type: str = Field(
        "general",
        pattern="^(vaccination|deworming|checkup|grooming|medication|general)$"
    )
    completed: bool = False
    source_event_id: Optional[str] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value):
        if isinstance(value, str):
            return parse_calendar_date(value)
        return value
