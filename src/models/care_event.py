"""
Care event model definitions for vaccines and dewormings.
"""
from datetime import date
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from src.services.constants import REMINDER_TITLE_KINDS
from src.utils.dates import parse_calendar_date

class Recurrence(BaseModel):
    """
    How often a care event repeats, e.g. every 3 months or every 1 year.
    """
    enabled: bool = True
    unit: str = Field(..., pattern="^(months|years)$")
    interval: int = Field(..., gt=0)

class CareEvent(BaseModel):
    """
    A logged administration of a vaccine or deworming treatment for a pet.
    """
    event_id: str = Field(default_factory=lambda: str(uuid4()))
    pet_id: str
    user_id: str
    event_type: str = Field(..., pattern="^(vaccine|deworming)$")
    label: str = Field(..., min_length=1)
    occurred_on: date
    notes: Optional[str] = None
    recurrence: Optional[Recurrence] = None

    @field_validator("label")
    @classmethod
    def strip_label(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("label must not be blank")
        return value

    @field_validator("occurred_on", mode="before")
    @classmethod
    def parse_occurred_on(cls, value):
        if isinstance(value, str):
            return parse_calendar_date(value)
        return value

    @model_validator(mode="after")
    def check_vaccine_unit(self) -> "CareEvent":
        # Vaccine boosters are always scheduled in whole years
        if self.event_type == "vaccine" and self.recurrence and self.recurrence.unit != "years":
            raise ValueError("vaccine recurrence must use 'years'")
        return self

    @property
    def has_recurrence(self) -> bool:
        """Check if reminders should be generated for this event."""
        return self.recurrence is not None and self.recurrence.enabled

    @property
    def reminder_title(self) -> str:
        """Title shared by every reminder generated from this event."""
        return f"{REMINDER_TITLE_KINDS[self.event_type]}: {self.label}"
