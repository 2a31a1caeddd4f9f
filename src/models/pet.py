"""
Pet and weight record model definitions.
"""
from datetime import date, datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from src.utils.dates import parse_calendar_date, timestamp_to_calendar_date

class Pet(BaseModel):
    """
    Represents a pet owned by a user.

    weight is the pet's current weight and follows the latest recorded
    measurement. initial_weight is the weight given at registration and is
    what the timeline shows as the baseline on the registration date.
    """
    pet_id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    name: str = Field(..., min_length=1)
    species: Optional[str] = None
    breed: Optional[str] = None
    age_months: Optional[int] = Field(None, ge=0)
    weight: Optional[float] = Field(None, gt=0)
    initial_weight: Optional[float] = Field(None, gt=0)
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @model_validator(mode="before")
    @classmethod
    def default_initial_weight(cls, data):
        # Stored pets always carry initial_weight, even when it is None
        if isinstance(data, dict) and "initial_weight" not in data:
            data = {**data, "initial_weight": data.get("weight")}
        return data

    @property
    def created_on(self) -> date:
        """Calendar date the pet was registered."""
        return timestamp_to_calendar_date(self.created_at)

class WeightRecord(BaseModel):
    """
    A weight measurement for a pet on a given day.
    """
    record_id: str = Field(default_factory=lambda: str(uuid4()))
    pet_id: str
    user_id: str
    weight_kg: float = Field(..., gt=0)
    recorded_on: date
    notes: Optional[str] = None

    @field_validator("recorded_on", mode="before")
    @classmethod
    def parse_recorded_on(cls, value):
        if isinstance(value, str):
            return parse_calendar_date(value)
        return value
