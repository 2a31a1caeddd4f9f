"""
Timeline model definition for merged care history.
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field

class TimelineEvent(BaseModel):
    """
    Read-only projection of a weight record, vaccine or deworming.

    Entries with is_initial set are synthesized from the pet's baseline
    weight and have no source record.
    """
    kind: str = Field(..., pattern="^(weight|vaccine|deworming)$")
    date: date
    title: str
    description: Optional[str] = None
    source_id: Optional[str] = None
    weight_kg: Optional[float] = None
    is_initial: bool = False
