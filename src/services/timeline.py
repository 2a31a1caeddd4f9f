"""
Service module for a pet's merged care timeline.

Weight records, vaccines and dewormings are merged into one chronological
stream. The weight the pet was registered with is added as a synthetic entry
on its registration date unless a weight was recorded that same day.

Entries on the same date keep a fixed kind order (weight, vaccine, deworming)
and within a kind their source order. The synthetic baseline comes before any
other weight of its day.

Typical usage:
    chart = build_timeline(pet, weights, vaccines, dewormings)
    recent = recent_activity(pet, weights, vaccines, dewormings)
"""
from typing import List, Optional

from src.models.care_event import CareEvent
from src.models.pet import Pet, WeightRecord
from src.models.timeline import TimelineEvent
from src.services.constants import TIMELINE_KIND_RANK
from src.services.care_events import CareEventService
from src.services.pets import get_pet
from src.utils.dynamo import CareStore

def _format_weight(weight_kg: float) -> str:
    return f"{weight_kg:g} kg"

def initial_weight_entry(
    pet: Optional[Pet],
    weight_records: List[WeightRecord]
) -> Optional[TimelineEvent]:
    """
    Synthesize the baseline weight entry for a pet.

    Args:
        pet: Pet with optional registration weight
        weight_records: Recorded weights for the pet

    Returns:
        Baseline entry, or None if the pet was registered without a weight
        or a weight was already recorded on its registration date
    """
    if pet is None or pet.initial_weight is None:
        return None
    created_on = pet.created_on
    if any(record.recorded_on == created_on for record in weight_records):
        return None
    return TimelineEvent(
        kind="weight",
        date=created_on,
        title=_format_weight(pet.initial_weight),
        weight_kg=pet.initial_weight,
        is_initial=True
    )

def _weight_entry(record: WeightRecord) -> TimelineEvent:
    return TimelineEvent(
        kind="weight",
        date=record.recorded_on,
        title=_format_weight(record.weight_kg),
        description=record.notes,
        source_id=record.record_id,
        weight_kg=record.weight_kg
    )

def _care_entry(event: CareEvent) -> TimelineEvent:
    return TimelineEvent(
        kind=event.event_type,
        date=event.occurred_on,
        title=event.label,
        description=event.notes,
        source_id=event.event_id
    )

def build_timeline(
    pet: Optional[Pet],
    weight_records: List[WeightRecord],
    vaccines: List[CareEvent],
    dewormings: List[CareEvent],
    descending: bool = False
) -> List[TimelineEvent]:
    """
    Merge a pet's care records into one ordered timeline.

    Args:
        pet: Pet whose baseline weight may be synthesized, None to skip it
        weight_records: Recorded weights
        vaccines: Vaccine care events
        dewormings: Deworming care events
        descending: Newest first instead of oldest first

    Returns:
        Timeline entries ordered by date

    Example:
        >>> timeline = build_timeline(pet, weights, vaccines, dewormings)
        >>> [entry.kind for entry in timeline]
        ['weight', 'vaccine', 'deworming']
    """
    entries = []
    baseline = initial_weight_entry(pet, weight_records)
    if baseline:
        entries.append(baseline)
    entries.extend(_weight_entry(record) for record in weight_records)
    entries.extend(_care_entry(event) for event in vaccines)
    entries.extend(_care_entry(event) for event in dewormings)

    # Stable sorts: kind rank first, then date in the requested direction
    entries.sort(key=lambda entry: TIMELINE_KIND_RANK[entry.kind])
    entries.sort(key=lambda entry: entry.date, reverse=descending)
    return entries

def recent_activity(
    pet: Optional[Pet],
    weight_records: List[WeightRecord],
    vaccines: List[CareEvent],
    dewormings: List[CareEvent]
) -> List[TimelineEvent]:
    """Timeline ordered newest first, for the activity list."""
    return build_timeline(pet, weight_records, vaccines, dewormings, descending=True)

def weight_series(pet: Optional[Pet], weight_records: List[WeightRecord]) -> List[TimelineEvent]:
    """Weight entries oldest first, including the baseline, for charting."""
    return build_timeline(pet, weight_records, [], [])

class TimelineService:
    """Loads a pet's records from the store and builds its timeline."""

    def __init__(self, store: CareStore, care_events: Optional[CareEventService] = None):
        self.store = store
        self.care_events = care_events or CareEventService(store)

    def get_timeline(self, user_id: str, pet_id: str, descending: bool = False) -> List[TimelineEvent]:
        """
        Build the timeline for one pet.

        Raises:
            RecordNotFoundError: If the pet does not exist
        """
        pet = get_pet(self.store, user_id, pet_id)
        return build_timeline(
            pet,
            self.care_events.list_weights(user_id, pet_id),
            self.care_events.list_events(user_id, pet_id, "vaccine", descending=False),
            self.care_events.list_events(user_id, pet_id, "deworming", descending=False),
            descending=descending
        )

    def get_weight_series(self, user_id: str, pet_id: str) -> List[TimelineEvent]:
        """Weight chart points for one pet."""
        pet = get_pet(self.store, user_id, pet_id)
        return weight_series(pet, self.care_events.list_weights(user_id, pet_id))
