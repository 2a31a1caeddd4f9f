"""
Service module for recording vaccines, dewormings and weight measurements.

Recording, editing or deleting a vaccine or deworming keeps its generated
reminders in step through the ReminderReconciler.

Typical usage:
    service = CareEventService(store)
    event, reminders = service.record_event(event)
    event, reminders = service.edit_event(user_id, "vaccine", event_id, {"label": "Rabies"})
    service.delete_event(user_id, "vaccine", event_id)
"""
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from aws_lambda_powertools import Logger

from src.models.care_event import CareEvent
from src.models.pet import WeightRecord
from src.models.reminder import Reminder
from src.services.exceptions import RecordNotFoundError, ValidationError
from src.services.pets import get_pet, record_current_weight
from src.services.reconciliation import ReminderReconciler
from src.services.utils import build_model
from src.utils.dynamo import CareStore

logger = Logger()

EVENT_COLLECTIONS = {
    "vaccine": "vaccinations",
    "deworming": "dewormings",
}

# Attributes an edit may not change
IMMUTABLE_EVENT_FIELDS = ("event_id", "user_id", "pet_id", "event_type")

def collection_for(event_type: str) -> str:
    """Map a care event type to its collection."""
    try:
        return EVENT_COLLECTIONS[event_type]
    except KeyError:
        raise ValidationError(f"Unsupported care event type '{event_type}'")

class CareEventService:
    """Commands and queries for a pet's care records."""

    def __init__(self, store: CareStore, clock: Callable[[], date] = date.today):
        self.store = store
        self.clock = clock
        self.reconciler = ReminderReconciler(store, clock)

    def get_event(self, user_id: str, event_type: str, event_id: str) -> CareEvent:
        """
        Load a care event.

        Raises:
            RecordNotFoundError: If the event does not exist
        """
        item = self.store.get(collection_for(event_type), user_id, event_id)
        if not item:
            raise RecordNotFoundError(f"No {event_type} '{event_id}'")
        return build_model(CareEvent, item)

    def record_event(self, event: CareEvent) -> Tuple[CareEvent, List[Reminder]]:
        """
        Store a new care event and generate its reminders.

        The event and its reminders are written in one transaction; if the
        write is rejected neither is stored.

        Args:
            event: Validated care event

        Returns:
            Tuple of (stored event, generated reminders)

        Raises:
            PersistenceError: If the event or its reminders cannot be stored
        """
        reminders = self.reconciler.schedule(
            event,
            related=[(collection_for(event.event_type), event.model_dump())]
        )
        logger.info("Recorded care event", extra={
            "event_id": event.event_id,
            "event_type": event.event_type,
            "pet_id": event.pet_id,
            "reminder_count": len(reminders)
        })
        return event, reminders

    def edit_event(
        self,
        user_id: str,
        event_type: str,
        event_id: str,
        changes: Dict[str, Any]
    ) -> Tuple[CareEvent, List[Reminder]]:
        """
        Apply changes to a care event and regenerate its reminders.

        The edited event is validated before anything is written, then stored
        in the same transaction that swaps its reminders.

        Args:
            user_id: Owner of the event
            event_type: "vaccine" or "deworming"
            event_id: Event to edit
            changes: Attributes to change (label, occurred_on, notes, recurrence)

        Returns:
            Tuple of (updated event, regenerated reminders)
        """
        previous = self.get_event(user_id, event_type, event_id)
        changes = {k: v for k, v in changes.items() if k not in IMMUTABLE_EVENT_FIELDS}
        current = build_model(CareEvent, {**previous.model_dump(), **changes})

        reminders = self.reconciler.replace_schedule(
            previous,
            current,
            related=[(collection_for(event_type), current.model_dump())]
        )

        logger.info("Edited care event", extra={
            "event_id": event_id,
            "event_type": event_type,
            "changed_fields": sorted(changes),
            "reminder_count": len(reminders)
        })
        return current, reminders

    def delete_event(self, user_id: str, event_type: str, event_id: str) -> int:
        """
        Delete a care event after retracting its reminders.

        Returns:
            Number of reminders deleted with the event
        """
        event = self.get_event(user_id, event_type, event_id)
        deleted = self.reconciler.retract_schedule(event)
        self.store.delete_one(collection_for(event_type), user_id, event_id)
        logger.info("Deleted care event", extra={
            "event_id": event_id,
            "event_type": event_type,
            "reminders_deleted": deleted
        })
        return deleted

    def list_events(
        self,
        user_id: str,
        pet_id: str,
        event_type: str,
        descending: bool = True
    ) -> List[CareEvent]:
        """List a pet's care events of one type, newest first unless descending is False."""
        items = self.store.query(
            collection_for(event_type),
            user_id,
            pet_id=pet_id,
            order_by="occurred_on",
            descending=descending
        )
        return [build_model(CareEvent, item) for item in items]

    def record_weight(self, record: WeightRecord) -> WeightRecord:
        """
        Store a weight measurement and make it the pet's current weight.

        The measurement and the pet are written in one transaction. The pet's
        registration weight (initial_weight) is left as it was.

        Raises:
            RecordNotFoundError: If the pet does not exist
        """
        pet = get_pet(self.store, record.user_id, record.pet_id)
        self.store.write(record.user_id, puts=[
            ("weight_history", record.model_dump()),
            ("pets", record_current_weight(pet, record.weight_kg).model_dump())
        ])
        logger.info("Recorded weight", extra={
            "record_id": record.record_id,
            "pet_id": record.pet_id
        })
        return record

    def delete_weight(self, user_id: str, record_id: str) -> None:
        """
        Delete a weight measurement.

        Raises:
            RecordNotFoundError: If the record does not exist
        """
        if not self.store.get("weight_history", user_id, record_id):
            raise RecordNotFoundError(f"No weight record '{record_id}'")
        self.store.delete_one("weight_history", user_id, record_id)

    def list_weights(self, user_id: str, pet_id: Optional[str] = None) -> List[WeightRecord]:
        """List weight measurements, oldest first."""
        items = self.store.query(
            "weight_history",
            user_id,
            pet_id=pet_id,
            order_by="recorded_on"
        )
        return [build_model(WeightRecord, item) for item in items]
