"""
Service module keeping generated reminders in step with their care events.

A reminder is owned by a care event when its source_event_id names the event.
Reminders stored before source_event_id existed are matched the old way: same
pet, title containing the event label and description containing the kind
marker ("Vacuna" / "Desparasitación").

Typical usage:
    reconciler = ReminderReconciler(store)
    reconciler.schedule(event)
    reconciler.replace_schedule(previous, current)
    reconciler.retract_schedule(event)
"""
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from src.models.care_event import CareEvent
from src.models.reminder import Reminder
from src.services.constants import MAX_TRANSACTION_ITEMS, REMINDER_KIND_MARKERS
from src.services.exceptions import PersistenceError
from src.services.recurrence import build_reminders
from src.utils.dynamo import CareStore
from src.utils.logging import log_exception, logger

def is_owned_by(reminder: Dict[str, Any], event: CareEvent) -> bool:
    """
    Check if a stored reminder belongs to a care event.

    Args:
        reminder: Stored reminder attributes
        event: Care event as it was when the reminder was generated

    Returns:
        True if the reminder was generated from the event
    """
    source_event_id = reminder.get("source_event_id")
    if source_event_id:
        return source_event_id == event.event_id

    if reminder.get("pet_id") != event.pet_id:
        return False
    title = reminder.get("title") or ""
    description = reminder.get("description") or ""
    marker = REMINDER_KIND_MARKERS[event.event_type]
    return event.label in title and marker.lower() in description.lower()

class ReminderReconciler:
    """Generates, replaces and retracts the reminders owned by care events."""

    def __init__(self, store: CareStore, clock: Callable[[], date] = date.today):
        self.store = store
        self.clock = clock

    def find_owned(self, event: CareEvent) -> List[Dict[str, Any]]:
        """Find every stored reminder owned by a care event."""
        return self.store.query(
            "reminders",
            event.user_id,
            pet_id=event.pet_id,
            predicate=lambda reminder: is_owned_by(reminder, event)
        )

    def _find_owned_best_effort(self, event: CareEvent) -> List[Dict[str, Any]]:
        try:
            return self.find_owned(event)
        except PersistenceError:
            log_exception(logger, "Could not look up previous reminders, continuing", extra={
                "event_id": event.event_id,
                "pet_id": event.pet_id,
                "label": event.label
            })
            return []

    def schedule(
        self,
        event: CareEvent,
        today: Optional[date] = None,
        related: Optional[List[Tuple[str, Dict[str, Any]]]] = None
    ) -> List[Reminder]:
        """
        Generate and store the reminders for a newly recorded care event.

        The reminders and the related records (normally the event itself)
        are written in one transaction, so a rejected batch stores neither.

        Args:
            event: Care event to schedule
            today: Date to project from, defaults to the clock
            related: (collection, record) pairs written with the reminders

        Raises:
            PersistenceError: If the store rejects the batch
        """
        reminders = build_reminders(event, today or self.clock())
        self._write_with_related(
            event.user_id,
            [],
            [reminder.model_dump() for reminder in reminders],
            list(related or [])
        )
        logger.info("Scheduled care reminders", extra={
            "event_id": event.event_id,
            "event_type": event.event_type,
            "reminder_count": len(reminders)
        })
        return reminders

    def replace_schedule(
        self,
        previous: CareEvent,
        current: CareEvent,
        today: Optional[date] = None,
        related: Optional[List[Tuple[str, Dict[str, Any]]]] = None
    ) -> List[Reminder]:
        """
        Replace the reminders of an edited care event.

        Reminders owned by the previous state are deleted and the schedule of
        the current state is inserted in the same transaction, together with
        the related records (normally the edited event). If the previous
        reminders cannot be looked up, the new schedule is still inserted.

        Args:
            previous: Care event before the edit
            current: Care event after the edit
            today: Date to project from, defaults to the clock
            related: (collection, record) pairs written with the reminders

        Returns:
            The newly generated reminders

        Raises:
            PersistenceError: If the write is rejected
        """
        fresh = build_reminders(current, today or self.clock())
        stale = self._find_owned_best_effort(previous)
        self._write_with_related(
            current.user_id,
            stale,
            [reminder.model_dump() for reminder in fresh],
            list(related or []),
            owner=previous
        )

        logger.info("Replaced care reminders", extra={
            "event_id": current.event_id,
            "deleted_count": len(stale),
            "created_count": len(fresh)
        })
        return fresh

    def _write_with_related(
        self,
        user_id: str,
        stale: List[Dict[str, Any]],
        fresh: List[Dict[str, Any]],
        related: List[Tuple[str, Dict[str, Any]]],
        owner: Optional[CareEvent] = None
    ) -> None:
        if not (stale or fresh or related):
            return
        if len(stale) + len(fresh) + len(related) <= MAX_TRANSACTION_ITEMS:
            self.store.replace("reminders", user_id, stale, fresh, related=related)
            return
        # Too large for one transaction: stale reminders go first, best-effort,
        # and the related records are only written once the reminders are stored
        if stale:
            self._delete_best_effort(owner, stale)
        if fresh:
            self.store.insert("reminders", fresh)
        if related:
            self.store.write(user_id, puts=related)

    def retract_schedule(self, event: CareEvent) -> int:
        """
        Delete the reminders owned by a care event.

        Returns:
            Number of reminders deleted; zero is a normal outcome
        """
        stale = self._find_owned_best_effort(event)
        deleted = self._delete_best_effort(event, stale)
        logger.info("Retracted care reminders", extra={
            "event_id": event.event_id,
            "deleted_count": deleted
        })
        return deleted

    def _delete_best_effort(self, event: CareEvent, stale: List[Dict[str, Any]]) -> int:
        deleted = 0
        for reminder in stale:
            try:
                self.store.delete_one("reminders", event.user_id, reminder["reminder_id"])
                deleted += 1
            except PersistenceError:
                log_exception(logger, "Could not delete stale reminder, continuing", extra={
                    "event_id": event.event_id,
                    "reminder_id": reminder["reminder_id"]
                })
        return deleted
