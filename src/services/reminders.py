"""
Service module for reminder calendar and dashboard views.

Typical usage:
    service = ReminderService(store)
    reminder = service.create_reminder(user_id, "Vet checkup", "2024-07-01", reminder_type="checkup")
    upcoming = service.upcoming_reminders(user_id)
    service.complete_reminder(user_id, reminder.reminder_id)
"""
from datetime import date, timedelta
from typing import Callable, List, Optional, Union

from aws_lambda_powertools import Logger

from src.models.reminder import Reminder
from src.services.constants import UPCOMING_WINDOW_DAYS
from src.services.exceptions import RecordNotFoundError, ValidationError
from src.services.utils import build_model
from src.utils.dates import is_same_calendar_day
from src.utils.dynamo import CareStore

logger = Logger()

def filter_upcoming(
    reminders: List[Reminder],
    today: date,
    days: int = UPCOMING_WINDOW_DAYS
) -> List[Reminder]:
    """
    Select incomplete reminders due between today and today + days.

    Args:
        reminders: Reminders to filter
        today: Start of the window
        days: Window length in days

    Returns:
        Matching reminders ordered by due date
    """
    window_end = today + timedelta(days=days)
    upcoming = [
        r for r in reminders
        if not r.completed and today <= r.due_date <= window_end
    ]
    return sorted(upcoming, key=lambda r: (r.due_date, r.due_time or ""))

def filter_pending(reminders: List[Reminder], today: date) -> List[Reminder]:
    """Select incomplete reminders due today or later, soonest first."""
    pending = [r for r in reminders if not r.completed and r.due_date >= today]
    return sorted(pending, key=lambda r: (r.due_date, r.due_time or ""))

def filter_on_day(reminders: List[Reminder], day: date) -> List[Reminder]:
    """Select reminders due on a calendar day, completed ones included."""
    return sorted(
        (r for r in reminders if is_same_calendar_day(r.due_date, day)),
        key=lambda r: r.due_time or ""
    )

class ReminderService:
    """Manual reminders and reminder views for one store."""

    def __init__(self, store: CareStore, clock: Callable[[], date] = date.today):
        self.store = store
        self.clock = clock

    def create_reminder(
        self,
        user_id: str,
        title: str,
        due_date: Union[str, date],
        pet_id: Optional[str] = None,
        description: Optional[str] = None,
        due_time: Optional[str] = None,
        reminder_type: str = "general"
    ) -> Reminder:
        """
        Create a single reminder by hand.

        Args:
            user_id: Owner of the reminder
            title: Short title, required
            due_date: Calendar date the reminder is due
            pet_id: Pet the reminder is about, None for a general reminder
            description: Optional details
            due_time: Optional HH:MM time
            reminder_type: One of the reminder types

        Returns:
            The stored reminder

        Raises:
            ValidationError: If the title or date is missing or invalid
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("Reminder title is required")
        if not due_date:
            raise ValidationError("Reminder date is required")

        reminder = build_model(Reminder, {
            "user_id": user_id,
            "pet_id": pet_id or None,
            "title": title,
            "description": (description or "").strip() or None,
            "due_date": due_date,
            "due_time": due_time or None,
            "type": reminder_type or "general"
        })
        self.store.insert("reminders", [reminder.model_dump()])
        logger.info("Created reminder", extra={
            "reminder_id": reminder.reminder_id,
            "type": reminder.type,
            "due_date": reminder.due_date.isoformat()
        })
        return reminder

    def complete_reminder(self, user_id: str, reminder_id: str) -> Reminder:
        """
        Mark a reminder as completed.

        Completing is terminal; completing twice is a no-op.

        Raises:
            RecordNotFoundError: If the reminder does not exist
        """
        item = self.store.get("reminders", user_id, reminder_id)
        if not item:
            raise RecordNotFoundError(f"No reminder '{reminder_id}'")
        reminder = build_model(Reminder, item)
        if reminder.completed:
            return reminder

        updated = self.store.update("reminders", user_id, reminder_id, {"completed": True})
        logger.info("Completed reminder", extra={"reminder_id": reminder_id})
        return build_model(Reminder, updated)

    def list_reminders(self, user_id: str, pet_id: Optional[str] = None) -> List[Reminder]:
        """List reminders ordered by due date."""
        items = self.store.query("reminders", user_id, pet_id=pet_id, order_by="due_date")
        return [build_model(Reminder, item) for item in items]

    def upcoming_reminders(
        self,
        user_id: str,
        today: Optional[date] = None,
        days: int = UPCOMING_WINDOW_DAYS
    ) -> List[Reminder]:
        """Incomplete reminders due within the next days, for the dashboard."""
        return filter_upcoming(self.list_reminders(user_id), today or self.clock(), days)

    def pending_reminders(self, user_id: str, today: Optional[date] = None) -> List[Reminder]:
        """Incomplete reminders due today or later."""
        return filter_pending(self.list_reminders(user_id), today or self.clock())

    def reminders_on(self, user_id: str, day: date) -> List[Reminder]:
        """Reminders due on a calendar day."""
        return filter_on_day(self.list_reminders(user_id), day)
