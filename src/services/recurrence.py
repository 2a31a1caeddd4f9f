"""
Service module for recurring care reminders.

Projects the future due dates of a vaccine or deworming from the day it was
administered and its recurrence rule. A backlog of intervals that already
elapsed collapses into a single upcoming occurrence, and nothing is ever
projected past the horizon of REMINDER_HORIZON_YEARS from today.

Vaccines materialize the whole remaining series. Dewormings materialize only
the next occurrence; it is rolled forward when the event is edited.

Typical usage:
    reminders = build_reminders(event, today=date(2024, 6, 1))
    store.insert("reminders", reminders)
"""
from datetime import date
from typing import Iterator, List, Optional

from src.models.care_event import CareEvent, Recurrence
from src.models.reminder import Reminder
from src.services.constants import (
    EVENT_REMINDER_TYPES,
    REMINDER_DESCRIPTIONS,
    REMINDER_HORIZON_YEARS
)
from src.services.exceptions import ValidationError
from src.utils.dates import INTERVAL_UNITS, add_interval

def horizon_for(today: date) -> date:
    """Latest due date that may be materialized for a given today."""
    return add_interval(today, "years", REMINDER_HORIZON_YEARS)

def _check_recurrence(recurrence: Recurrence) -> None:
    if recurrence.interval is None or recurrence.interval <= 0:
        raise ValidationError(
            f"Recurrence interval must be a positive integer, got {recurrence.interval}"
        )
    if recurrence.unit not in INTERVAL_UNITS:
        raise ValidationError(f"Unsupported recurrence unit '{recurrence.unit}'")

def iter_occurrences(start: date, recurrence: Recurrence, today: date) -> Iterator[date]:
    """
    Yield occurrences after start, beginning at the first one still due.

    Occurrence k is start + k * interval computed from the anchor date, so
    month-end clamping never accumulates (Jan 31 monthly stays on month-end).
    If start is in the past, occurrences before today are skipped.

    Args:
        start: Date the care was administered
        recurrence: Rule with unit and positive interval
        today: Current calendar date

    Yields:
        Occurrence dates in increasing order, without end
    """
    _check_recurrence(recurrence)
    step = 1
    occurrence = add_interval(start, recurrence.unit, recurrence.interval)
    if start < today:
        while occurrence < today:
            step += 1
            occurrence = add_interval(start, recurrence.unit, recurrence.interval * step)
    while True:
        yield occurrence
        step += 1
        occurrence = add_interval(start, recurrence.unit, recurrence.interval * step)

def project_vaccine_due_dates(event: CareEvent, today: Optional[date] = None) -> List[date]:
    """
    Project every vaccine booster due date up to the horizon.

    Args:
        event: Vaccine care event
        today: Date to project from, defaults to current date

    Returns:
        Ordered due dates, empty if recurrence is absent or disabled

    Example:
        >>> event = CareEvent(..., occurred_on="2019-03-15",
        ...                   recurrence={"unit": "years", "interval": 1})
        >>> project_vaccine_due_dates(event, date(2024, 6, 1))[0]
        datetime.date(2025, 3, 15)
    """
    if not event.has_recurrence:
        return []
    if today is None:
        today = date.today()

    horizon = horizon_for(today)
    due_dates = []
    for occurrence in iter_occurrences(event.occurred_on, event.recurrence, today):
        if occurrence > horizon:
            break
        due_dates.append(occurrence)
    return due_dates

def project_deworming_due_date(event: CareEvent, today: Optional[date] = None) -> Optional[date]:
    """
    Project only the next deworming due date.

    Args:
        event: Deworming care event
        today: Date to project from, defaults to current date

    Returns:
        Next due date, or None if recurrence is off or it falls past the horizon
    """
    if not event.has_recurrence:
        return None
    if today is None:
        today = date.today()

    occurrence = next(iter_occurrences(event.occurred_on, event.recurrence, today))
    if occurrence > horizon_for(today):
        return None
    return occurrence

def project_due_dates(event: CareEvent, today: Optional[date] = None) -> List[date]:
    """Project the due dates to materialize for any care event."""
    if event.event_type == "vaccine":
        return project_vaccine_due_dates(event, today)
    if event.event_type == "deworming":
        next_due = project_deworming_due_date(event, today)
        return [next_due] if next_due else []
    raise ValidationError(f"Unsupported care event type '{event.event_type}'")

def build_reminders(event: CareEvent, today: Optional[date] = None) -> List[Reminder]:
    """
    Build the reminders owned by a care event.

    Args:
        event: Vaccine or deworming care event
        today: Date to project from, defaults to current date

    Returns:
        Unsaved reminders, one per projected due date
    """
    description = REMINDER_DESCRIPTIONS[event.event_type].format(label=event.label)
    return [
        Reminder(
            user_id=event.user_id,
            pet_id=event.pet_id,
            title=event.reminder_title,
            description=description,
            due_date=due_date,
            type=EVENT_REMINDER_TYPES[event.event_type],
            source_event_id=event.event_id
        )
        for due_date in project_due_dates(event, today)
    ]
