"""
Lambda handlers package for AWS Lambda functions.
"""
from .care_events import handler as care_events_handler
from .pets import handler as pets_handler
from .reminders import handler as reminders_handler
from .timeline import handler as timeline_handler

__all__ = ["care_events_handler", "pets_handler", "reminders_handler", "timeline_handler"]
