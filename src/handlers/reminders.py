"""
Lambda handler for reminders.

Routes:
    GET  /reminders?view=upcoming|pending|day|all[&date=YYYY-MM-DD][&pet_id=...]
    POST /reminders
    POST /reminders/{reminder_id}/complete
"""
from typing import Any, Dict

from aws_lambda_powertools import Logger, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from src.services.exceptions import PetCareError, ValidationError
from src.services.reminders import ReminderService
from src.utils.clients import get_store
from src.utils.dates import parse_calendar_date
from src.utils.http import (
    error_response,
    get_user_id,
    json_response,
    parse_body,
    path_param,
    query_param
)

logger = Logger()
tracer = Tracer()

def _list(service: ReminderService, user_id: str, event: Dict[str, Any]) -> Dict[str, Any]:
    view = query_param(event, "view", "upcoming")
    if view == "upcoming":
        days = query_param(event, "days")
        if days is not None and not days.isdigit():
            raise ValidationError(f"Invalid days '{days}'")
        reminders = (
            service.upcoming_reminders(user_id, days=int(days))
            if days is not None else service.upcoming_reminders(user_id)
        )
    elif view == "pending":
        reminders = service.pending_reminders(user_id)
    elif view == "day":
        day = query_param(event, "date")
        if not day:
            raise ValidationError("Missing date for day view")
        reminders = service.reminders_on(user_id, parse_calendar_date(day))
    elif view == "all":
        reminders = service.list_reminders(user_id, query_param(event, "pet_id"))
    else:
        raise ValidationError(f"Unknown view '{view}'")
    return json_response(200, {"reminders": [r.model_dump(mode="json") for r in reminders]})

def route(event: Dict[str, Any], service: ReminderService) -> Dict[str, Any]:
    """Dispatch a proxy event to the reminder service."""
    method = event.get("httpMethod", "GET").upper()
    user_id = get_user_id(event)
    reminder_id = path_param(event, "reminder_id")

    if method == "GET":
        return _list(service, user_id, event)
    if method == "POST" and reminder_id:
        reminder = service.complete_reminder(user_id, reminder_id)
        return json_response(200, {"reminder": reminder.model_dump(mode="json")})
    if method == "POST":
        body = parse_body(event)
        reminder = service.create_reminder(
            user_id,
            title=body.get("title"),
            due_date=body.get("due_date"),
            pet_id=body.get("pet_id"),
            description=body.get("description"),
            due_time=body.get("due_time"),
            reminder_type=body.get("type", "general")
        )
        return json_response(201, {"reminder": reminder.model_dump(mode="json")})
    return json_response(405, {"error": f"Method {method} not allowed"})

@logger.inject_lambda_context
@tracer.capture_lambda_handler
def handler(event: Dict, context: LambdaContext) -> Dict:
    """Handle reminder requests."""
    try:
        return route(event, ReminderService(get_store()))
    except PetCareError as e:
        logger.warning("Reminder request failed", extra={
            "error": str(e),
            "error_type": e.__class__.__name__
        })
        return error_response(e)
    except Exception as e:
        logger.exception("Error handling reminder request")
        return error_response(e)
