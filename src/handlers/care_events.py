"""
Lambda handler for vaccine, deworming and weight records.

Routes:
    GET    /pets/{pet_id}/{records}
    POST   /pets/{pet_id}/{records}
    PUT    /pets/{pet_id}/{records}/{record_id}
    DELETE /pets/{pet_id}/{records}/{record_id}

where {records} is vaccinations, dewormings or weights.
"""
from typing import Any, Dict

from aws_lambda_powertools import Logger, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from src.models.care_event import CareEvent
from src.models.pet import WeightRecord
from src.services.care_events import CareEventService
from src.services.exceptions import PetCareError, ValidationError
from src.services.utils import build_model
from src.utils.clients import get_store
from src.utils.http import (
    error_response,
    get_user_id,
    json_response,
    parse_body,
    path_param
)

logger = Logger()
tracer = Tracer()

RECORD_EVENT_TYPES = {
    "vaccinations": "vaccine",
    "dewormings": "deworming",
}

def _create_event(service: CareEventService, user_id: str, pet_id: str, event_type: str, body: Dict) -> Dict:
    event = build_model(CareEvent, {
        **body,
        "user_id": user_id,
        "pet_id": pet_id,
        "event_type": event_type
    })
    event, reminders = service.record_event(event)
    return json_response(201, {
        "event": event.model_dump(mode="json"),
        "reminders": [r.model_dump(mode="json") for r in reminders]
    })

def _edit_event(service: CareEventService, user_id: str, event_type: str, event_id: str, body: Dict) -> Dict:
    event, reminders = service.edit_event(user_id, event_type, event_id, body)
    return json_response(200, {
        "event": event.model_dump(mode="json"),
        "reminders": [r.model_dump(mode="json") for r in reminders]
    })

def _handle_weights(service: CareEventService, method: str, user_id: str, pet_id: str, event: Dict) -> Dict:
    if method == "GET":
        records = service.list_weights(user_id, pet_id)
        return json_response(200, {"records": [r.model_dump(mode="json") for r in records]})
    if method == "POST":
        body = parse_body(event)
        record = build_model(WeightRecord, {**body, "user_id": user_id, "pet_id": pet_id})
        service.record_weight(record)
        return json_response(201, {"record": record.model_dump(mode="json")})
    if method == "DELETE":
        record_id = path_param(event, "record_id")
        if not record_id:
            raise ValidationError("Missing record_id")
        service.delete_weight(user_id, record_id)
        return json_response(200, {"deleted": record_id})
    return json_response(405, {"error": f"Method {method} not allowed"})

def route(event: Dict[str, Any], service: CareEventService) -> Dict[str, Any]:
    """
    Dispatch a proxy event to the care event service.

    Args:
        event: API Gateway Lambda proxy event
        service: Care event service to use

    Returns:
        API Gateway Lambda proxy response
    """
    method = event.get("httpMethod", "GET").upper()
    user_id = get_user_id(event)
    pet_id = path_param(event, "pet_id")
    records = path_param(event, "records")
    if not pet_id:
        raise ValidationError("Missing pet_id")

    if records == "weights":
        return _handle_weights(service, method, user_id, pet_id, event)

    event_type = RECORD_EVENT_TYPES.get(records)
    if not event_type:
        raise ValidationError(f"Unknown record type '{records}'")
    record_id = path_param(event, "record_id")

    if method == "GET":
        events = service.list_events(user_id, pet_id, event_type)
        return json_response(200, {"events": [e.model_dump(mode="json") for e in events]})
    if method == "POST":
        return _create_event(service, user_id, pet_id, event_type, parse_body(event))
    if not record_id:
        raise ValidationError("Missing record_id")
    if method == "PUT":
        return _edit_event(service, user_id, event_type, record_id, parse_body(event))
    if method == "DELETE":
        deleted = service.delete_event(user_id, event_type, record_id)
        return json_response(200, {"deleted": record_id, "reminders_deleted": deleted})
    return json_response(405, {"error": f"Method {method} not allowed"})

@logger.inject_lambda_context
@tracer.capture_lambda_handler
def handler(event: Dict, context: LambdaContext) -> Dict:
    """
    Handle care record requests.

    Args:
        event: API Gateway Lambda proxy event
        context: Lambda context

    Returns:
        API Gateway Lambda proxy response
    """
    try:
        return route(event, CareEventService(get_store()))
    except PetCareError as e:
        logger.warning("Care record request failed", extra={
            "error": str(e),
            "error_type": e.__class__.__name__,
            "path": event.get("path")
        })
        return error_response(e)
    except Exception as e:
        logger.exception("Error handling care record request")
        return error_response(e)
