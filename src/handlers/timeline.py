"""
Lambda handler for a pet's care timeline.

Routes:
    GET /pets/{pet_id}/timeline?order=asc|desc
    GET /pets/{pet_id}/timeline?view=weights
"""
from typing import Any, Dict

from aws_lambda_powertools import Logger, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from src.services.exceptions import PetCareError, ValidationError
from src.services.timeline import TimelineService
from src.utils.clients import get_store
from src.utils.http import error_response, get_user_id, json_response, path_param, query_param

logger = Logger()
tracer = Tracer()

def route(event: Dict[str, Any], service: TimelineService) -> Dict[str, Any]:
    """Build the requested timeline view."""
    user_id = get_user_id(event)
    pet_id = path_param(event, "pet_id")
    if not pet_id:
        raise ValidationError("Missing pet_id")

    if query_param(event, "view") == "weights":
        entries = service.get_weight_series(user_id, pet_id)
    else:
        order = query_param(event, "order", "desc")
        if order not in ("asc", "desc"):
            raise ValidationError(f"Invalid order '{order}'")
        entries = service.get_timeline(user_id, pet_id, descending=order == "desc")

    logger.info("Built timeline", extra={"pet_id": pet_id, "entry_count": len(entries)})
    return json_response(200, {
        "pet_id": pet_id,
        "events": [entry.model_dump(mode="json") for entry in entries]
    })

@logger.inject_lambda_context
@tracer.capture_lambda_handler
def handler(event: Dict, context: LambdaContext) -> Dict:
    """Handle timeline requests."""
    try:
        return route(event, TimelineService(get_store()))
    except PetCareError as e:
        logger.warning("Timeline request failed", extra={
            "error": str(e),
            "error_type": e.__class__.__name__
        })
        return error_response(e)
    except Exception as e:
        logger.exception("Error building timeline")
        return error_response(e)
