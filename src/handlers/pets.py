"""
Lambda handler for pet records.

Routes:
    GET    /pets
    POST   /pets
    GET    /pets/{pet_id}
    PUT    /pets/{pet_id}
    DELETE /pets/{pet_id}
"""
from typing import Any, Dict

from aws_lambda_powertools import Logger, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from src.models.pet import Pet
from src.services.exceptions import PetCareError
from src.services.pets import delete_pet, get_pet, list_pets, register_pet, update_pet
from src.services.utils import build_model
from src.utils.clients import get_store
from src.utils.dynamo import CareStore
from src.utils.http import (
    error_response,
    get_user_id,
    json_response,
    parse_body,
    path_param
)

logger = Logger()
tracer = Tracer()

def route(event: Dict[str, Any], store: CareStore) -> Dict[str, Any]:
    """
    Dispatch a proxy event to the pet services.

    Args:
        event: API Gateway Lambda proxy event
        store: Care store to use

    Returns:
        API Gateway Lambda proxy response
    """
    method = event.get("httpMethod", "GET").upper()
    user_id = get_user_id(event)
    pet_id = path_param(event, "pet_id")

    if not pet_id:
        if method == "GET":
            pets = list_pets(store, user_id)
            return json_response(200, {"pets": [p.model_dump(mode="json") for p in pets]})
        if method == "POST":
            body = parse_body(event)
            body.pop("pet_id", None)
            body.pop("created_at", None)
            pet = register_pet(store, build_model(Pet, {**body, "user_id": user_id}))
            return json_response(201, {"pet": pet.model_dump(mode="json")})
        return json_response(405, {"error": f"Method {method} not allowed"})

    if method == "GET":
        return json_response(200, {"pet": get_pet(store, user_id, pet_id).model_dump(mode="json")})
    if method == "PUT":
        pet = update_pet(store, user_id, pet_id, parse_body(event))
        return json_response(200, {"pet": pet.model_dump(mode="json")})
    if method == "DELETE":
        deleted = delete_pet(store, user_id, pet_id)
        return json_response(200, {"deleted": pet_id, "records_deleted": deleted})
    return json_response(405, {"error": f"Method {method} not allowed"})

@logger.inject_lambda_context
@tracer.capture_lambda_handler
def handler(event: Dict, context: LambdaContext) -> Dict:
    """Handle pet requests."""
    try:
        return route(event, get_store())
    except PetCareError as e:
        logger.warning("Pet request failed", extra={
            "error": str(e),
            "error_type": e.__class__.__name__
        })
        return error_response(e)
    except Exception as e:
        logger.exception("Error handling pet request")
        return error_response(e)
