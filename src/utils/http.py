"""
Helpers for API Gateway proxy requests and responses.
"""
import json
from typing import Any, Dict, Optional

from src.services.exceptions import (
    PersistenceError,
    RecordNotFoundError,
    ValidationError
)

def json_response(status_code: int, body: Any) -> Dict[str, Any]:
    """Build an API Gateway proxy response with a JSON body."""
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, default=str)
    }

def error_response(error: Exception) -> Dict[str, Any]:
    """
    Translate a service error into a response.

    ValidationError maps to 400, RecordNotFoundError to 404,
    PersistenceError to 502 and anything else to 500.
    """
    if isinstance(error, ValidationError):
        return json_response(400, {"error": str(error)})
    if isinstance(error, RecordNotFoundError):
        return json_response(404, {"error": str(error)})
    if isinstance(error, PersistenceError):
        return json_response(502, {"error": "Storage unavailable, please try again"})
    return json_response(500, {"error": "Internal server error"})

def parse_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Parse the JSON body of a proxy event.

    Raises:
        ValidationError: If the body is not a JSON object
    """
    body = event.get("body") or {}
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Request body is not valid JSON: {e.msg}")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body

def path_param(event: Dict[str, Any], name: str) -> Optional[str]:
    """Get a path parameter, None if absent."""
    return (event.get("pathParameters") or {}).get(name)

def query_param(event: Dict[str, Any], name: str, default: Optional[str] = None) -> Optional[str]:
    """Get a query string parameter."""
    return (event.get("queryStringParameters") or {}).get(name, default)

def get_user_id(event: Dict[str, Any]) -> str:
    """
    Extract the calling user's id.

    Uses the Cognito authorizer subject claim, falling back to a user_id
    field in the body.

    Raises:
        ValidationError: If no user id can be determined
    """
    claims = (
        (event.get("requestContext") or {})
        .get("authorizer", {})
        .get("claims", {})
    )
    user_id = claims.get("sub")
    if not user_id:
        body = event.get("body")
        if isinstance(body, str):
            try:
                body = json.loads(body)
            except json.JSONDecodeError:
                body = None
        if isinstance(body, dict):
            user_id = body.get("user_id")
    if not user_id:
        raise ValidationError("Missing user_id")
    return str(user_id)
