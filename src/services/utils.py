"""
Shared utility functions for pet care services.
"""
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from src.services.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

def build_model(model_cls: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    """
    Build a model from raw data, raising the service ValidationError.

    Args:
        model_cls: Pydantic model class
        data: Raw attribute dictionary (request body or stored item)

    Returns:
        Validated model instance

    Raises:
        ValidationError: If the data does not satisfy the model

    Example:
        >>> event = build_model(CareEvent, body)
    """
    try:
        return model_cls(**data)
    except ModelValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'value'}: {error['msg']}"
            for error in e.errors()
        )
        raise ValidationError(f"Invalid {model_cls.__name__}: {problems}")
