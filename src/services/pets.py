"""
Service functions for pet records.

Deleting a pet also deletes its vaccines, dewormings, weight history and
reminders. The pet itself is deleted last, so a delete that fails part way
can simply be retried.
"""
from typing import Any, Dict, List

from aws_lambda_powertools import Logger

from src.models.pet import Pet
from src.services.exceptions import RecordNotFoundError, ValidationError
from src.services.utils import build_model
from src.utils.dynamo import CareStore

logger = Logger()

# Attributes an edit may not change
IMMUTABLE_PET_FIELDS = ("pet_id", "user_id", "created_at")

# Collections whose records belong to a pet
PET_RECORD_COLLECTIONS = ("vaccinations", "dewormings", "weight_history", "reminders")

def register_pet(store: CareStore, pet: Pet) -> Pet:
    """Store a new pet."""
    store.insert("pets", [pet.model_dump()])
    logger.info("Registered pet", extra={"pet_id": pet.pet_id, "species": pet.species})
    return pet

def get_pet(store: CareStore, user_id: str, pet_id: str) -> Pet:
    """
    Load a pet.

    Raises:
        RecordNotFoundError: If the pet does not exist
    """
    item = store.get("pets", user_id, pet_id)
    if not item:
        raise RecordNotFoundError(f"No pet '{pet_id}'")
    return build_model(Pet, item)

def list_pets(store: CareStore, user_id: str) -> List[Pet]:
    """List a user's pets in registration order."""
    return [
        build_model(Pet, item)
        for item in store.query("pets", user_id, order_by="created_at")
    ]

def update_pet(store: CareStore, user_id: str, pet_id: str, changes: Dict[str, Any]) -> Pet:
    """
    Apply changes to a pet's details.

    Args:
        store: Care store
        user_id: Owner of the pet
        pet_id: Pet to edit
        changes: Attributes to change (name, species, breed, age_months, weight)

    Returns:
        The updated pet

    Raises:
        RecordNotFoundError: If the pet does not exist
        ValidationError: If the changes leave the pet invalid
    """
    pet = get_pet(store, user_id, pet_id)
    changes = {k: v for k, v in changes.items() if k not in IMMUTABLE_PET_FIELDS}
    updated = build_model(Pet, {**pet.model_dump(), **changes})

    patch = {field: getattr(updated, field) for field in changes if field in Pet.model_fields}
    if not patch:
        raise ValidationError("No pet attributes to change")
    store.update("pets", user_id, pet_id, patch)
    logger.info("Updated pet", extra={"pet_id": pet_id, "changed_fields": sorted(patch)})
    return updated

def record_current_weight(pet: Pet, weight_kg: float) -> Pet:
    """Copy of a pet whose current weight is a new measurement."""
    return pet.model_copy(update={"weight": weight_kg})

def delete_pet(store: CareStore, user_id: str, pet_id: str) -> int:
    """
    Delete a pet and every record that belongs to it.

    Returns:
        Number of dependent records deleted

    Raises:
        RecordNotFoundError: If the pet does not exist
    """
    get_pet(store, user_id, pet_id)
    deleted = 0
    for collection in PET_RECORD_COLLECTIONS:
        deleted += store.delete(collection, user_id, lambda record: True, pet_id=pet_id)
    store.delete_one("pets", user_id, pet_id)
    logger.info("Deleted pet", extra={"pet_id": pet_id, "records_deleted": deleted})
    return deleted
