"""
Tests for pet records.
"""
import pytest
from datetime import date
from unittest.mock import ANY, call

from src.models.pet import Pet
from src.services.exceptions import RecordNotFoundError, ValidationError
from src.services.pets import (
    delete_pet,
    get_pet,
    list_pets,
    record_current_weight,
    register_pet,
    update_pet
)
from src.services.timeline import initial_weight_entry

def test_register_pet(mock_store, sample_pet):
    assert register_pet(mock_store, sample_pet) is sample_pet
    mock_store.insert.assert_called_once_with("pets", [sample_pet.model_dump()])

def test_get_pet(mock_store, sample_pet):
    """Test a stored pet is loaded with its registration date."""
    mock_store.get.return_value = sample_pet.model_dump()

    pet = get_pet(mock_store, "user-1", "pet-1")

    assert pet == sample_pet
    assert pet.created_on == date(2024, 1, 5)
    mock_store.get.assert_called_once_with("pets", "user-1", "pet-1")

def test_get_missing_pet(mock_store):
    with pytest.raises(RecordNotFoundError):
        get_pet(mock_store, "user-1", "ghost")

def test_get_pet_rejects_bad_record(mock_store):
    """Test a corrupt stored weight is a validation error."""
    mock_store.get.return_value = {"pet_id": "pet-1", "user_id": "user-1", "name": "Luna", "weight": -2}

    with pytest.raises(ValidationError):
        get_pet(mock_store, "user-1", "pet-1")

def test_list_pets(mock_store):
    """Test pets are listed in registration order."""
    mock_store.query.return_value = [
        {"pet_id": "pet-1", "user_id": "user-1", "name": "Luna", "created_at": "2024-01-05T14:30:00+00:00"},
        {"pet_id": "pet-2", "user_id": "user-1", "name": "Milo", "created_at": "2024-02-11T09:00:00+00:00"},
    ]

    pets = list_pets(mock_store, "user-1")

    assert [p.name for p in pets] == ["Luna", "Milo"]
    assert all(isinstance(p, Pet) for p in pets)
    mock_store.query.assert_called_once_with("pets", "user-1", order_by="created_at")

def test_initial_weight_defaults_to_weight():
    """Test a new pet's registration weight is its baseline."""
    pet = Pet(user_id="user-1", name="Luna", weight=12.5)
    assert pet.initial_weight == 12.5

    stored = Pet(user_id="user-1", name="Luna", weight=14.0, initial_weight=None)
    assert stored.initial_weight is None

def test_blank_name_rejected():
    with pytest.raises(ValueError):
        Pet(user_id="user-1", name="   ")

def test_update_pet(mock_store, sample_pet):
    """Test only the changed attributes are written."""
    mock_store.get.return_value = sample_pet.model_dump()

    pet = update_pet(mock_store, "user-1", "pet-1", {
        "name": "Luna Bella",
        "age_months": 30,
        "pet_id": "hijacked",
        "created_at": "2020-01-01T00:00:00+00:00",
    })

    assert pet.pet_id == "pet-1"
    assert pet.name == "Luna Bella"
    assert pet.age_months == 30
    assert pet.created_at == sample_pet.created_at
    mock_store.update.assert_called_once_with(
        "pets", "user-1", "pet-1", {"name": "Luna Bella", "age_months": 30}
    )

def test_update_pet_weight_keeps_baseline(mock_store, sample_pet):
    """Test editing the weight does not move the registration baseline."""
    mock_store.get.return_value = sample_pet.model_dump()

    pet = update_pet(mock_store, "user-1", "pet-1", {"weight": 14.2})

    assert pet.weight == 14.2
    assert pet.initial_weight == 12.5
    mock_store.update.assert_called_once_with("pets", "user-1", "pet-1", {"weight": 14.2})

def test_update_pet_invalid(mock_store, sample_pet):
    """Test invalid or empty edits write nothing."""
    mock_store.get.return_value = sample_pet.model_dump()

    with pytest.raises(ValidationError):
        update_pet(mock_store, "user-1", "pet-1", {"weight": -1})
    with pytest.raises(ValidationError):
        update_pet(mock_store, "user-1", "pet-1", {"name": ""})
    with pytest.raises(ValidationError):
        update_pet(mock_store, "user-1", "pet-1", {"pet_id": "other", "color": "black"})

    mock_store.update.assert_not_called()

def test_update_missing_pet(mock_store):
    with pytest.raises(RecordNotFoundError):
        update_pet(mock_store, "user-1", "ghost", {"name": "Milo"})
    mock_store.update.assert_not_called()

def test_record_current_weight(sample_pet):
    """Test a measurement replaces the current weight only."""
    pet = record_current_weight(sample_pet, 13.4)

    assert pet.weight == 13.4
    assert pet.initial_weight == 12.5
    assert sample_pet.weight == 12.5

    baseline = initial_weight_entry(pet, [])
    assert baseline.weight_kg == 12.5
    assert baseline.date == date(2024, 1, 5)

def test_delete_pet(mock_store, sample_pet):
    """Test a pet's records are deleted before the pet."""
    mock_store.get.return_value = sample_pet.model_dump()
    mock_store.delete.side_effect = [2, 1, 3, 4]

    assert delete_pet(mock_store, "user-1", "pet-1") == 10

    assert mock_store.delete.call_args_list == [
        call("vaccinations", "user-1", ANY, pet_id="pet-1"),
        call("dewormings", "user-1", ANY, pet_id="pet-1"),
        call("weight_history", "user-1", ANY, pet_id="pet-1"),
        call("reminders", "user-1", ANY, pet_id="pet-1"),
    ]
    mock_store.delete_one.assert_called_once_with("pets", "user-1", "pet-1")

def test_delete_missing_pet(mock_store):
    with pytest.raises(RecordNotFoundError):
        delete_pet(mock_store, "user-1", "ghost")
    mock_store.delete.assert_not_called()
    mock_store.delete_one.assert_not_called()
