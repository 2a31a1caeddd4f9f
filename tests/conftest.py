"""
Pytest configuration and shared fixtures.
"""
import json
from dataclasses import dataclass
from datetime import date
from typing import Dict, List
from unittest.mock import Mock

import pytest

from src.models.care_event import CareEvent
from src.models.pet import Pet, WeightRecord
from src.utils.dynamo import CareStore

TODAY = date(2024, 6, 1)

@pytest.fixture
def today() -> date:
    """Fixed current date for scheduling tests."""
    return TODAY

@pytest.fixture
def rabies_vaccine() -> CareEvent:
    """Yearly rabies vaccine administered five years ago."""
    return CareEvent(
        event_id="vac-1",
        pet_id="pet-1",
        user_id="user-1",
        event_type="vaccine",
        label="Rabies",
        occurred_on="2019-03-15",
        recurrence={"enabled": True, "unit": "years", "interval": 1}
    )

@pytest.fixture
def monthly_deworming() -> CareEvent:
    """Monthly deworming administered in the spring."""
    return CareEvent(
        event_id="dew-1",
        pet_id="pet-1",
        user_id="user-1",
        event_type="deworming",
        label="Drontal",
        occurred_on="2024-03-10",
        recurrence={"enabled": True, "unit": "months", "interval": 1}
    )

@pytest.fixture
def sample_pet() -> Pet:
    """Pet registered with a baseline weight."""
    return Pet(
        pet_id="pet-1",
        user_id="user-1",
        name="Luna",
        species="dog",
        weight=12.5,
        created_at="2024-01-05T14:30:00+00:00"
    )

@pytest.fixture
def weight_records() -> List[WeightRecord]:
    """Weight measurements after registration."""
    return [
        WeightRecord(record_id="w-1", pet_id="pet-1", user_id="user-1",
                     weight_kg=12.8, recorded_on="2024-01-10"),
        WeightRecord(record_id="w-2", pet_id="pet-1", user_id="user-1",
                     weight_kg=13.1, recorded_on="2024-03-01", notes="After winter"),
    ]

@pytest.fixture
def mock_store() -> Mock:
    """CareStore double with empty query results."""
    store = Mock(spec=CareStore)
    store.query.return_value = []
    store.get.return_value = None
    return store

@dataclass
class FakeLambdaContext:
    """Minimal Lambda context for handler tests."""
    function_name: str = "pet-care-test"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:pet-care-test"
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"

@pytest.fixture
def lambda_context() -> FakeLambdaContext:
    """Lambda context for decorated handlers."""
    return FakeLambdaContext()

def make_api_event(
    method: str,
    path_parameters: Dict = None,
    body: Dict = None,
    query: Dict = None,
    user_id: str = "user-1"
) -> Dict:
    """Build an API Gateway proxy event for a signed-in user."""
    return {
        "httpMethod": method,
        "path": "/test",
        "pathParameters": path_parameters or {},
        "queryStringParameters": query,
        "body": json.dumps(body) if body is not None else None,
        "requestContext": {"authorizer": {"claims": {"sub": user_id}}}
    }

@pytest.fixture
def api_event():
    """Factory for API Gateway proxy events."""
    return make_api_event
