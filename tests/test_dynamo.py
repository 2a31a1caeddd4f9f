"""
Tests for DynamoDB access and the care store.
"""
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import Mock, patch

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from src.services.exceptions import PersistenceError, RecordNotFoundError
from src.utils import dynamo as dynamo_module
from src.utils.dynamo import (
    CareStore,
    DynamoDBClient,
    create_pk,
    create_record_sk,
    get_dynamo,
    to_item
)

def _client_error(code: str, operation: str = "PutItem") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "failed"}}, operation)

@pytest.fixture
def mock_client():
    """DynamoDB client double."""
    return Mock(spec=DynamoDBClient)

@pytest.fixture
def store(mock_client):
    """Care store over the client double."""
    return CareStore(mock_client)

def test_keys():
    """Test partition and sort key formats."""
    assert create_pk("user-1") == "USER#user-1"
    assert create_record_sk("reminders", "r-1") == "REMINDER#r-1"
    assert create_record_sk("weight_history", "w-1") == "WEIGHT#w-1"
    assert create_record_sk("pets", "pet-1") == "PET#pet-1"
    with pytest.raises(ValueError):
        create_record_sk("invoices", "i-1")

def test_to_item():
    """Test dates and floats become DynamoDB types."""
    item = to_item({
        "due_date": date(2024, 3, 5),
        "weight": 12.8,
        "completed": True,
        "count": 3,
        "recurrence": {"interval": 1, "unit": "years"},
        "tags": [date(2024, 1, 1)],
        "notes": None,
    })

    assert item == {
        "due_date": "2024-03-05",
        "weight": Decimal("12.8"),
        "completed": True,
        "count": 3,
        "recurrence": {"interval": 1, "unit": "years"},
        "tags": ["2024-01-01"],
        "notes": None,
    }

def test_insert_single(store, mock_client):
    """Test a single record is put with its keys."""
    store.insert("reminders", [{"reminder_id": "r-1", "user_id": "user-1", "due_date": date(2024, 7, 1)}])

    mock_client.put_item.assert_called_once_with({
        "reminder_id": "r-1",
        "user_id": "user-1",
        "due_date": "2024-07-01",
        "PK": "USER#user-1",
        "SK": "REMINDER#r-1",
    })
    mock_client.transact_write.assert_not_called()

def test_insert_batch_is_transactional(store, mock_client):
    """Test several records are written in one transaction."""
    records = [{"reminder_id": f"r-{i}", "user_id": "user-1"} for i in range(3)]

    store.insert("reminders", records)

    mock_client.transact_write.assert_called_once()
    puts = mock_client.transact_write.call_args.kwargs["puts"]
    assert [p["SK"] for p in puts] == ["REMINDER#r-0", "REMINDER#r-1", "REMINDER#r-2"]

def test_insert_failure(store, mock_client):
    """Test store errors become PersistenceError."""
    mock_client.transact_write.side_effect = _client_error("TransactionCanceledException")

    with pytest.raises(PersistenceError):
        store.insert("reminders", [
            {"reminder_id": "r-1", "user_id": "user-1"},
            {"reminder_id": "r-2", "user_id": "user-1"},
        ])

def test_get(store, mock_client):
    """Test reading strips table keys."""
    mock_client.get_item.return_value = {"PK": "USER#user-1", "SK": "PET#pet-1", "pet_id": "pet-1"}

    assert store.get("pets", "user-1", "pet-1") == {"pet_id": "pet-1"}
    mock_client.get_item.assert_called_once_with({"PK": "USER#user-1", "SK": "PET#pet-1"})

    mock_client.get_item.return_value = None
    assert store.get("pets", "user-1", "missing") is None

def test_query(store, mock_client):
    """Test querying by prefix with filter, predicate and ordering."""
    mock_client.query_items.return_value = [
        {"PK": "USER#user-1", "SK": "REMINDER#a", "reminder_id": "a", "due_date": "2024-05-01", "completed": False},
        {"PK": "USER#user-1", "SK": "REMINDER#b", "reminder_id": "b", "due_date": "2024-07-01", "completed": False},
        {"PK": "USER#user-1", "SK": "REMINDER#c", "reminder_id": "c", "due_date": "2024-06-01", "completed": True},
    ]

    records = store.query(
        "reminders",
        "user-1",
        pet_id="pet-1",
        predicate=lambda r: not r["completed"],
        order_by="due_date",
        descending=True
    )

    assert [r["reminder_id"] for r in records] == ["b", "a"]
    assert "PK" not in records[0]
    kwargs = mock_client.query_items.call_args.kwargs
    assert kwargs["partition_value"] == "USER#user-1"
    assert kwargs["sort_key_condition"] == Key("SK").begins_with("REMINDER#")
    assert kwargs["filter_condition"] == Attr("pet_id").eq("pet-1")

def test_query_failure(store, mock_client):
    """Test query errors become PersistenceError."""
    mock_client.query_items.side_effect = _client_error("ProvisionedThroughputExceededException", "Query")

    with pytest.raises(PersistenceError):
        store.query("reminders", "user-1")

def test_update(store, mock_client):
    """Test partial updates use named placeholders and require the item."""
    mock_client.update_item.return_value = {
        "Attributes": {"PK": "USER#user-1", "SK": "REMINDER#r-1", "reminder_id": "r-1", "completed": True}
    }

    updated = store.update("reminders", "user-1", "r-1", {"completed": True})

    assert updated == {"reminder_id": "r-1", "completed": True}
    mock_client.update_item.assert_called_once_with(
        key={"PK": "USER#user-1", "SK": "REMINDER#r-1"},
        update_expression="SET #f0 = :v0",
        expression_values={":v0": True},
        expression_names={"#f0": "completed"},
        condition_expression="attribute_exists(PK)"
    )

def test_update_missing_record(store, mock_client):
    """Test updating a missing item reports not found."""
    mock_client.update_item.side_effect = _client_error("ConditionalCheckFailedException", "UpdateItem")

    with pytest.raises(RecordNotFoundError):
        store.update("reminders", "user-1", "missing", {"completed": True})

def test_delete_by_predicate(store, mock_client):
    """Test deleting only the matching records."""
    mock_client.query_items.return_value = [
        {"reminder_id": "a", "title": "Vacuna: Rabies"},
        {"reminder_id": "b", "title": "Bath"},
    ]

    assert store.delete("reminders", "user-1", lambda r: "Rabies" in r["title"]) == 1
    mock_client.delete_item.assert_called_once_with({"PK": "USER#user-1", "SK": "REMINDER#a"})

def test_replace(store, mock_client):
    """Test stale and fresh records go in one transaction."""
    store.replace(
        "reminders",
        "user-1",
        [{"reminder_id": "old"}],
        [{"reminder_id": "new", "user_id": "user-1"}]
    )

    mock_client.transact_write.assert_called_once_with(
        puts=[{"reminder_id": "new", "user_id": "user-1", "PK": "USER#user-1", "SK": "REMINDER#new"}],
        deletes=[{"PK": "USER#user-1", "SK": "REMINDER#old"}]
    )

def test_replace_nothing(store, mock_client):
    """Test an empty replace writes nothing."""
    store.replace("reminders", "user-1", [], [])
    mock_client.transact_write.assert_not_called()

def test_replace_failure(store, mock_client):
    """Test a cancelled transaction becomes PersistenceError."""
    mock_client.transact_write.side_effect = _client_error("TransactionCanceledException")

    with pytest.raises(PersistenceError):
        store.replace("reminders", "user-1", [{"reminder_id": "old"}], [])

def test_replace_with_related(store, mock_client):
    """Test related records join the reminder transaction."""
    store.replace(
        "reminders",
        "user-1",
        [],
        [{"reminder_id": "new", "user_id": "user-1"}],
        related=[("vaccinations", {"event_id": "vac-1", "user_id": "user-1", "label": "Rabies"})]
    )

    mock_client.transact_write.assert_called_once_with(
        puts=[
            {"reminder_id": "new", "user_id": "user-1", "PK": "USER#user-1", "SK": "REMINDER#new"},
            {"event_id": "vac-1", "user_id": "user-1", "label": "Rabies",
             "PK": "USER#user-1", "SK": "VACCINATION#vac-1"},
        ],
        deletes=[]
    )

def test_write_across_collections(store, mock_client):
    """Test puts and deletes of several collections share one transaction."""
    store.write(
        "user-1",
        puts=[
            ("weight_history", {"record_id": "w-1", "user_id": "user-1", "weight_kg": 12.8}),
            ("pets", {"pet_id": "pet-1", "user_id": "user-1", "weight": 12.8}),
        ],
        deletes=[("reminders", "r-1")]
    )

    mock_client.transact_write.assert_called_once_with(
        puts=[
            {"record_id": "w-1", "user_id": "user-1", "weight_kg": Decimal("12.8"),
             "PK": "USER#user-1", "SK": "WEIGHT#w-1"},
            {"pet_id": "pet-1", "user_id": "user-1", "weight": Decimal("12.8"),
             "PK": "USER#user-1", "SK": "PET#pet-1"},
        ],
        deletes=[{"PK": "USER#user-1", "SK": "REMINDER#r-1"}]
    )

def test_write_nothing(store, mock_client):
    store.write("user-1")
    mock_client.transact_write.assert_not_called()

def test_write_failure(store, mock_client):
    """Test a rejected multi-collection write becomes PersistenceError."""
    mock_client.transact_write.side_effect = _client_error("TransactionCanceledException")

    with pytest.raises(PersistenceError, match="pets, weight_history"):
        store.write("user-1", puts=[
            ("weight_history", {"record_id": "w-1", "user_id": "user-1"}),
            ("pets", {"pet_id": "pet-1", "user_id": "user-1"}),
        ])

@patch("src.utils.dynamo.boto3")
def test_query_items_follows_pages(mock_boto3):
    """Test every page of a query is read."""
    table = mock_boto3.resource.return_value.Table.return_value
    table.query.side_effect = [
        {"Items": [{"id": 1}], "LastEvaluatedKey": {"PK": "x", "SK": "y"}},
        {"Items": [{"id": 2}]},
    ]

    items = DynamoDBClient("pets-table").query_items("PK", "USER#user-1")

    assert items == [{"id": 1}, {"id": 2}]
    assert table.query.call_args_list[1].kwargs["ExclusiveStartKey"] == {"PK": "x", "SK": "y"}

@patch("src.utils.dynamo.boto3")
def test_transact_write(mock_boto3):
    """Test transaction actions name the table."""
    resource = mock_boto3.resource.return_value
    client = DynamoDBClient("pets-table")

    client.transact_write(puts=[{"PK": "a", "SK": "b"}], deletes=[{"PK": "a", "SK": "c"}])

    resource.meta.client.transact_write_items.assert_called_once_with(TransactItems=[
        {"Delete": {"TableName": "pets-table", "Key": {"PK": "a", "SK": "c"}}},
        {"Put": {"TableName": "pets-table", "Item": {"PK": "a", "SK": "b"}}},
    ])

    with pytest.raises(ValueError):
        client.transact_write(puts=[{"PK": "a", "SK": str(i)} for i in range(101)])

def test_get_dynamo_requires_table_name(monkeypatch):
    """Test a clear error when the table is not configured."""
    monkeypatch.setattr(dynamo_module, "_dynamo_instance", None)
    monkeypatch.delenv("PET_CARE_TABLE_NAME", raising=False)

    with pytest.raises(EnvironmentError):
        get_dynamo()
