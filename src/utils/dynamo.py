"""
DynamoDB utility functions for data access.

All pet care data lives in a single table. Items are partitioned by owner and
the sort key prefix names the collection:

    PK = USER#{user_id}
    SK = PET#{pet_id} | VACCINATION#{id} | DEWORMING#{id} | WEIGHT#{id} | REMINDER#{id}
"""
import os
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from src.services.constants import MAX_TRANSACTION_ITEMS
from src.services.exceptions import PersistenceError, RecordNotFoundError
from src.utils.dates import format_calendar_date

COLLECTION_PREFIXES = {
    "pets": "PET",
    "vaccinations": "VACCINATION",
    "dewormings": "DEWORMING",
    "weight_history": "WEIGHT",
    "reminders": "REMINDER",
}

# Attribute holding each collection's record id
COLLECTION_ID_FIELDS = {
    "pets": "pet_id",
    "vaccinations": "event_id",
    "dewormings": "event_id",
    "weight_history": "record_id",
    "reminders": "reminder_id",
}

KEY_ATTRIBUTES = ("PK", "SK")

# Singleton instance
_dynamo_instance = None

def get_dynamo() -> 'DynamoDBClient':
    """
    Get or create singleton DynamoDB client instance.

    Returns:
        DynamoDBClient: Singleton instance of DynamoDB client

    Raises:
        EnvironmentError: If PET_CARE_TABLE_NAME environment variable is not set
    """
    global _dynamo_instance
    if _dynamo_instance is None:
        try:
            table_name = os.environ['PET_CARE_TABLE_NAME']
        except KeyError:
            raise EnvironmentError(
                "PET_CARE_TABLE_NAME environment variable not set. "
                "This variable must be set to the DynamoDB table name."
            )
        _dynamo_instance = DynamoDBClient(table_name)
    return _dynamo_instance

class DynamoDBClient:
    """Client for interacting with DynamoDB table."""

    def __init__(self, table_name: str):
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        self.table_name = table_name

    def put_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """Put a single item into the table."""
        return self.table.put_item(Item=item)

    def get_item(self, key: Dict[str, str]) -> Optional[Dict[str, Any]]:
        """
        Get a single item from the table.

        Args:
            key: Dictionary containing partition key and sort key

        Returns:
            Item if found, None otherwise
        """
        response = self.table.get_item(Key=key)
        return response.get('Item')

    def query_items(
        self,
        partition_key: str,
        partition_value: str,
        sort_key_condition: Optional[Key] = None,
        filter_condition: Optional[Attr] = None
    ) -> List[Dict[str, Any]]:
        """
        Query items using partition key and optional sort key condition.

        Follows LastEvaluatedKey until every page has been read.

        Args:
            partition_key: Name of partition key
            partition_value: Value of partition key
            sort_key_condition: Optional sort key condition
            filter_condition: Optional non-key filter condition

        Returns:
            List of matching items
        """
        key_condition = Key(partition_key).eq(partition_value)
        if sort_key_condition:
            key_condition = key_condition & sort_key_condition

        params = {"KeyConditionExpression": key_condition}
        if filter_condition is not None:
            params["FilterExpression"] = filter_condition

        items = []
        while True:
            response = self.table.query(**params)
            items.extend(response.get('Items', []))
            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                return items
            params["ExclusiveStartKey"] = last_key

    def update_item(
        self,
        key: Dict[str, str],
        update_expression: str,
        expression_values: Dict[str, Any],
        expression_names: Optional[Dict[str, str]] = None,
        condition_expression: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Update an item in the table.

        Args:
            key: Dictionary containing partition key and sort key
            update_expression: Update expression
            expression_values: Expression attribute values
            expression_names: Optional expression attribute names
            condition_expression: Optional condition the item must satisfy

        Returns:
            Response from DynamoDB
        """
        params = {
            "Key": key,
            "UpdateExpression": update_expression,
            "ExpressionAttributeValues": expression_values,
            "ReturnValues": "ALL_NEW"
        }
        if expression_names:
            params["ExpressionAttributeNames"] = expression_names
        if condition_expression:
            params["ConditionExpression"] = condition_expression
        return self.table.update_item(**params)

    def delete_item(self, key: Dict[str, str]) -> Dict[str, Any]:
        """Delete an item from the table."""
        return self.table.delete_item(Key=key)

    def transact_write(
        self,
        puts: Optional[List[Dict[str, Any]]] = None,
        deletes: Optional[List[Dict[str, str]]] = None
    ) -> Dict[str, Any]:
        """
        Write puts and deletes in a single all-or-nothing transaction.

        Args:
            puts: Items to put
            deletes: Keys of items to delete

        Returns:
            Response from DynamoDB

        Raises:
            ValueError: If the transaction exceeds the DynamoDB action limit
        """
        actions = [
            {"Delete": {"TableName": self.table_name, "Key": key}}
            for key in (deletes or [])
        ]
        actions.extend(
            {"Put": {"TableName": self.table_name, "Item": item}}
            for item in (puts or [])
        )
        if len(actions) > MAX_TRANSACTION_ITEMS:
            raise ValueError(
                f"Transaction has {len(actions)} actions, limit is {MAX_TRANSACTION_ITEMS}"
            )
        # The resource client serializes plain Python values
        return self.dynamodb.meta.client.transact_write_items(TransactItems=actions)

def create_pk(user_id: str) -> str:
    """Create partition key from user ID."""
    return f"USER#{user_id}"

def create_record_sk(collection: str, record_id: str) -> str:
    """
    Create sort key for a record in a collection.

    Args:
        collection: Collection name, e.g. "reminders"
        record_id: Record identifier

    Returns:
        Sort key in format "{PREFIX}#{record_id}"
    """
    return f"{collection_prefix(collection)}{record_id}"

def collection_prefix(collection: str) -> str:
    """Sort key prefix shared by every item of a collection."""
    try:
        return f"{COLLECTION_PREFIXES[collection]}#"
    except KeyError:
        raise ValueError(f"Unknown collection '{collection}'")

def to_item(value: Any) -> Any:
    """
    Convert a model or plain value into a DynamoDB-compatible value.

    Dates become YYYY-MM-DD strings and floats become Decimals.
    """
    if isinstance(value, BaseModel):
        value = value.model_dump()
    if isinstance(value, dict):
        return {k: to_item(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_item(v) for v in value]
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, date):
        return format_calendar_date(value)
    return value

def strip_keys(item: Dict[str, Any]) -> Dict[str, Any]:
    """Drop table key attributes from a stored item."""
    return {k: v for k, v in item.items() if k not in KEY_ATTRIBUTES}

class CareStore:
    """
    Collection-oriented access to the pet care table.

    Every operation is scoped to one owner. Store failures are raised as
    PersistenceError.
    """

    def __init__(self, client: DynamoDBClient):
        self.client = client

    def _key(self, collection: str, user_id: str, record_id: str) -> Dict[str, str]:
        return {"PK": create_pk(user_id), "SK": create_record_sk(collection, record_id)}

    def _with_keys(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        item = to_item(record)
        record_id = item[COLLECTION_ID_FIELDS[collection]]
        item.update(self._key(collection, item["user_id"], record_id))
        return item

    def insert(self, collection: str, records: List[Dict[str, Any]]) -> None:
        """
        Insert records as one batch.

        Batches up to the transaction limit are all-or-nothing; larger batches
        are split into consecutive transactions.

        Args:
            collection: Collection name
            records: Records including user_id and the collection's id field
        """
        items = [self._with_keys(collection, record) for record in records]
        try:
            for start in range(0, len(items), MAX_TRANSACTION_ITEMS):
                chunk = items[start:start + MAX_TRANSACTION_ITEMS]
                if len(chunk) == 1:
                    self.client.put_item(chunk[0])
                else:
                    self.client.transact_write(puts=chunk)
        except (ClientError, BotoCoreError) as e:
            raise PersistenceError(f"Failed to insert into {collection}: {str(e)}")

    def get(self, collection: str, user_id: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Get a single record by id, None if it does not exist."""
        try:
            item = self.client.get_item(self._key(collection, user_id, record_id))
        except (ClientError, BotoCoreError) as e:
            raise PersistenceError(f"Failed to read from {collection}: {str(e)}")
        return strip_keys(item) if item else None

    def update(
        self,
        collection: str,
        user_id: str,
        record_id: str,
        patch: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Apply a partial update to an existing record.

        Returns:
            The updated record

        Raises:
            RecordNotFoundError: If the record does not exist
        """
        patch = to_item(patch)
        names = {}
        values = {}
        assignments = []
        for index, (field, value) in enumerate(patch.items()):
            names[f"#f{index}"] = field
            values[f":v{index}"] = value
            assignments.append(f"#f{index} = :v{index}")
        if not assignments:
            raise ValueError("Update patch must not be empty")

        try:
            response = self.client.update_item(
                key=self._key(collection, user_id, record_id),
                update_expression="SET " + ", ".join(assignments),
                expression_values=values,
                expression_names=names,
                condition_expression="attribute_exists(PK)"
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise RecordNotFoundError(f"No {collection} record '{record_id}'")
            raise PersistenceError(f"Failed to update {collection}: {str(e)}")
        except BotoCoreError as e:
            raise PersistenceError(f"Failed to update {collection}: {str(e)}")
        return strip_keys(response.get("Attributes", {}))

    def query(
        self,
        collection: str,
        user_id: str,
        pet_id: Optional[str] = None,
        predicate: Optional[Callable[[Dict[str, Any]], bool]] = None,
        order_by: Optional[str] = None,
        descending: bool = False
    ) -> List[Dict[str, Any]]:
        """
        Query a collection for one owner.

        Args:
            collection: Collection name
            user_id: Owner of the records
            pet_id: Optional pet to restrict to
            predicate: Optional client-side filter
            order_by: Optional attribute to sort by
            descending: Sort newest/largest first

        Returns:
            Matching records without table keys
        """
        filter_condition = Attr("pet_id").eq(pet_id) if pet_id is not None else None
        try:
            items = self.client.query_items(
                partition_key="PK",
                partition_value=create_pk(user_id),
                sort_key_condition=Key("SK").begins_with(collection_prefix(collection)),
                filter_condition=filter_condition
            )
        except (ClientError, BotoCoreError) as e:
            raise PersistenceError(f"Failed to query {collection}: {str(e)}")

        records = [strip_keys(item) for item in items]
        if predicate is not None:
            records = [record for record in records if predicate(record)]
        if order_by:
            records.sort(key=lambda record: record.get(order_by) or "", reverse=descending)
        return records

    def delete(
        self,
        collection: str,
        user_id: str,
        predicate: Callable[[Dict[str, Any]], bool],
        pet_id: Optional[str] = None
    ) -> int:
        """
        Delete every record matching a predicate.

        Returns:
            Number of records deleted
        """
        matches = self.query(collection, user_id, pet_id=pet_id, predicate=predicate)
        for record in matches:
            self.delete_one(collection, user_id, record[COLLECTION_ID_FIELDS[collection]])
        return len(matches)

    def delete_one(self, collection: str, user_id: str, record_id: str) -> None:
        """Delete a single record by id."""
        try:
            self.client.delete_item(self._key(collection, user_id, record_id))
        except (ClientError, BotoCoreError) as e:
            raise PersistenceError(f"Failed to delete from {collection}: {str(e)}")

    def write(
        self,
        user_id: str,
        puts: Optional[List[Tuple[str, Dict[str, Any]]]] = None,
        deletes: Optional[List[Tuple[str, str]]] = None
    ) -> None:
        """
        Put and delete records of one owner across collections in one transaction.

        Args:
            user_id: Owner of every record
            puts: (collection, record) pairs; existing records are overwritten
            deletes: (collection, record_id) pairs

        Raises:
            PersistenceError: If the transaction is rejected; nothing is written
        """
        put_items = [self._with_keys(collection, record) for collection, record in (puts or [])]
        delete_keys = [
            self._key(collection, user_id, record_id)
            for collection, record_id in (deletes or [])
        ]
        if not put_items and not delete_keys:
            return
        try:
            self.client.transact_write(puts=put_items, deletes=delete_keys)
        except (ClientError, BotoCoreError, ValueError) as e:
            collections = sorted({c for c, _ in (puts or [])} | {c for c, _ in (deletes or [])})
            raise PersistenceError(f"Failed to write {', '.join(collections)}: {str(e)}")

    def replace(
        self,
        collection: str,
        user_id: str,
        stale: List[Dict[str, Any]],
        fresh: List[Dict[str, Any]],
        related: Optional[List[Tuple[str, Dict[str, Any]]]] = None
    ) -> None:
        """
        Delete stale records and insert fresh ones in one transaction.

        Args:
            collection: Collection of the stale and fresh records
            user_id: Owner of the records
            stale: Records to delete
            fresh: Records to insert
            related: (collection, record) pairs put in the same transaction,
                e.g. the care event the fresh reminders belong to

        Raises:
            PersistenceError: If the transaction is rejected; nothing is written
        """
        id_field = COLLECTION_ID_FIELDS[collection]
        self.write(
            user_id,
            puts=[(collection, record) for record in fresh] + list(related or []),
            deletes=[(collection, record[id_field]) for record in stale]
        )
