import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from app.utils.dates import to_datetime

logger = logging.getLogger(__name__)

# Starter data written for new accounts when SEED_DEMO_DATA is enabled
DEMO_TRANSACTIONS = [
    {"type": "income", "category": "Salary", "amount": 5000, "notes": "Monthly pay"},
    {"type": "expense", "category": "Groceries", "amount": 350.75, "notes": "Weekly shopping"},
    {"type": "expense", "category": "Rent", "amount": 1500, "notes": "Apartment rent"},
    {"type": "expense", "category": "Utilities", "amount": 120.50, "notes": "Electricity and water"},
    {"type": "investment", "category": "Stock", "amount": 1000, "notes": "Invested in AAPL"},
    {"type": "investment", "category": "Crypto", "amount": 500, "notes": "Bought Bitcoin"},
    {"type": "expense", "category": "Dining Out", "amount": 75.20, "notes": "Dinner with friends"},
]

DEMO_ASSETS = [
    {"asset_type": "Cash", "asset_name": "Checking Account", "invested_amount": 10000, "current_value": 10000},
    {"asset_type": "Stock", "asset_name": "AAPL", "invested_amount": 5000, "current_value": 7500},
    {"asset_type": "Stock", "asset_name": "GOOGL", "invested_amount": 8000, "current_value": 9200},
    {"asset_type": "Crypto", "asset_name": "Bitcoin", "invested_amount": 2000, "current_value": 4500},
    {"asset_type": "Crypto", "asset_name": "Ethereum", "invested_amount": 3000, "current_value": 3800},
    {"asset_type": "Forex", "asset_name": "EUR/USD", "invested_amount": 1000, "current_value": 1150},
]


class DynamoRepository:
    """
    Per-user storage for users, transactions and portfolio assets.

    Every transaction and asset item is keyed by ``user_id`` first, so all
    reads are scoped to a single user.
    """

    def __init__(self, settings, resource=None):
        self._resource = resource or boto3.resource("dynamodb", region_name=settings.DYNAMO_REGION)
        self.users_table = self._resource.Table(settings.DYNAMO_USERS_TABLE)
        self.transactions_table = self._resource.Table(settings.DYNAMO_TRANSACTIONS_TABLE)
        self.assets_table = self._resource.Table(settings.DYNAMO_ASSETS_TABLE)

    # Users

    def get_user_by_email(self, email: str):
        """Query the Users table by email (assumes a GSI exists on email)."""
        try:
            response = self.users_table.query(
                IndexName="email-index",
                KeyConditionExpression=Key("email").eq(email),
            )
            return _from_dynamo(response["Items"][0]) if response["Items"] else None
        except ClientError as e:
            logger.error(f"get_user_by_email failed: {e.response['Error']['Message']}")
            return None

    def get_user_by_id(self, user_id: str):
        try:
            response = self.users_table.get_item(Key={"user_id": user_id})
            item = response.get("Item")
            return _from_dynamo(item) if item else None
        except ClientError as e:
            logger.error(f"get_user_by_id failed: {e.response['Error']['Message']}")
            return None

    def put_user(self, user_item: dict) -> bool:
        try:
            self.users_table.put_item(Item=_convert_for_dynamo(user_item))
            return True
        except ClientError as e:
            logger.error(f"put_user failed: {e.response['Error']['Message']}")
            return False

    # Transactions

    def put_transaction(self, transaction_item: dict) -> bool:
        try:
            self.transactions_table.put_item(Item=_convert_for_dynamo(transaction_item))
            return True
        except ClientError as e:
            logger.error(f"put_transaction failed: {e.response['Error']['Message']}")
            return False

    def list_transactions(self, user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        All transactions for a user, newest first by ``date``. Items whose
        date cannot be parsed sort last.
        """
        items = self._query_all(self.transactions_table, user_id)
        items.sort(key=_date_sort_key, reverse=True)
        return items[:limit] if limit else items

    def delete_transaction(self, user_id: str, transaction_id: str) -> bool:
        return self._delete(self.transactions_table, {"user_id": user_id, "transaction_id": transaction_id})

    # Portfolio

    def put_asset(self, asset_item: dict) -> bool:
        try:
            self.assets_table.put_item(Item=_convert_for_dynamo(asset_item))
            return True
        except ClientError as e:
            logger.error(f"put_asset failed: {e.response['Error']['Message']}")
            return False

    def list_assets(self, user_id: str) -> List[Dict[str, Any]]:
        return self._query_all(self.assets_table, user_id)

    def update_asset_value(self, user_id: str, asset_id: str, current_value: float):
        """Set ``current_value`` on an existing asset. Returns the updated item or None."""
        try:
            response = self.assets_table.update_item(
                Key={"user_id": user_id, "asset_id": asset_id},
                UpdateExpression="SET #v = :v",
                ConditionExpression="attribute_exists(asset_id)",
                ExpressionAttributeNames={"#v": "current_value"},
                ExpressionAttributeValues=_convert_for_dynamo({":v": float(current_value)}),
                ReturnValues="ALL_NEW",
            )
            attributes = response.get("Attributes")
            return _from_dynamo(attributes) if attributes else None
        except ClientError as e:
            if e.response["Error"].get("Code") == "ConditionalCheckFailedException":
                return None
            logger.error(f"update_asset_value failed: {e.response['Error']['Message']}")
            return None

    def delete_asset(self, user_id: str, asset_id: str) -> bool:
        return self._delete(self.assets_table, {"user_id": user_id, "asset_id": asset_id})

    def seed_demo_data(self, user_id: str) -> bool:
        """Write the demo transactions and assets for a newly registered user."""
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self.transactions_table.batch_writer() as batch:
                for tx in DEMO_TRANSACTIONS:
                    batch.put_item(Item=_convert_for_dynamo({
                        **tx,
                        "user_id": user_id,
                        "transaction_id": str(uuid4()),
                        "date": now,
                    }))
            with self.assets_table.batch_writer() as batch:
                for asset in DEMO_ASSETS:
                    batch.put_item(Item=_convert_for_dynamo({
                        **asset,
                        "user_id": user_id,
                        "asset_id": str(uuid4()),
                    }))
            return True
        except ClientError as e:
            logger.error(f"seed_demo_data failed: {e.response['Error']['Message']}")
            return False

    def _query_all(self, table, user_id: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        kwargs = {"KeyConditionExpression": Key("user_id").eq(user_id)}
        try:
            while True:
                response = table.query(**kwargs)
                items.extend(_from_dynamo(item) for item in response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            logger.error(f"query on {table.name} failed: {e.response['Error']['Message']}")
            return []
        return items

    def _delete(self, table, key: dict) -> bool:
        try:
            response = table.delete_item(Key=key, ReturnValues="ALL_OLD")
            return "Attributes" in response
        except ClientError as e:
            logger.error(f"delete on {table.name} failed: {e.response['Error']['Message']}")
            return False


def _date_sort_key(item: Dict[str, Any]):
    when = to_datetime(item.get("date"))
    return (when is not None, when.timestamp() if when else 0.0)


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal for DynamoDB compatibility.
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert Decimal instances back to native Python numeric types.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj
