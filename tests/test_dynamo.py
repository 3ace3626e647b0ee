from decimal import Decimal
from types import SimpleNamespace

from botocore.exceptions import ClientError

from app.db.dynamo import DynamoRepository, _convert_for_dynamo, _from_dynamo

settings = SimpleNamespace(
    DYNAMO_REGION="eu-west-1",
    DYNAMO_USERS_TABLE="users",
    DYNAMO_TRANSACTIONS_TABLE="transactions",
    DYNAMO_ASSETS_TABLE="assets",
)


class FakeTable:
    def __init__(self, name, pages=None, error=None):
        self.name = name
        self.pages = pages or [[]]
        self.error = error
        self.put_items = []

    def query(self, **kwargs):
        if self.error:
            raise self.error
        index = kwargs.get("ExclusiveStartKey", {}).get("page", 0)
        response = {"Items": self.pages[index]}
        if index + 1 < len(self.pages):
            response["LastEvaluatedKey"] = {"page": index + 1}
        return response

    def put_item(self, Item):
        self.put_items.append(Item)


class FakeResource:
    def __init__(self, tables):
        self.tables = tables

    def Table(self, name):
        return self.tables.setdefault(name, FakeTable(name))


def test_convert_round_trip_for_dynamo():
    item = {"amount": 350.75, "count": 3, "nested": [{"value": 0.1}]}
    converted = _convert_for_dynamo(item)

    assert converted == {"amount": Decimal("350.75"), "count": 3, "nested": [{"value": Decimal("0.1")}]}
    assert _from_dynamo(converted) == item
    assert _from_dynamo(Decimal("1500")) == 1500
    assert isinstance(_from_dynamo(Decimal("1500")), int)


def test_list_transactions_pages_and_sorts_newest_first():
    table = FakeTable("transactions", pages=[
        [
            {"transaction_id": "a", "amount": Decimal("10.5"), "date": "2025-10-01T00:00:00Z"},
            {"transaction_id": "b", "amount": Decimal("20"), "date": None},
        ],
        [{"transaction_id": "c", "amount": Decimal("30"), "date": "2025-11-01T00:00:00Z"}],
    ])
    repo = DynamoRepository(settings, resource=FakeResource({"transactions": table}))

    items = repo.list_transactions("user-1")
    assert [item["transaction_id"] for item in items] == ["c", "a", "b"]
    assert items[1]["amount"] == 10.5
    assert [item["transaction_id"] for item in repo.list_transactions("user-1", limit=2)] == ["c", "a"]


def test_query_errors_degrade_to_empty_list():
    error = ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}}, "Query")
    table = FakeTable("assets", error=error)
    repo = DynamoRepository(settings, resource=FakeResource({"assets": table}))

    assert repo.list_assets("user-1") == []


def test_put_transaction_converts_floats():
    table = FakeTable("transactions")
    repo = DynamoRepository(settings, resource=FakeResource({"transactions": table}))

    assert repo.put_transaction({"user_id": "u", "transaction_id": "t", "amount": 12.34})
    assert table.put_items == [{"user_id": "u", "transaction_id": "t", "amount": Decimal("12.34")}]
