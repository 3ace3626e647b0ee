import json
from datetime import datetime, timezone

import pytest
from botocore.exceptions import ClientError

from app.utils.insights import InsightGenerationError, InsightGenerator, build_prompt, parse_insights
from app.utils.snapshot import SnapshotEngine

engine = SnapshotEngine(clock=lambda: datetime(2025, 11, 15, tzinfo=timezone.utc))
snapshot = engine.create_financial_snapshot(
    [
        {"type": "expense", "category": "Groceries", "amount": 200, "date": "2025-10-05"},
        {"type": "expense", "category": "Groceries", "amount": 300, "date": "2025-11-05"},
    ],
    [{"asset_type": "Stock", "current_value": 700}, {"asset_type": "Cash", "current_value": 300}],
)


class FakeBedrockClient:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def converse(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return {"output": {"message": {"role": "assistant", "content": [{"text": self.text}]}}}


def test_prompt_embeds_snapshot_and_policy():
    prompt = build_prompt(snapshot, currency="EUR")
    assert '"expense_growth_streak": 2' in prompt
    assert "15%" in prompt and "60%" in prompt
    assert "Amounts are in EUR" in prompt


def test_generate_returns_validated_insights():
    reply = json.dumps({"insights": ["Groceries spending rose 50% from last month.", "Stocks are 70% of your portfolio."]})
    client = FakeBedrockClient(text=reply)
    generator = InsightGenerator(client, "test-model", max_tokens=256)

    insights = generator.generate(snapshot)

    assert insights == ["Groceries spending rose 50% from last month.", "Stocks are 70% of your portfolio."]
    call = client.calls[0]
    assert call["modelId"] == "test-model"
    assert call["inferenceConfig"]["maxTokens"] == 256
    assert "Groceries" in call["messages"][0]["content"][0]["text"]


def test_parse_insights_caps_and_cleans_output():
    reply = '```json\n{"insights": ["one", "  ", "two", "three", "four"]}\n```'
    assert parse_insights(reply) == ["one", "two", "three"]


def test_parse_insights_accepts_surrounding_text_and_empty_list():
    assert parse_insights('Here you go: {"insights": []} Thanks!') == []


@pytest.mark.parametrize("reply", ["no json here", '{"insights": "not a list"}', '{"insights": [1, 2]}'])
def test_parse_insights_rejects_bad_replies(reply):
    with pytest.raises(InsightGenerationError):
        parse_insights(reply)


def test_generate_wraps_client_errors():
    error = ClientError({"Error": {"Code": "ThrottlingException", "Message": "Slow down"}}, "Converse")
    generator = InsightGenerator(FakeBedrockClient(error=error), "test-model")

    with pytest.raises(InsightGenerationError, match="ThrottlingException"):
        generator.generate(snapshot)


def test_generate_rejects_reply_without_text():
    class EmptyClient:
        def converse(self, **kwargs):
            return {"output": {"message": {"content": []}}}

    with pytest.raises(InsightGenerationError):
        InsightGenerator(EmptyClient(), "test-model").generate(snapshot)
