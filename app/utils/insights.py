"""
Insight Generation Service
Turns a FinancialSnapshot into a few short observations via Amazon Bedrock
"""
import json
import logging
import re
from typing import Any, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, Field, ValidationError, field_validator

from app.utils.snapshot import FinancialSnapshot

logger = logging.getLogger(__name__)

MAX_INSIGHTS = 3

PROMPT_TEMPLATE = """You are a personal finance assistant. Below is a JSON snapshot of a user's finances.
Amounts are in {currency}. "change" values and "percentage" values are fractions (0.25 means 25%).

{snapshot}

Write at most {max_insights} short, factual observations, one sentence each. Only mention:
- a category whose spending increased by 15% or more compared to last month,
- an asset type that makes up 60% or more of the portfolio,
- an expense growth streak of 3 or more consecutive months.
If none of these apply, return an empty list. Do not give generic advice.

Reply with JSON only, exactly in this form: {{"insights": ["...", "..."]}}"""

_FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


class InsightGenerationError(Exception):
    """Raised when the model call fails or its reply does not match the schema."""


class InsightsOutput(BaseModel):
    insights: List[str] = Field(default_factory=list)

    @field_validator("insights")
    @classmethod
    def clean_insights(cls, value: List[str]) -> List[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        return cleaned[:MAX_INSIGHTS]


def build_prompt(snapshot: FinancialSnapshot, currency: str = "USD") -> str:
    return PROMPT_TEMPLATE.format(
        currency=currency,
        snapshot=json.dumps(snapshot.to_dict(), indent=2, sort_keys=True),
        max_insights=MAX_INSIGHTS,
    )


def parse_insights(text: str) -> List[str]:
    """Validate a model reply into at most MAX_INSIGHTS strings."""
    match = _FENCED_JSON.search(text)
    if match:
        text = match.group(1)
    else:
        start, end = text.find("{"), text.rfind("}")
        if start != -1 and end > start:
            text = text[start:end + 1]

    try:
        return InsightsOutput.model_validate_json(text).insights
    except ValidationError as e:
        raise InsightGenerationError(f"Model reply did not match the insights schema: {e}") from e


class InsightGenerator:
    """
    Wraps the Bedrock runtime ``converse`` call behind ``generate(snapshot)``.
    The client is injected so the service can be exercised without AWS.
    """

    def __init__(self, client: Any, model_id: str, max_tokens: int = 512, temperature: float = 0.2) -> None:
        self._client = client
        self._model_id = model_id
        self._max_tokens = max_tokens
        self._temperature = temperature

    @classmethod
    def from_settings(cls, settings) -> "InsightGenerator":
        client = boto3.client("bedrock-runtime", region_name=settings.BEDROCK_REGION)
        return cls(client, settings.BEDROCK_MODEL_ID, max_tokens=settings.INSIGHTS_MAX_TOKENS)

    def generate(self, snapshot: FinancialSnapshot, currency: str = "USD") -> List[str]:
        prompt = build_prompt(snapshot, currency)
        logger.info(f"Requesting insights from {self._model_id} for {snapshot.generated_for}")

        try:
            response = self._client.converse(
                modelId=self._model_id,
                messages=[{"role": "user", "content": [{"text": prompt}]}],
                inferenceConfig={"maxTokens": self._max_tokens, "temperature": self._temperature},
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Bedrock converse failed: {error_code}: {str(e)}")
            raise InsightGenerationError(f"{error_code}: {str(e)}") from e
        except BotoCoreError as e:
            logger.error(f"Bedrock converse failed: {str(e)}")
            raise InsightGenerationError(str(e)) from e

        text = _reply_text(response)
        if text is None:
            raise InsightGenerationError("Model returned no text content")

        insights = parse_insights(text)
        logger.info(f"Generated {len(insights)} insights")
        return insights


def _reply_text(response: dict) -> Optional[str]:
    content = response.get("output", {}).get("message", {}).get("content", [])
    parts = [block["text"] for block in content if isinstance(block, dict) and "text" in block]
    return "".join(parts) if parts else None
