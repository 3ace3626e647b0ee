from pydantic import BaseModel, Field
from typing import Literal, Optional
from uuid import uuid4
from datetime import datetime, timezone

TransactionType = Literal["income", "expense", "investment"]


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TransactionCreate(BaseModel):
    type: TransactionType
    category: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    notes: Optional[str] = None
    date: Optional[datetime] = None


class TransactionInDB(BaseModel):
    user_id: str
    # Used as a URL path segment; ordering comes from `date`
    transaction_id: str = Field(default_factory=lambda: str(uuid4()))
    type: TransactionType
    category: str
    amount: float
    notes: Optional[str] = None
    date: str = Field(default_factory=_utc_now)


class TransactionPublic(BaseModel):
    transaction_id: str
    type: TransactionType
    category: str
    amount: float
    notes: Optional[str] = None
    date: Optional[str] = None
