"""
Request dependencies: storage, insight generator, snapshot engine and the
authenticated user id. Overridden in tests through ``app.dependency_overrides``.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException, status

from app.core.config import settings
from app.core.security import decode_access_token
from app.db.dynamo import DynamoRepository
from app.utils.insights import InsightGenerator
from app.utils.snapshot import SnapshotEngine


@lru_cache
def get_repository() -> DynamoRepository:
    return DynamoRepository(settings)


@lru_cache
def get_insight_generator() -> InsightGenerator:
    return InsightGenerator.from_settings(settings)


def get_engine() -> SnapshotEngine:
    return SnapshotEngine()


def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """Extract user_id from JWT token"""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token required")

    token = authorization.replace("Bearer ", "", 1)
    payload = decode_access_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user_id
