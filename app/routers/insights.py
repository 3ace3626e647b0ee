import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.config import settings
from app.core.deps import get_current_user_id, get_engine, get_insight_generator, get_repository
from app.db.dynamo import DynamoRepository
from app.utils.insights import InsightGenerationError, InsightGenerator
from app.utils.snapshot import SnapshotEngine

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("")
def generate_insights(
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
    engine: SnapshotEngine = Depends(get_engine),
    generator: InsightGenerator = Depends(get_insight_generator),
) -> Dict:
    """
    Build a fresh snapshot for the current user and ask the model for up to
    three observations about it.
    """
    try:
        snapshot = engine.create_financial_snapshot(
            repo.list_transactions(user_id),
            repo.list_assets(user_id),
        )
        user = repo.get_user_by_id(user_id) or {}
        insights = generator.generate(snapshot, currency=user.get("currency", settings.DEFAULT_CURRENCY))
        return {"insights": insights, "snapshot": snapshot.to_dict()}
    except InsightGenerationError as e:
        logger.error(f"Insight generation failed for user {user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to generate insights. Please try again later.",
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error generating insights: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")
