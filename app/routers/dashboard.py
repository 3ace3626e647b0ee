"""
Dashboard Router
Aggregates for the dashboard cards and charts, computed on every request
"""
from typing import Dict, List

from fastapi import APIRouter, Depends, Query

from app.core.deps import get_current_user_id, get_engine, get_repository
from app.db.dynamo import DynamoRepository
from app.utils.snapshot import SnapshotEngine, fill_month_gaps

router = APIRouter()


@router.get("/summary")
def get_summary(
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
    engine: SnapshotEngine = Depends(get_engine),
) -> Dict:
    """Net worth plus this month's income, expenses and profit/loss."""
    summary = engine.current_month_summary(repo.list_transactions(user_id))
    return {"net_worth": engine.net_worth(repo.list_assets(user_id)), **summary}


@router.get("/performance")
def get_performance(
    fill_gaps: bool = Query(False, description="Insert zero entries for months without activity"),
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
    engine: SnapshotEngine = Depends(get_engine),
) -> List[Dict]:
    series = engine.monthly_performance(repo.list_transactions(user_id))
    if fill_gaps:
        series = fill_month_gaps(series)
    return [item.to_dict() for item in series]


@router.get("/allocation")
def get_allocation(
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
    engine: SnapshotEngine = Depends(get_engine),
) -> List[Dict]:
    return engine.portfolio_allocation(repo.list_assets(user_id))


@router.get("/snapshot")
def get_snapshot(
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
    engine: SnapshotEngine = Depends(get_engine),
) -> Dict:
    snapshot = engine.create_financial_snapshot(repo.list_transactions(user_id), repo.list_assets(user_id))
    return snapshot.to_dict()
