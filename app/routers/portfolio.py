from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.deps import get_current_user_id, get_engine, get_repository
from app.db.dynamo import DynamoRepository
from app.models.asset import AssetCreate, AssetInDB, AssetPublic, AssetValueUpdate
from app.utils.snapshot import SnapshotEngine

router = APIRouter()


@router.post("", response_model=AssetPublic, status_code=status.HTTP_201_CREATED)
def create_asset(
    asset: AssetCreate,
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
):
    asset_db = AssetInDB(user_id=user_id, **asset.model_dump())
    if not repo.put_asset(asset_db.model_dump()):
        raise HTTPException(status_code=500, detail="Failed to save asset")
    return AssetPublic(**asset_db.model_dump())


@router.get("")
def list_assets(
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
    engine: SnapshotEngine = Depends(get_engine),
) -> Dict:
    """Held assets with gain/loss against cost basis, plus total portfolio value."""
    assets = repo.list_assets(user_id)
    return {
        "assets": [item.to_dict() for item in engine.asset_performance(assets)],
        "total_value": engine.net_worth(assets),
    }


@router.patch("/{asset_id}", response_model=AssetPublic)
def update_asset_value(
    asset_id: str,
    update: AssetValueUpdate,
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
):
    updated = repo.update_asset_value(user_id, asset_id, update.current_value)
    if not updated:
        raise HTTPException(status_code=404, detail="Asset not found")
    return AssetPublic(**updated)


@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_asset(
    asset_id: str,
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
):
    if not repo.delete_asset(user_id, asset_id):
        raise HTTPException(status_code=404, detail="Asset not found")
    return None
