from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.deps import get_current_user_id, get_repository
from app.db.dynamo import DynamoRepository
from app.models.transaction import TransactionCreate, TransactionInDB, TransactionPublic

router = APIRouter()


@router.post("", response_model=TransactionPublic, status_code=status.HTTP_201_CREATED)
def create_transaction(
    transaction: TransactionCreate,
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
):
    fields = transaction.model_dump(exclude={"date"})
    if transaction.date is not None:
        fields["date"] = transaction.date.isoformat()
    tx_db = TransactionInDB(user_id=user_id, **fields)

    if not repo.put_transaction(tx_db.model_dump()):
        raise HTTPException(status_code=500, detail="Failed to save transaction")
    return TransactionPublic(**tx_db.model_dump())


@router.get("", response_model=List[TransactionPublic])
def list_transactions(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
):
    """
    Newest first. The dashboard's recent transactions list uses limit=5.
    """
    return [TransactionPublic(**item) for item in repo.list_transactions(user_id, limit)]


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
):
    if not repo.delete_transaction(user_id, transaction_id):
        raise HTTPException(status_code=404, detail="Transaction not found")
    return None
