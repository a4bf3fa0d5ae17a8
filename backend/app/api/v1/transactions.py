from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, List, Optional

from backend.app.database import get_db_session
from backend.app.schemas.transactions import TransactionCreate, TransactionResponse
from backend.app.services.transaction_service import (
    delete_transaction, get_transaction, get_transactions, save_transaction
)

router = APIRouter()

@router.post("/", response_model=TransactionResponse)
async def create_transaction_route(
    transaction_data: TransactionCreate,
    user_id: str = Query(..., description="ID of the user recording the transaction"),
    db: Session = Depends(get_db_session)
):
    """
    Record a transaction.

    - Income adds to the wallet, Expense takes from it, Transfer moves money between two wallets
    - Expenses also count against every matching budget
    - A new custom category is saved for later use
    """
    return save_transaction(db, user_id, transaction_data)

@router.get("/", response_model=List[TransactionResponse])
async def get_transactions_route(
    user_id: str = Query(..., description="ID of the user"),
    wallet_id: Optional[str] = Query(None, description="Only transactions touching this wallet"),
    db: Session = Depends(get_db_session)
):
    """
    Get transactions visible to the user, newest first.
    """
    return get_transactions(db, user_id, wallet_id)

@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction_route(
    transaction_id: str,
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    return get_transaction(db, user_id, transaction_id)

@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction_route(
    transaction_id: str,
    transaction_data: TransactionCreate,
    user_id: str = Query(..., description="ID of the user editing the transaction"),
    db: Session = Depends(get_db_session)
):
    """
    Edit a transaction.

    - The original's effect is reverted and the edited transaction applied in one step
    - The edited transaction gets a new id; creation audit fields carry over
    """
    return save_transaction(db, user_id, transaction_data, original_id=transaction_id)

@router.delete("/{transaction_id}", response_model=Dict[str, bool])
async def delete_transaction_route(
    transaction_id: str,
    user_id: str = Query(..., description="ID of the user deleting the transaction"),
    db: Session = Depends(get_db_session)
):
    """
    Delete a transaction and give its amount back to wallets and budgets.
    """
    return delete_transaction(db, user_id, transaction_id)
