from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, List

from backend.app.database import get_db_session
from backend.app.schemas.collaborators import CollaboratorSync
from backend.app.schemas.wallets import WalletCreate, WalletResponse, WalletUpdate
from backend.app.services.collaborator_service import sync_collaborators
from backend.app.services.wallet_service import (
    create_wallet, delete_wallet, get_wallet, get_wallets, update_wallet
)

router = APIRouter()

@router.post("/", response_model=WalletResponse)
async def create_wallet_route(
    wallet_data: WalletCreate,
    user_id: str = Query(..., description="ID of the wallet owner"),
    db: Session = Depends(get_db_session)
):
    """
    Create a wallet.

    - The stated balance becomes the wallet's opening balance
    - Shared wallets list their owner first among the collaborators
    """
    return create_wallet(db, user_id, wallet_data)

@router.get("/", response_model=List[WalletResponse])
async def get_wallets_route(
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    """
    Get wallets the user owns or collaborates on, newest first.
    """
    return get_wallets(db, user_id)

@router.get("/{wallet_id}", response_model=WalletResponse)
async def get_wallet_route(
    wallet_id: str,
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    return get_wallet(db, user_id, wallet_id)

@router.put("/{wallet_id}", response_model=WalletResponse)
async def update_wallet_route(
    wallet_id: str,
    wallet_update: WalletUpdate,
    user_id: str = Query(..., description="ID of the user making the change"),
    db: Session = Depends(get_db_session)
):
    """
    Update a wallet.

    - Owners and editors may edit; only the owner may change the plan
    - A renamed wallet keeps its budgets, which are bound by id
    - Send expected_version to reject the edit if someone else changed the wallet first
    """
    return update_wallet(db, user_id, wallet_id, wallet_update)

@router.delete("/{wallet_id}", response_model=Dict[str, bool])
async def delete_wallet_route(
    wallet_id: str,
    user_id: str = Query(..., description="ID of the wallet owner"),
    db: Session = Depends(get_db_session)
):
    """
    Delete a wallet together with its shared budgets. Owner only.
    """
    return delete_wallet(db, user_id, wallet_id)

@router.put("/{wallet_id}/collaborators", response_model=WalletResponse)
async def sync_collaborators_route(
    wallet_id: str,
    sync_data: CollaboratorSync,
    user_id: str = Query(..., description="ID of the wallet owner"),
    db: Session = Depends(get_db_session)
):
    """
    Replace a shared wallet's collaborators.

    - The list is mirrored onto every shared budget bound to the wallet
    - Each member added, removed or re-roled is written to the activity log
    """
    return sync_collaborators(db, user_id, wallet_id, sync_data.collaborators)
