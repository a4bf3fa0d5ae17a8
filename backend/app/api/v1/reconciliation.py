from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from backend.app.database import get_db_session
from backend.app.schemas.reconciliation import DriftFlagResponse, DriftReport
from backend.app.services.reconciliation_service import audit_drift, get_drift_flags
from backend.app.services.user_service import get_user_by_id

router = APIRouter()

@router.post("/audit", response_model=DriftReport)
async def run_audit(
    user_id: str = Query(..., description="ID of the user whose wallets and budgets are checked"),
    repair: bool = Query(False, description="Overwrite drifted balances with the recomputed values"),
    db: Session = Depends(get_db_session)
):
    """
    Check stored balances and budget spend against the transaction history.

    - Every mismatch is recorded as a drift flag
    - With repair, mismatches are corrected and their flags resolved
    """
    get_user_by_id(db, user_id)
    return audit_drift(db, user_id, repair)

@router.get("/flags", response_model=List[DriftFlagResponse])
async def list_flags(
    user_id: str = Query(..., description="ID of the user"),
    include_resolved: bool = Query(False, description="Include flags already repaired"),
    db: Session = Depends(get_db_session)
):
    return get_drift_flags(db, user_id, include_resolved)
