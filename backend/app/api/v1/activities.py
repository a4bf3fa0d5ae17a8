from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from backend.app.database import get_db_session
from backend.app.schemas.activities import ActivityResponse
from backend.app.services.activity_service import get_activities

router = APIRouter()

@router.get("/", response_model=List[ActivityResponse])
async def get_activities_route(
    user_id: str = Query(..., description="ID of the user"),
    wallet_id: Optional[str] = Query(None, description="Activity of one wallet the user can see"),
    limit: int = Query(50, ge=1, le=200, description="Maximum number of entries to return"),
    db: Session = Depends(get_db_session)
):
    """
    Get recent activity, newest first.
    """
    return get_activities(db, user_id, wallet_id, limit)
