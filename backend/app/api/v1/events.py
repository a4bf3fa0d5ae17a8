from fastapi import APIRouter, Query

from backend.app.events import event_bus
from backend.app.schemas.reconciliation import RevisionResponse

router = APIRouter()

@router.get("/revision", response_model=RevisionResponse)
async def get_revision(user_id: str = Query(..., description="ID of the user")):
    """
    Current data revision for a user.

    The number grows with every change broadcast to the user; a client that
    sees a different number than last time should re-fetch.
    """
    return {"user_id": user_id, "revision": event_bus.revision(user_id)}
