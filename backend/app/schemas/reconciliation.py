from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime

from backend.app.models.models import DriftEntityType

class DriftFlagResponse(BaseModel):
    id: str
    entity_type: DriftEntityType
    entity_id: str
    expected: str
    actual: str
    reason: Optional[str] = None
    triggered_at: datetime
    resolved: bool

    model_config = ConfigDict(from_attributes=True)

class DriftReport(BaseModel):
    wallets_checked: int
    budgets_checked: int
    repaired: bool
    flags: List[DriftFlagResponse]

class RevisionResponse(BaseModel):
    user_id: str
    revision: int
