from pydantic import BaseModel, ConfigDict
from datetime import datetime

from backend.app.models.models import ActivityAction, ActivityEntityType

class ActivityResponse(BaseModel):
    id: str
    user_id: str
    wallet_id: str
    actor_id: str
    actor_name: str
    action: ActivityAction
    entity_type: ActivityEntityType
    entity_id: str
    message: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
