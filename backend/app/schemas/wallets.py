from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime

from backend.app.models.models import WalletPlan
from backend.app.money import validate_money_input
from backend.app.schemas.collaborators import Collaborator

class WalletCreate(BaseModel):
    name: str = Field(..., min_length=1)
    balance: str = "0.00"
    plan: WalletPlan = WalletPlan.PERSONAL
    currency: Optional[str] = None
    wallet_type: Optional[str] = None
    description: str = ""
    collaborators: List[Collaborator] = []

    @field_validator("balance", mode="before")
    @classmethod
    def check_balance(cls, value):
        return validate_money_input(value)

class WalletUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    balance: Optional[str] = None  # direct edit of the stated balance
    plan: Optional[WalletPlan] = None
    currency: Optional[str] = None
    wallet_type: Optional[str] = None
    description: Optional[str] = None
    expected_version: Optional[int] = None

    @field_validator("balance", mode="before")
    @classmethod
    def check_balance(cls, value):
        if value is None:
            return value
        return validate_money_input(value)

class WalletResponse(BaseModel):
    id: str
    user_id: str
    name: str
    plan: WalletPlan
    balance: str
    opening_balance: str
    currency: str
    wallet_type: str
    description: Optional[str] = ""
    collaborators: List[Collaborator] = []
    version: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
