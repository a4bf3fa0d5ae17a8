from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from backend.app.models.models import BudgetPeriod, WalletPlan
from backend.app.money import validate_money_input
from backend.app.schemas.collaborators import Collaborator

class BudgetBase(BaseModel):
    category: Optional[str] = None
    custom_category: Optional[str] = None  # free-text category typed by the user
    amount: str
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    description: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, value):
        return validate_money_input(value, positive=True)

class BudgetCreate(BudgetBase):
    plan: WalletPlan = WalletPlan.PERSONAL
    wallet_id: Optional[str] = None  # required for Shared budgets

    @model_validator(mode="after")
    def check_scope(self):
        if not ((self.custom_category or "").strip() or (self.category or "").strip()):
            raise ValueError("Select a category.")
        if self.plan == WalletPlan.SHARED and not self.wallet_id:
            raise ValueError("Shared budgets must be bound to a wallet.")
        return self

class BudgetUpdate(BaseModel):
    category: Optional[str] = Field(None, min_length=1)
    custom_category: Optional[str] = None
    amount: Optional[str] = None
    period: Optional[BudgetPeriod] = None
    plan: Optional[WalletPlan] = None
    wallet_id: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    expected_version: Optional[int] = None

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, value):
        if value is None:
            return value
        return validate_money_input(value, positive=True)

class BudgetInDB(BaseModel):
    id: str
    user_id: str
    wallet_id: Optional[str] = None
    wallet_name: Optional[str] = None
    plan: WalletPlan
    category: str
    amount: str
    left: str
    spent: str
    period: BudgetPeriod
    description: Optional[str] = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    collaborators: List[Collaborator] = []
    version: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
