from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime

from backend.app.models.models import TransactionType
from backend.app.money import validate_money_input

class TransactionCreate(BaseModel):
    type: TransactionType
    amount: str
    date_time: Optional[datetime] = None
    category: Optional[str] = None
    custom_category: Optional[str] = None  # free-text category typed by the user
    wallet_from_id: str = Field(..., min_length=1)
    wallet_to_id: Optional[str] = None
    description: str = ""

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, value):
        return validate_money_input(value, positive=True)

    @model_validator(mode="after")
    def check_type_requirements(self):
        if self.type == TransactionType.TRANSFER:
            if not self.wallet_to_id:
                raise ValueError("Select destination wallet.")
            if self.wallet_to_id == self.wallet_from_id:
                raise ValueError("Destination wallet must differ from the source wallet.")
        elif self.wallet_to_id:
            raise ValueError("Only transfers have a destination wallet.")
        if self.type == TransactionType.EXPENSE and not self.effective_category:
            raise ValueError("Select a category.")
        return self

    @property
    def effective_category(self) -> str:
        return (self.custom_category or "").strip() or (self.category or "").strip()

class TransactionResponse(BaseModel):
    id: str
    user_id: str
    type: TransactionType
    amount: str
    date_time: datetime
    category: str
    wallet_from_id: str
    wallet_to_id: Optional[str] = None
    description: Optional[str] = ""
    created_by_id: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_by_id: Optional[str] = None
    updated_by_name: Optional[str] = None
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
