from uuid import uuid4
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Column, String, Integer, DateTime, Boolean, ForeignKey, JSON, Date, Text, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, the format all DateTime columns are stored in"""
    return datetime.now(timezone.utc).replace(tzinfo=None)

# --- ENUMS ---

class WalletPlan(str, Enum):
    PERSONAL = "Personal"
    SHARED = "Shared"

class BudgetPeriod(str, Enum):
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    ONE_TIME = "One-time"

class TransactionType(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"
    TRANSFER = "Transfer"

class CollaboratorRole(str, Enum):
    OWNER = "Owner"
    EDITOR = "Editor"
    VIEWER = "Viewer"

class ActivityAction(str, Enum):
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    BUDGET_ADDED = "budget_added"
    BUDGET_UPDATED = "budget_updated"
    BUDGET_DELETED = "budget_deleted"
    MEMBER_ADDED = "member_added"
    MEMBER_REMOVED = "member_removed"
    SYSTEM_MESSAGE = "system_message"

class ActivityEntityType(str, Enum):
    WALLET = "wallet"
    BUDGET = "budget"
    TRANSACTION = "transaction"
    MEMBER = "member"
    SYSTEM = "system"

class DriftEntityType(str, Enum):
    WALLET = "wallet"
    BUDGET = "budget"

# --- SQLALCHEMY MODELS ---
# Money columns hold two-digit decimal strings ("850.00"), see backend.app.money

class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    email = Column(String, unique=True, nullable=False)
    display_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)

class Wallet(Base):
    __tablename__ = "wallets"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    plan = Column(String, nullable=False, default=WalletPlan.PERSONAL.value)
    balance = Column(String, nullable=False, default="0.00")
    # User-stated part of the balance; the rest is explained by transactions
    opening_balance = Column(String, nullable=False, default="0.00")
    currency = Column(String, nullable=False, default="PHP")
    wallet_type = Column(String, nullable=False, default="Cash")
    description = Column(String, default="")
    collaborators = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    budgets = relationship("Budget", back_populates="wallet")

class Budget(Base):
    __tablename__ = "budgets"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    wallet_id = Column(String, ForeignKey("wallets.id"), nullable=True, index=True)
    plan = Column(String, nullable=False, default=WalletPlan.PERSONAL.value)
    category = Column(String, nullable=False)
    amount = Column(String, nullable=False)
    left = Column(String, nullable=False)
    # Unclamped sum of matching expenses; left == max(amount - spent, 0)
    spent = Column(String, nullable=False, default="0.00")
    period = Column(String, nullable=False, default=BudgetPeriod.MONTHLY.value)
    description = Column(String, default="")
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    collaborators = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    wallet = relationship("Wallet", back_populates="budgets")

    @property
    def wallet_name(self):
        return self.wallet.name if self.wallet is not None else None

class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String, nullable=False)
    amount = Column(String, nullable=False)
    date_time = Column(DateTime, nullable=False)
    category = Column(String, nullable=False, default="")
    # Wallet references are plain ids: transactions outlive deleted wallets
    wallet_from_id = Column(String, nullable=False, index=True)
    wallet_to_id = Column(String, nullable=True, index=True)
    description = Column(String, default="")
    created_by_id = Column(String, nullable=True)
    created_by_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_by_id = Column(String, nullable=True)
    updated_by_name = Column(String, nullable=True)
    updated_at = Column(DateTime, default=utcnow)

class CustomCategory(Base):
    __tablename__ = "custom_categories"
    __table_args__ = (UniqueConstraint("user_id", "category", name="uq_custom_category_user"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    category = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)

class Activity(Base):
    __tablename__ = "activities"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    wallet_id = Column(String, nullable=False, index=True)
    actor_id = Column(String, nullable=False)
    actor_name = Column(String, nullable=False)
    action = Column(String, nullable=False)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    # Per-user insertion order; timestamps collide within one request
    sequence = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)

class DriftFlag(Base):
    __tablename__ = "drift_flags"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)
    expected = Column(String, nullable=False)
    actual = Column(String, nullable=False)
    reason = Column(String)
    triggered_at = Column(DateTime, default=utcnow)
    resolved = Column(Boolean, default=False)
