"""
Entity stores used by the reconciliation services.

Each store is bound to a session and to the acting user. Stores only flush;
the calling service decides where the single commit point is (see
database.commit_scope).
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from backend.app.config import get_settings
from backend.app.models.models import (
    Activity, Budget, CustomCategory, Transaction, Wallet, WalletPlan, utcnow
)

logger = logging.getLogger(__name__)


def collaborator_ids(entity) -> List[str]:
    return [c.get("id") for c in (entity.collaborators or [])]


class EntityStore:
    model = None
    entity_name = "Entity"

    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.user_id = user_id

    def _visible(self, entity) -> bool:
        return entity.user_id == self.user_id

    def _base_query(self):
        return self.db.query(self.model)

    def list(self) -> List[Any]:
        return [e for e in self._base_query().order_by(self.model.created_at.desc()).all() if self._visible(e)]

    def find(self, entity_id: str):
        entity = self.db.get(self.model, entity_id)
        if entity is None or not self._visible(entity):
            return None
        return entity

    def get(self, entity_id: str):
        entity = self.find(entity_id)
        if entity is None:
            raise HTTPException(status_code=404, detail=f"{self.entity_name} with id {entity_id} not found")
        return entity

    def create(self, data: Dict[str, Any]):
        entity = self.model(**data)
        self.db.add(entity)
        self.db.flush()
        return entity

    def update(self, entity_id: str, partial: Dict[str, Any], expected_version: Optional[int] = None):
        entity = self.get(entity_id)
        return self.update_entity(entity, partial, expected_version)

    def update_entity(self, entity, partial: Dict[str, Any], expected_version: Optional[int] = None):
        if expected_version is not None and getattr(entity, "version", None) != expected_version:
            raise HTTPException(
                status_code=409,
                detail=f"{self.entity_name} {entity.id} has changed since version {expected_version}, please refresh and try again"
            )
        for key, value in partial.items():
            setattr(entity, key, value)
        self.db.flush()
        return entity

    def delete(self, entity_id: str) -> None:
        entity = self.get(entity_id)
        self.db.delete(entity)
        self.db.flush()


class WalletStore(EntityStore):
    """Wallets owned by the user or shared with them"""
    model = Wallet
    entity_name = "Wallet"

    def _visible(self, wallet) -> bool:
        return wallet.user_id == self.user_id or self.user_id in collaborator_ids(wallet)


class BudgetStore(EntityStore):
    model = Budget
    entity_name = "Budget"

    def _visible(self, budget) -> bool:
        return budget.user_id == self.user_id or self.user_id in collaborator_ids(budget)

    def bound_to_wallet(self, wallet_id: str) -> List[Budget]:
        """Shared budgets scoped to a wallet, regardless of who owns them"""
        return self.db.query(Budget).filter(
            Budget.wallet_id == wallet_id,
            Budget.plan == WalletPlan.SHARED.value
        ).order_by(Budget.created_at).all()

    def candidates_for(self, owner_id: str, wallet_id: str) -> List[Budget]:
        """Budgets an expense by owner_id drawn from wallet_id could touch.

        The candidates depend only on the transaction, never on who is acting,
        so an apply and a later revert by another collaborator see the same set.
        """
        return self.db.query(Budget).filter(
            or_(Budget.user_id == owner_id, Budget.wallet_id == wallet_id)
        ).order_by(Budget.created_at).all()


class TransactionStore(EntityStore):
    """Transactions recorded by the user or against wallets shared with them"""
    model = Transaction
    entity_name = "Transaction"

    def _visible(self, transaction) -> bool:
        if transaction.user_id == self.user_id:
            return True
        wallets = WalletStore(self.db, self.user_id)
        return any(
            wallets.find(wallet_id) is not None
            for wallet_id in (transaction.wallet_from_id, transaction.wallet_to_id) if wallet_id
        )

    def list(self) -> List[Transaction]:
        return [
            t for t in self._base_query().order_by(Transaction.date_time.desc()).all()
            if self._visible(t)
        ]

    def touching_wallet(self, wallet_id: str) -> List[Transaction]:
        return self.db.query(Transaction).filter(
            or_(Transaction.wallet_from_id == wallet_id, Transaction.wallet_to_id == wallet_id)
        ).all()


class CustomCategoryStore:
    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.user_id = user_id

    def list(self) -> List[str]:
        rows = self.db.query(CustomCategory).filter(
            CustomCategory.user_id == self.user_id
        ).order_by(CustomCategory.category).all()
        return [row.category for row in rows]

    def create(self, name: str) -> str:
        """Persist a custom category once; an existing entry is returned as is"""
        category = (name or "").strip()
        if not category:
            raise HTTPException(status_code=400, detail="Category is required")

        existing = self.db.query(CustomCategory).filter(
            CustomCategory.user_id == self.user_id,
            CustomCategory.category == category
        ).first()
        if existing:
            return existing.category

        self.db.add(CustomCategory(user_id=self.user_id, category=category))
        self.db.flush()
        return category


class ActivityLog:
    """Append-only activity feed, pruned to the newest entries per user"""

    def __init__(self, db: Session, user_id: str, actor_id: str, actor_name: str):
        self.db = db
        self.user_id = user_id
        self.actor_id = actor_id
        self.actor_name = actor_name

    def append(self, wallet_id: str, action: str, entity_type: str, entity_id: str, message: str) -> Activity:
        last = self.db.query(func.max(Activity.sequence)).filter(
            Activity.user_id == self.user_id
        ).scalar()
        entry = Activity(
            user_id=self.user_id,
            wallet_id=wallet_id,
            actor_id=self.actor_id,
            actor_name=self.actor_name,
            action=getattr(action, "value", action),
            entity_type=getattr(entity_type, "value", entity_type),
            entity_id=entity_id,
            message=message,
            sequence=(last or 0) + 1,
            created_at=utcnow()
        )
        self.db.add(entry)
        self.db.flush()
        self._prune()
        return entry

    def _prune(self) -> None:
        limit = get_settings().activity_log_limit
        count = self.db.query(Activity).filter(Activity.user_id == self.user_id).count()
        if count <= limit:
            return
        oldest = self.db.query(Activity).filter(
            Activity.user_id == self.user_id
        ).order_by(Activity.sequence).limit(count - limit).all()
        for entry in oldest:
            self.db.delete(entry)
        self.db.flush()
        logger.debug("Pruned %d activity entries for user %s", len(oldest), self.user_id)
