import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from fastapi import HTTPException

from backend.app.database import commit_scope
from backend.app.events import notify_data_changed
from backend.app.models.models import (
    ActivityAction, ActivityEntityType, Budget, Wallet, WalletPlan
)
from backend.app.money import parse_money
from backend.app.schemas.budgets import BudgetCreate, BudgetUpdate
from backend.app.services.access_service import require_editor, require_owner
from backend.app.services.category_service import ensure_custom_category
from backend.app.services.collaborator_service import audience
from backend.app.services.reconciliation_service import expected_budget_spent, set_budget_spent
from backend.app.services.user_service import actor_name, get_user_by_id
from backend.app.stores import ActivityLog, BudgetStore, WalletStore

logger = logging.getLogger(__name__)

def _shared_wallet(db: Session, user_id: str, wallet_id: str) -> Wallet:
    wallet = WalletStore(db, user_id).get(wallet_id)
    require_editor(wallet, user_id)
    if wallet.plan != WalletPlan.SHARED.value:
        raise HTTPException(status_code=400, detail="Shared budgets must be bound to a shared wallet")
    return wallet

def _resolve_category(db: Session, user_id: str, category: Optional[str], custom_category: Optional[str]) -> Optional[str]:
    custom = (custom_category or "").strip()
    if custom:
        return ensure_custom_category(db, user_id, custom)
    return (category or "").strip() or None

def _log_shared_budget(db: Session, actor, budget: Budget, wallet: Optional[Wallet], action: ActivityAction, verb: str) -> None:
    if budget.plan != WalletPlan.SHARED.value or wallet is None:
        return
    ActivityLog(db, wallet.user_id, actor.id, actor_name(actor)).append(
        wallet.id,
        action,
        ActivityEntityType.BUDGET,
        budget.id,
        f"{actor_name(actor)} {verb} the {budget.category} budget ({wallet.currency} {budget.amount})"
    )

def create_budget(db: Session, user_id: str, budget_data: BudgetCreate) -> Budget:
    """
    Create a budget.

    A shared budget is bound to a shared wallet and takes over the wallet's
    collaborators. `left` starts from the allocation minus whatever matching
    expenses are already on record.
    """
    actor = get_user_by_id(db, user_id)
    budgets = BudgetStore(db, user_id)

    with commit_scope(db, "create budget"):
        category = _resolve_category(db, user_id, budget_data.category, budget_data.custom_category)

        wallet = None
        collaborators = []
        if budget_data.plan == WalletPlan.SHARED:
            wallet = _shared_wallet(db, user_id, budget_data.wallet_id)
            collaborators = list(wallet.collaborators or [])

        budget = budgets.create({
            "user_id": user_id,
            "wallet_id": wallet.id if wallet else None,
            "plan": budget_data.plan.value,
            "category": category,
            "amount": budget_data.amount,
            "left": budget_data.amount,
            "spent": "0.00",
            "period": budget_data.period.value,
            "description": budget_data.description,
            "start_date": budget_data.start_date,
            "end_date": budget_data.end_date,
            "collaborators": collaborators
        })
        set_budget_spent(budget, expected_budget_spent(db, budget))
        db.flush()
        _log_shared_budget(db, actor, budget, wallet, ActivityAction.BUDGET_ADDED, "created")

    db.refresh(budget)
    logger.info("Budget %s created for category %s", budget.id, budget.category)
    notify_data_changed(audience(budget), "budget-save")
    return budget

def get_budgets(db: Session, user_id: str) -> List[Budget]:
    """Budgets the user owns or collaborates on"""
    return BudgetStore(db, user_id).list()

def get_budget(db: Session, user_id: str, budget_id: str) -> Budget:
    return BudgetStore(db, user_id).get(budget_id)

def update_budget(db: Session, user_id: str, budget_id: str, budget_update: BudgetUpdate) -> Budget:
    """
    Update an existing budget.

    Changing the allocation keeps the spend history: left becomes
    max(new amount - spent, 0). Changing the category or scope re-derives
    spent from the transactions the budget now matches.
    """
    actor = get_user_by_id(db, user_id)
    budgets = BudgetStore(db, user_id)

    with commit_scope(db, "update budget"):
        budget = budgets.get(budget_id)
        require_editor(budget, user_id, "budget")
        before = audience(budget)

        changes = budget_update.model_dump(
            exclude_unset=True, exclude={"expected_version", "custom_category", "category"}
        )
        changes = {key: value for key, value in changes.items() if value is not None}
        for key in ("plan", "period"):
            if key in changes:
                changes[key] = changes[key].value

        category = _resolve_category(db, user_id, budget_update.category, budget_update.custom_category)
        if category:
            changes["category"] = category

        plan = changes.get("plan", budget.plan)
        wallet = None
        if plan == WalletPlan.SHARED.value:
            wallet_id = changes.get("wallet_id", budget.wallet_id)
            if not wallet_id:
                raise HTTPException(status_code=400, detail="Shared budgets must be bound to a wallet")
            wallet = _shared_wallet(db, user_id, wallet_id)
            changes["wallet_id"] = wallet.id
            changes["collaborators"] = list(wallet.collaborators or [])
        else:
            changes["wallet_id"] = None
            changes["collaborators"] = []

        rescoped = (
            changes.get("category", budget.category) != budget.category
            or changes["wallet_id"] != budget.wallet_id
            or plan != budget.plan
        )

        budgets.update_entity(budget, changes, budget_update.expected_version)
        spent = expected_budget_spent(db, budget) if rescoped else parse_money(budget.spent)
        set_budget_spent(budget, spent)
        db.flush()
        _log_shared_budget(db, actor, budget, wallet, ActivityAction.BUDGET_UPDATED, "updated")

    db.refresh(budget)
    notify_data_changed(before | audience(budget), "budget-save")
    return budget

def delete_budget(db: Session, user_id: str, budget_id: str) -> dict:
    """Delete a budget; only its owner may do so"""
    actor = get_user_by_id(db, user_id)
    budgets = BudgetStore(db, user_id)

    with commit_scope(db, "delete budget"):
        budget = budgets.get(budget_id)
        require_owner(budget, user_id, "budget")
        affected = audience(budget)
        wallet = db.get(Wallet, budget.wallet_id) if budget.wallet_id else None
        _log_shared_budget(db, actor, budget, wallet, ActivityAction.BUDGET_DELETED, "deleted")
        db.delete(budget)
        db.flush()

    notify_data_changed(affected, "budget-delete")
    return {"success": True}
