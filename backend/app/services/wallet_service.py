import logging
from sqlalchemy.orm import Session
from typing import List

from backend.app.config import get_settings
from backend.app.database import commit_scope
from backend.app.events import notify_data_changed
from backend.app.models.models import User, Wallet, WalletPlan
from backend.app.money import format_money, parse_money
from backend.app.schemas.wallets import WalletCreate, WalletUpdate
from backend.app.services.access_service import require_editor, require_owner
from backend.app.services.collaborator_service import (
    audience, mirror_to_budgets, normalize_collaborators, with_owner
)
from backend.app.services.reconciliation_service import recompute_budget
from backend.app.services.user_service import get_user_by_id
from backend.app.stores import BudgetStore, WalletStore

logger = logging.getLogger(__name__)

def create_wallet(db: Session, user_id: str, wallet_data: WalletCreate) -> Wallet:
    """Service function to create a new wallet"""
    owner = get_user_by_id(db, user_id)
    settings = get_settings()

    collaborators = []
    if wallet_data.plan == WalletPlan.SHARED:
        collaborators = with_owner(owner, normalize_collaborators(wallet_data.collaborators))

    with commit_scope(db, "create wallet"):
        wallet = WalletStore(db, user_id).create({
            "user_id": user_id,
            "name": wallet_data.name,
            "plan": wallet_data.plan.value,
            "balance": wallet_data.balance,
            "opening_balance": wallet_data.balance,
            "currency": wallet_data.currency or settings.default_currency,
            "wallet_type": wallet_data.wallet_type or settings.default_wallet_type,
            "description": wallet_data.description,
            "collaborators": collaborators
        })

    db.refresh(wallet)
    logger.info("Wallet %s created for user %s", wallet.id, user_id)
    notify_data_changed(audience(wallet), "wallet-save")
    return wallet

def get_wallets(db: Session, user_id: str) -> List[Wallet]:
    """Wallets the user owns or collaborates on"""
    return WalletStore(db, user_id).list()

def get_wallet(db: Session, user_id: str, wallet_id: str) -> Wallet:
    return WalletStore(db, user_id).get(wallet_id)

def update_wallet(db: Session, user_id: str, wallet_id: str, wallet_update: WalletUpdate) -> Wallet:
    """
    Update a wallet's details.

    - A new stated balance moves the opening balance by the same delta, so
      transaction history still explains the rest of the balance
    - A rename re-mirrors collaborators onto the wallet's shared budgets
    - Switching Shared -> Personal drops collaborators and turns the bound
      shared budgets into personal ones
    """
    get_user_by_id(db, user_id)
    wallets = WalletStore(db, user_id)
    budgets = BudgetStore(db, user_id)

    with commit_scope(db, "update wallet"):
        wallet = wallets.get(wallet_id)
        require_editor(wallet, user_id)
        before = audience(wallet)

        changes = wallet_update.model_dump(exclude_unset=True, exclude={"expected_version"})
        if "plan" in changes and changes["plan"] is not None:
            changes["plan"] = changes["plan"].value
            if changes["plan"] != wallet.plan:
                require_owner(wallet, user_id)

        if changes.get("balance") is not None:
            delta = parse_money(changes["balance"]) - parse_money(wallet.balance)
            changes["opening_balance"] = format_money(parse_money(wallet.opening_balance) + delta)

        changes = {key: value for key, value in changes.items() if value is not None}
        renamed = "name" in changes and changes["name"] != wallet.name
        to_personal = wallet.plan == WalletPlan.SHARED.value and changes.get("plan") == WalletPlan.PERSONAL.value
        to_shared = wallet.plan == WalletPlan.PERSONAL.value and changes.get("plan") == WalletPlan.SHARED.value

        if to_personal:
            changes["collaborators"] = []
        elif to_shared:
            changes["collaborators"] = with_owner(db.get(User, wallet.user_id), [])

        wallets.update_entity(wallet, changes, wallet_update.expected_version)

        bound = budgets.bound_to_wallet(wallet.id)
        if to_personal:
            for budget in bound:
                budgets.update_entity(budget, {
                    "plan": WalletPlan.PERSONAL.value,
                    "wallet_id": None,
                    "collaborators": []
                })
                recompute_budget(db, budget)
            logger.info("Wallet %s made personal; %d budgets converted", wallet.id, len(bound))
        elif renamed:
            mirror_to_budgets(budgets, wallet)

    db.refresh(wallet)
    notify_data_changed(before | audience(wallet), "wallet-save")
    return wallet

def delete_wallet(db: Session, user_id: str, wallet_id: str) -> dict:
    """Delete a wallet; a shared wallet takes its bound shared budgets with it"""
    wallets = WalletStore(db, user_id)
    budgets = BudgetStore(db, user_id)

    with commit_scope(db, "delete wallet"):
        wallet = wallets.get(wallet_id)
        require_owner(wallet, user_id)
        affected = audience(wallet)

        if wallet.plan == WalletPlan.SHARED.value:
            for budget in budgets.bound_to_wallet(wallet.id):
                db.delete(budget)

        db.delete(wallet)
        db.flush()

    logger.info("Wallet %s deleted by user %s", wallet_id, user_id)
    notify_data_changed(affected, "wallet-delete")
    return {"success": True}
