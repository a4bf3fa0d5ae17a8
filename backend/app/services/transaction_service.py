import logging
from sqlalchemy.orm import Session
from fastapi import HTTPException
from typing import List, Optional, Set

from backend.app.database import commit_scope
from backend.app.events import notify_data_changed
from backend.app.models.models import (
    ActivityAction, ActivityEntityType, Transaction, TransactionType, User, Wallet, WalletPlan, utcnow
)
from backend.app.schemas.transactions import TransactionCreate
from backend.app.services.access_service import can_edit, require_editor
from backend.app.services.category_service import ensure_custom_category
from backend.app.services.collaborator_service import audience
from backend.app.services.reconciliation_service import apply_transaction, revert_transaction
from backend.app.services.user_service import actor_name, get_user_by_id
from backend.app.stores import ActivityLog, TransactionStore, WalletStore

logger = logging.getLogger(__name__)

def _touched_wallets(db: Session, transaction: Transaction) -> List[Wallet]:
    wallet_ids = [transaction.wallet_from_id, transaction.wallet_to_id]
    return [w for w in (db.get(Wallet, wallet_id) for wallet_id in wallet_ids if wallet_id) if w is not None]

def _affected_users(db: Session, transaction: Transaction) -> Set[str]:
    users = {transaction.user_id}
    for wallet in _touched_wallets(db, transaction):
        users |= audience(wallet)
    return users

def _require_transaction_editor(db: Session, user_id: str, transaction: Transaction) -> None:
    """Editors of every wallet the transaction touches; a deleted wallet only bars other users"""
    for wallet_id in (transaction.wallet_from_id, transaction.wallet_to_id):
        if not wallet_id:
            continue
        wallet = db.get(Wallet, wallet_id)
        if wallet is None:
            if transaction.user_id == user_id:
                continue
        elif can_edit(wallet, user_id):
            continue
        raise HTTPException(status_code=403, detail="Only editors or the owner can modify this transaction")

def _log_shared(db: Session, actor: User, transaction: Transaction, action: ActivityAction, verb: str) -> None:
    for wallet in _touched_wallets(db, transaction):
        if wallet.plan != WalletPlan.SHARED.value:
            continue
        message = f"{actor_name(actor)} {verb} {transaction.type} of {wallet.currency} {transaction.amount}"
        if transaction.category:
            message += f" ({transaction.category})"
        ActivityLog(db, wallet.user_id, actor.id, actor_name(actor)).append(
            wallet.id, action, ActivityEntityType.TRANSACTION, transaction.id, message
        )

def save_transaction(db: Session, user_id: str, transaction_data: TransactionCreate,
                     original_id: Optional[str] = None) -> Transaction:
    """
    Record a new transaction or replace an existing one.

    An edit reverts the original's effect and deletes it before the new
    record is persisted and applied. Every step runs inside one database
    transaction, so a failure anywhere leaves balances and budgets as they
    were.

    Args:
        db: Database session
        user_id: ID of the acting user
        transaction_data: The transaction as submitted
        original_id: ID of the transaction being edited, if any

    Returns:
        The persisted transaction
    """
    actor = get_user_by_id(db, user_id)
    transactions = TransactionStore(db, user_id)
    wallets = WalletStore(db, user_id)
    affected: Set[str] = set()
    now = utcnow()

    with commit_scope(db, "save transaction"):
        owner_id = user_id
        created_by_id, created_by_name, created_at = actor.id, actor_name(actor), now

        if original_id:
            original = transactions.get(original_id)
            _require_transaction_editor(db, user_id, original)
            affected |= _affected_users(db, original)
            revert_transaction(db, original)
            # Apply and revert must see the same budget candidates
            owner_id = original.user_id
            created_by_id = original.created_by_id
            created_by_name = original.created_by_name
            created_at = original.created_at
            transactions.delete(original.id)

        require_editor(wallets.get(transaction_data.wallet_from_id), user_id)
        if transaction_data.type == TransactionType.TRANSFER:
            require_editor(wallets.get(transaction_data.wallet_to_id), user_id)

        category = transaction_data.effective_category
        if (transaction_data.custom_category or "").strip():
            category = ensure_custom_category(db, user_id, category)

        transaction = transactions.create({
            "user_id": owner_id,
            "type": transaction_data.type.value,
            "amount": transaction_data.amount,
            "date_time": transaction_data.date_time or now,
            "category": category,
            "wallet_from_id": transaction_data.wallet_from_id,
            "wallet_to_id": transaction_data.wallet_to_id,
            "description": transaction_data.description,
            "created_by_id": created_by_id,
            "created_by_name": created_by_name,
            "created_at": created_at,
            "updated_by_id": actor.id,
            "updated_by_name": actor_name(actor),
            "updated_at": now
        })
        apply_transaction(db, transaction)

        if original_id:
            _log_shared(db, actor, transaction, ActivityAction.TRANSACTION_UPDATED, "updated")
        else:
            _log_shared(db, actor, transaction, ActivityAction.TRANSACTION_ADDED, "added")
        affected |= _affected_users(db, transaction)

    db.refresh(transaction)
    logger.info("Transaction %s saved by user %s", transaction.id, user_id)
    notify_data_changed(affected, "transaction-save")
    return transaction

def delete_transaction(db: Session, user_id: str, transaction_id: str) -> dict:
    """Revert a transaction's effect and remove its record"""
    actor = get_user_by_id(db, user_id)
    transactions = TransactionStore(db, user_id)

    with commit_scope(db, "delete transaction"):
        transaction = transactions.get(transaction_id)
        _require_transaction_editor(db, user_id, transaction)
        affected = _affected_users(db, transaction)

        revert_transaction(db, transaction)
        _log_shared(db, actor, transaction, ActivityAction.TRANSACTION_DELETED, "deleted")
        transactions.delete(transaction.id)

    logger.info("Transaction %s deleted by user %s", transaction_id, user_id)
    notify_data_changed(affected, "transaction-delete")
    return {"success": True}

def get_transactions(db: Session, user_id: str, wallet_id: Optional[str] = None) -> List[Transaction]:
    """Transactions visible to the user, newest first"""
    transactions = TransactionStore(db, user_id)
    if wallet_id:
        WalletStore(db, user_id).get(wallet_id)
        return sorted(transactions.touching_wallet(wallet_id), key=lambda t: t.date_time, reverse=True)
    return transactions.list()

def get_transaction(db: Session, user_id: str, transaction_id: str) -> Transaction:
    return TransactionStore(db, user_id).get(transaction_id)
