"""
Balance and budget arithmetic for transactions.

apply_transaction and revert_transaction are the only code paths that move
wallet balances and budget spend in response to transactions. They flush but
never commit; callers wrap them in database.commit_scope.

Budgets track `spent`, the unclamped sum of matching expenses, and derive
`left = max(amount - spent, 0)`. Reverting an expense that had driven `left`
to zero therefore removes the full original amount from `spent` without ever
crediting the budget above its allocation.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Tuple

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.app.database import commit_scope
from backend.app.models.models import (
    Budget, DriftEntityType, DriftFlag, Transaction, TransactionType, Wallet, utcnow
)
from backend.app.money import ZERO, format_money, parse_money
from backend.app.services.budget_matching import matching_budgets
from backend.app.stores import BudgetStore

logger = logging.getLogger(__name__)

APPLY = 1
REVERT = -1


def wallet_effects(transaction) -> List[Tuple[str, Decimal]]:
    """Signed balance change per wallet when the transaction is applied"""
    amount = parse_money(transaction.amount)
    kind = getattr(transaction.type, "value", transaction.type)
    if kind == TransactionType.INCOME.value:
        return [(transaction.wallet_from_id, amount)]
    if kind == TransactionType.EXPENSE.value:
        return [(transaction.wallet_from_id, -amount)]
    if kind == TransactionType.TRANSFER.value:
        return [(transaction.wallet_from_id, -amount), (transaction.wallet_to_id, amount)]
    raise ValueError(f"Unknown transaction type: {transaction.type}")


def set_budget_spent(budget: Budget, spent: Decimal) -> None:
    budget.spent = format_money(spent)
    budget.left = format_money(max(parse_money(budget.amount) - spent, ZERO))


def budgets_for(db: Session, transaction) -> List[Budget]:
    candidates = BudgetStore(db, transaction.user_id).candidates_for(
        transaction.user_id, transaction.wallet_from_id
    )
    return matching_budgets(candidates, transaction)


def _reconcile(db: Session, transaction, direction: int) -> None:
    for wallet_id, delta in wallet_effects(transaction):
        wallet = db.get(Wallet, wallet_id)
        if wallet is None:
            if direction == APPLY:
                raise HTTPException(status_code=404, detail=f"Wallet with id {wallet_id} not found")
            # Deleted wallets keep no balance to restore
            logger.warning("Skipping revert on missing wallet %s for transaction %s", wallet_id, transaction.id)
            continue
        wallet.balance = format_money(parse_money(wallet.balance) + direction * delta)

    amount = parse_money(transaction.amount)
    for budget in budgets_for(db, transaction):
        set_budget_spent(budget, parse_money(budget.spent) + direction * amount)

    db.flush()


def apply_transaction(db: Session, transaction) -> None:
    """Commit a transaction's monetary effect onto wallets and budgets"""
    _reconcile(db, transaction, APPLY)


def revert_transaction(db: Session, transaction) -> None:
    """Exact inverse of apply_transaction"""
    _reconcile(db, transaction, REVERT)


# --- Recomputation from the transaction log ---

def expected_wallet_balance(db: Session, wallet: Wallet) -> Decimal:
    """Opening balance plus the fold of every transaction touching the wallet"""
    transactions = db.query(Transaction).filter(
        or_(Transaction.wallet_from_id == wallet.id, Transaction.wallet_to_id == wallet.id)
    ).all()
    balance = parse_money(wallet.opening_balance)
    for transaction in transactions:
        for wallet_id, delta in wallet_effects(transaction):
            if wallet_id == wallet.id:
                balance += delta
    return balance


def expected_budget_spent(db: Session, budget: Budget) -> Decimal:
    """Sum of the expenses that apply_transaction would charge to this budget"""
    filters = [Transaction.user_id == budget.user_id]
    if budget.wallet_id:
        filters.append(Transaction.wallet_from_id == budget.wallet_id)
    expenses = db.query(Transaction).filter(
        Transaction.type == TransactionType.EXPENSE.value,
        or_(*filters)
    ).all()
    return sum(
        (parse_money(t.amount) for t in expenses if matching_budgets([budget], t)),
        ZERO
    )


def recompute_budget(db: Session, budget: Budget) -> Budget:
    set_budget_spent(budget, expected_budget_spent(db, budget))
    db.flush()
    return budget


def _flag(db: Session, user_id: str, entity_type: DriftEntityType, entity_id: str,
          expected: Decimal, actual: Decimal, reason: str) -> DriftFlag:
    """Raise a drift flag, refreshing the entity's open flag if it already has one"""
    flag = db.query(DriftFlag).filter(
        DriftFlag.user_id == user_id,
        DriftFlag.entity_type == entity_type.value,
        DriftFlag.entity_id == entity_id,
        DriftFlag.resolved == False  # noqa: E712
    ).first()
    if flag is None:
        flag = DriftFlag(user_id=user_id, entity_type=entity_type.value, entity_id=entity_id, resolved=False)
        db.add(flag)
    flag.expected = format_money(expected)
    flag.actual = format_money(actual)
    flag.reason = reason
    flag.triggered_at = utcnow()
    return flag


def audit_drift(db: Session, user_id: str, repair: bool = False) -> Dict[str, object]:
    """
    Compare stored aggregates with values recomputed from the transaction log.

    Args:
        db: Database session
        user_id: Owner whose wallets and budgets are checked
        repair: Overwrite drifted aggregates with the recomputed values

    Returns:
        Report with the number of entities checked and the drift flags raised
    """
    flags: List[DriftFlag] = []
    with commit_scope(db, "audit balances"):
        wallets = db.query(Wallet).filter(Wallet.user_id == user_id).all()
        budgets = db.query(Budget).filter(Budget.user_id == user_id).all()

        if repair:
            # Earlier findings are superseded by this pass
            db.query(DriftFlag).filter(
                DriftFlag.user_id == user_id, DriftFlag.resolved == False  # noqa: E712
            ).update({"resolved": True}, synchronize_session=False)

        for wallet in wallets:
            expected = expected_wallet_balance(db, wallet)
            actual = parse_money(wallet.balance)
            if expected != actual:
                logger.warning("Wallet %s drifted: stored %s, recomputed %s", wallet.id, actual, expected)
                flag = _flag(db, user_id, DriftEntityType.WALLET, wallet.id, expected, actual,
                             "balance differs from transaction history")
                if repair:
                    wallet.balance = format_money(expected)
                    flag.resolved = True
                flags.append(flag)

        for budget in budgets:
            expected = expected_budget_spent(db, budget)
            actual = parse_money(budget.spent)
            expected_left = format_money(max(parse_money(budget.amount) - expected, ZERO))
            if expected != actual or expected_left != budget.left:
                logger.warning("Budget %s drifted: stored spent %s, recomputed %s", budget.id, actual, expected)
                flag = _flag(db, user_id, DriftEntityType.BUDGET, budget.id, expected, actual,
                             "spend differs from transaction history")
                if repair:
                    set_budget_spent(budget, expected)
                    flag.resolved = True
                flags.append(flag)

        db.flush()

    return {
        "wallets_checked": len(wallets),
        "budgets_checked": len(budgets),
        "repaired": repair,
        "flags": flags
    }


def get_drift_flags(db: Session, user_id: str, include_resolved: bool = False) -> List[DriftFlag]:
    query = db.query(DriftFlag).filter(DriftFlag.user_id == user_id)
    if not include_resolved:
        query = query.filter(DriftFlag.resolved == False)  # noqa: E712
    return query.order_by(DriftFlag.triggered_at.desc()).all()
