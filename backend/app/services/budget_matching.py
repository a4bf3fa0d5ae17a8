"""
Budget scope matching.

A Personal budget follows its owner's spending in its category from any
wallet; a Shared budget only sees expenses drawn from the wallet it is bound
to. apply and revert both go through matching_budgets so an edit touches the
same budgets on both sides.
"""
from typing import Iterable, List

from backend.app.models.models import TransactionType, WalletPlan


def _value(field) -> str:
    return getattr(field, "value", field) or ""


def same_category(left: str, right: str) -> bool:
    return (left or "").strip().lower() == (right or "").strip().lower()


def budget_matches(budget, transaction) -> bool:
    if _value(transaction.type) != TransactionType.EXPENSE.value:
        return False
    if not same_category(budget.category, transaction.category):
        return False
    plan = _value(budget.plan) or WalletPlan.PERSONAL.value
    if plan == WalletPlan.PERSONAL.value:
        return True
    return plan == WalletPlan.SHARED.value and budget.wallet_id == transaction.wallet_from_id


def matching_budgets(budgets: Iterable, transaction) -> List:
    return [budget for budget in budgets if budget_matches(budget, transaction)]
