from sqlalchemy.orm import Session
from typing import Iterable, List

from backend.app.config import get_settings
from backend.app.database import commit_scope
from backend.app.stores import BudgetStore, CustomCategoryStore

INCOME_LABEL = "income"

def resolve_categories(base_categories: Iterable[str], budget_categories: Iterable[str],
                       custom_categories: Iterable[str]) -> List[str]:
    """
    Merge built-in, budget and custom categories into one candidate list.

    Built-ins come first without the "Custom" sentinel, then categories of
    existing budgets, then saved custom categories. Duplicates are dropped
    case-sensitively, keeping the first occurrence. "Income" is never offered
    from budgets or custom categories.
    """
    sentinel = get_settings().custom_category_sentinel
    merged: List[str] = []

    def add(name: str) -> None:
        if name and name not in merged:
            merged.append(name)

    for name in base_categories:
        if name != sentinel:
            add(name)
    for name in list(budget_categories) + list(custom_categories):
        if name and name.strip().lower() != INCOME_LABEL:
            add(name)
    return merged

def get_categories(db: Session, user_id: str) -> List[str]:
    """Category choices offered to a user when recording a transaction"""
    budgets = BudgetStore(db, user_id).list()
    return resolve_categories(
        get_settings().base_categories,
        [b.category for b in reversed(budgets)],
        CustomCategoryStore(db, user_id).list()
    )

def get_custom_categories(db: Session, user_id: str) -> List[str]:
    return CustomCategoryStore(db, user_id).list()

def ensure_custom_category(db: Session, user_id: str, name: str) -> str:
    """Persist a free-text category once; safe to call with an existing name"""
    return CustomCategoryStore(db, user_id).create(name)

def create_custom_category(db: Session, user_id: str, name: str) -> str:
    with commit_scope(db, "save custom category"):
        category = ensure_custom_category(db, user_id, name)
    return category
