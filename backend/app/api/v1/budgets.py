from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, List

from backend.app.database import get_db_session
from backend.app.schemas.budgets import BudgetCreate, BudgetInDB, BudgetUpdate
from backend.app.services.budget_service import (
    create_budget, delete_budget, get_budget, get_budgets, update_budget
)

router = APIRouter()

@router.post("/", response_model=BudgetInDB)
def create_budget_endpoint(
    budget_data: BudgetCreate,
    user_id: str = Query(..., description="ID of the budget owner"),
    db: Session = Depends(get_db_session)
):
    """
    Create a new budget for a specific category
    """
    return create_budget(db, user_id, budget_data)

@router.get("/", response_model=List[BudgetInDB])
def get_budgets_endpoint(
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    """
    Get budgets the user owns or collaborates on
    """
    return get_budgets(db, user_id)

@router.get("/{budget_id}", response_model=BudgetInDB)
def get_budget_endpoint(
    budget_id: str,
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    return get_budget(db, user_id, budget_id)

@router.put("/{budget_id}", response_model=BudgetInDB)
def update_budget_endpoint(
    budget_id: str,
    budget_update: BudgetUpdate,
    user_id: str = Query(..., description="ID of the user making the change"),
    db: Session = Depends(get_db_session)
):
    """
    Update an existing budget
    """
    return update_budget(db, user_id, budget_id, budget_update)

@router.delete("/{budget_id}", response_model=Dict[str, bool])
def delete_budget_endpoint(
    budget_id: str,
    user_id: str = Query(..., description="ID of the budget owner"),
    db: Session = Depends(get_db_session)
):
    """
    Delete a budget
    """
    return delete_budget(db, user_id, budget_id)
