from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from backend.app.database import get_db_session
from backend.app.schemas.categories import CategoryListResponse, CustomCategoryCreate, CustomCategoryResponse
from backend.app.services.category_service import (
    create_custom_category, get_categories, get_custom_categories
)

router = APIRouter()

@router.get("/", response_model=CategoryListResponse)
async def get_categories_route(
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    """
    Get the categories offered when recording a transaction.

    - Built-in categories first, then those of the user's budgets, then saved custom ones
    - Duplicates appear once
    """
    return {"categories": get_categories(db, user_id)}

@router.get("/custom", response_model=List[str])
async def get_custom_categories_route(
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    return get_custom_categories(db, user_id)

@router.post("/custom", response_model=CustomCategoryResponse)
async def create_custom_category_route(
    category_data: CustomCategoryCreate,
    user_id: str = Query(..., description="ID of the user"),
    db: Session = Depends(get_db_session)
):
    """
    Save a custom category. Saving an existing one returns it unchanged.
    """
    return {"category": create_custom_category(db, user_id, category_data.category)}
