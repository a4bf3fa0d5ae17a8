from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from backend.app.schemas.users import UserCreate, UserResponse, UserUpdate
from backend.app.services.user_service import (
    create_user, get_all_users, get_user_by_email, get_user_by_id, update_user
)
from backend.app.database import get_db_session

router = APIRouter()

@router.post("/", response_model=UserResponse)
async def create_user_route(user_data: UserCreate, db: Session = Depends(get_db_session)):
    """
    Register a user.

    - Rejects an email that is already registered
    - The display name is what collaborators see on audit fields and activity
    """
    return create_user(db, user_data)

@router.get("/", response_model=List[UserResponse])
async def get_users_route(
    email: Optional[str] = Query(None, description="Look up a single user by email, e.g. to invite a collaborator"),
    db: Session = Depends(get_db_session)
):
    """
    List users, or find one by email.
    """
    if email:
        user = get_user_by_email(db, email)
        if not user:
            raise HTTPException(status_code=404, detail=f"User with email {email} not found")
        return [user]
    return get_all_users(db)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user_route(user_id: str, db: Session = Depends(get_db_session)):
    """
    Get a specific user by ID.
    """
    return get_user_by_id(db, user_id)

@router.patch("/{user_id}", response_model=UserResponse)
async def update_user_route(user_id: str, user_data: UserUpdate, db: Session = Depends(get_db_session)):
    """
    Change a user's display name.
    """
    return update_user(db, user_id, user_data)
