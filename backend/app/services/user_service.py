from sqlalchemy.orm import Session
from fastapi import HTTPException

from backend.app.models.models import User
from backend.app.schemas.users import UserCreate, UserUpdate

def create_user(db: Session, user_data: UserCreate):
    """Service function to create a new user"""
    existing_user = get_user_by_email(db, user_data.email)
    if existing_user:
        raise HTTPException(status_code=400, detail="Email already registered")

    new_user = User(
        email=user_data.email,
        display_name=user_data.display_name
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    return new_user

def get_all_users(db: Session):
    return db.query(User).all()

def get_user_by_id(db: Session, user_id: str) -> User:
    """Load the acting user; every mutation is attributed to one"""
    user = db.get(User, user_id) if user_id else None
    if not user:
        raise HTTPException(status_code=404, detail=f"User with id {user_id} not found")
    return user

def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == email).first()

def actor_name(user: User) -> str:
    """Name shown on audit fields and activity entries"""
    return user.display_name or user.email

def update_user(db: Session, user_id: str, user_data: UserUpdate):
    user = get_user_by_id(db, user_id)

    if user_data.display_name is not None:
        user.display_name = user_data.display_name

    db.commit()
    db.refresh(user)
    return user
