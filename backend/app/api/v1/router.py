from fastapi import APIRouter
from backend.app.api.v1 import (
    activities, budgets, categories, events, reconciliation, transactions, users, wallets
)

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(wallets.router, prefix="/wallets", tags=["wallets"])
api_router.include_router(budgets.router, prefix="/budgets", tags=["budgets"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(activities.router, prefix="/activities", tags=["activities"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(reconciliation.router, prefix="/reconciliation", tags=["reconciliation"])
