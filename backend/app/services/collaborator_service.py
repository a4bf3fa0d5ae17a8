import logging
from sqlalchemy.orm import Session
from fastapi import HTTPException
from typing import Any, Dict, Iterable, List, Set, Tuple

from backend.app.database import commit_scope
from backend.app.events import notify_data_changed
from backend.app.models.models import (
    ActivityAction, ActivityEntityType, CollaboratorRole, User, Wallet, WalletPlan
)
from backend.app.schemas.collaborators import Collaborator
from backend.app.services.access_service import require_owner
from backend.app.services.user_service import actor_name, get_user_by_id
from backend.app.stores import ActivityLog, BudgetStore, WalletStore

logger = logging.getLogger(__name__)

def normalize_collaborators(collaborators: Iterable[Any]) -> List[Dict[str, str]]:
    """Plain dicts in submission order; a user may appear only once"""
    result = []
    seen = set()
    for collaborator in collaborators:
        if isinstance(collaborator, dict):
            collaborator = Collaborator(**collaborator)
        if collaborator.id in seen:
            raise HTTPException(status_code=400, detail=f"Collaborator {collaborator.id} is listed more than once")
        seen.add(collaborator.id)
        result.append({
            "id": collaborator.id,
            "name": collaborator.name,
            "email": str(collaborator.email),
            "role": collaborator.role.value
        })
    return result

def with_owner(owner, collaborators: List[Dict[str, str]]) -> List[Dict[str, str]]:
    """Shared lists always carry the wallet owner first, with the Owner role"""
    rest = [c for c in collaborators if c["id"] != owner.id]
    return [{
        "id": owner.id,
        "name": actor_name(owner),
        "email": owner.email,
        "role": CollaboratorRole.OWNER.value
    }] + rest

def audience(entity) -> Set[str]:
    """Users who see this wallet or budget and should hear about changes to it"""
    return {entity.user_id} | {c.get("id") for c in (entity.collaborators or []) if c.get("id")}

def diff_collaborators(previous: List[Dict[str, str]], current: List[Dict[str, str]]) -> List[Tuple[str, Dict[str, str]]]:
    """Structural changes between two collaborator lists, as (action, collaborator)"""
    before = {c["id"]: c for c in previous}
    after = {c["id"]: c for c in current}
    changes = []
    for collaborator in current:
        old = before.get(collaborator["id"])
        if old is None:
            changes.append((ActivityAction.MEMBER_ADDED.value, collaborator))
        elif old.get("role") != collaborator.get("role"):
            changes.append((ActivityAction.SYSTEM_MESSAGE.value, collaborator))
    for collaborator in previous:
        if collaborator["id"] not in after:
            changes.append((ActivityAction.MEMBER_REMOVED.value, collaborator))
    return changes

def describe_change(actor: str, action: str, collaborator: Dict[str, str]) -> str:
    if action == ActivityAction.MEMBER_ADDED.value:
        return f"{actor} added {collaborator['name']} as {collaborator['role']}"
    if action == ActivityAction.MEMBER_REMOVED.value:
        return f"{actor} removed {collaborator['name']} from the wallet"
    return f"{actor} set {collaborator['name']} as {collaborator['role']}"

def mirror_to_budgets(budgets: BudgetStore, wallet: Wallet) -> int:
    """Copy the wallet's collaborator list onto every shared budget bound to it"""
    bound = budgets.bound_to_wallet(wallet.id)
    for budget in bound:
        budgets.update_entity(budget, {"collaborators": list(wallet.collaborators or [])})
    return len(bound)

def sync_collaborators(db: Session, user_id: str, wallet_id: str, collaborators: Iterable[Any]) -> Wallet:
    """
    Replace a shared wallet's collaborators and mirror them onto its budgets.

    - Updates the wallet's collaborator list
    - Overwrites the list on every shared budget bound to the wallet
    - Logs one activity entry per member added, removed or re-roled
    """
    actor = get_user_by_id(db, user_id)
    wallets = WalletStore(db, user_id)
    budgets = BudgetStore(db, user_id)
    requested = normalize_collaborators(collaborators)

    with commit_scope(db, "update collaborators"):
        wallet = wallets.get(wallet_id)
        next_collaborators = with_owner(db.get(User, wallet.user_id), requested)
        require_owner(wallet, user_id)
        if wallet.plan != WalletPlan.SHARED.value:
            raise HTTPException(status_code=400, detail="Only shared wallets have collaborators")

        previous = list(wallet.collaborators or [])
        before = audience(wallet)
        wallets.update_entity(wallet, {"collaborators": next_collaborators})
        mirrored = mirror_to_budgets(budgets, wallet)

        log = ActivityLog(db, wallet.user_id, actor.id, actor_name(actor))
        for action, collaborator in diff_collaborators(previous, next_collaborators):
            log.append(
                wallet.id,
                action,
                ActivityEntityType.MEMBER,
                collaborator["id"],
                describe_change(actor_name(actor), action, collaborator)
            )

    db.refresh(wallet)
    logger.info("Collaborators of wallet %s synced to %d budgets", wallet.id, mirrored)
    notify_data_changed(before | audience(wallet), "collaborator-update")
    return wallet
