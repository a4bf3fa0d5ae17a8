from typing import Optional

from fastapi import HTTPException

from backend.app.models.models import CollaboratorRole


def role_for(entity, user_id: str) -> Optional[str]:
    """Owner if the user owns the wallet or budget, else their collaborator role"""
    if entity.user_id == user_id:
        return CollaboratorRole.OWNER.value
    for collaborator in entity.collaborators or []:
        if collaborator.get("id") == user_id:
            return collaborator.get("role")
    return None


def can_edit(entity, user_id: str) -> bool:
    return role_for(entity, user_id) in (CollaboratorRole.OWNER.value, CollaboratorRole.EDITOR.value)


def require_editor(entity, user_id: str, entity_name: str = "wallet") -> None:
    if not can_edit(entity, user_id):
        raise HTTPException(status_code=403, detail=f"Only editors or the owner can modify this {entity_name}")


def require_owner(entity, user_id: str, entity_name: str = "wallet") -> None:
    if role_for(entity, user_id) != CollaboratorRole.OWNER.value:
        raise HTTPException(status_code=403, detail=f"Only the owner can do this to the {entity_name}")
