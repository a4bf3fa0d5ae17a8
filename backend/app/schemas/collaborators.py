from pydantic import BaseModel, EmailStr, Field
from typing import List

from backend.app.models.models import CollaboratorRole

class Collaborator(BaseModel):
    id: str = Field(..., min_length=1)  # user id of the collaborator
    name: str
    email: EmailStr
    role: CollaboratorRole = CollaboratorRole.EDITOR

class CollaboratorSync(BaseModel):
    collaborators: List[Collaborator]
