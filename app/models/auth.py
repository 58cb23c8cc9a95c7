# app/models/auth.py
from typing import Literal, Optional

from app.models.base import StoredModel

Role = Literal["consultant", "manager"]
ROLES = ("consultant", "manager")


class AppUser(StoredModel):
    """Profil stocké sous `user:<email>` ; le rôle ne change jamais après création."""
    email: str
    name: str
    role: Role
    created_at: Optional[str] = None
    created_by: Optional[str] = None
    avatar_file_name: Optional[str] = None
    avatar_updated_at: Optional[str] = None
    updated_at: Optional[str] = None
    updated_by: Optional[str] = None

    @property
    def is_manager(self) -> bool:
        return self.role == "manager"

    @property
    def is_consultant(self) -> bool:
        return self.role == "consultant"
