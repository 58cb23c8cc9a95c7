# app/models/project.py
from typing import List, Literal, Optional

from pydantic import field_validator

from app.models.base import StoredModel

ProjectStatus = Literal["active", "archived"]
PROJECT_STATUSES = ("active", "archived")


class Project(StoredModel):
    """Projet stocké sous `project:<id>`."""
    id: str
    name: str
    description: str = ""
    manager_id: str                       # email du manager propriétaire
    consultant_ids: List[str] = []        # emails des consultants assignés
    status: ProjectStatus = "active"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    # Les projets créés avant l'introduction du statut n'ont pas le champ
    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, v):
        return v or "active"

    @field_validator("consultant_ids", mode="before")
    @classmethod
    def _default_consultants(cls, v):
        return v or []

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, v):
        return v or ""
