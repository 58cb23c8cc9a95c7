# app/services/policy.py
"""
Politique d'autorisation : fonctions pures (rôle, action, faits de propriété).

Aucun accès au store ici ; les services chargent les enregistrements puis
demandent la décision. Un refus est toujours un 403 uniforme.
"""
from enum import Enum
from typing import Iterable, List, Optional, Set

from app.errors import AuthorizationError
from app.models.auth import AppUser
from app.models.expense import Expense, MileageEntry
from app.models.project import Project


class Action(str, Enum):
    CREATE_PROJECT = "project:create"
    DELETE_PROJECT = "project:delete"
    SET_PROJECT_STATUS = "project:status"
    ASSIGN_CONSULTANT = "project:assign"
    SUBMIT_EXPENSE = "expense:create"
    SUBMIT_EXPENSE_ON_BEHALF = "expense:create-on-behalf"
    REVIEW_EXPENSE = "expense:review"
    SUBMIT_MILEAGE = "mileage:create"
    REVIEW_MILEAGE = "mileage:review"
    MANAGE_CONSULTANTS = "consultants:manage"
    UPLOAD_LOGO = "logo:upload"


# actions réservées aux managers
_MANAGER_ACTIONS = {
    Action.CREATE_PROJECT,
    Action.DELETE_PROJECT,
    Action.SET_PROJECT_STATUS,
    Action.ASSIGN_CONSULTANT,
    Action.SUBMIT_EXPENSE_ON_BEHALF,
    Action.REVIEW_EXPENSE,
    Action.REVIEW_MILEAGE,
    Action.MANAGE_CONSULTANTS,
    Action.UPLOAD_LOGO,
}

# actions qui exigent en plus d'être le manager propriétaire du projet
_OWNER_ACTIONS = {
    Action.DELETE_PROJECT,
    Action.SET_PROJECT_STATUS,
    Action.ASSIGN_CONSULTANT,
    Action.SUBMIT_EXPENSE_ON_BEHALF,
    Action.REVIEW_EXPENSE,
    Action.REVIEW_MILEAGE,
}

_MESSAGES = {
    Action.CREATE_PROJECT: "Only managers can create projects",
    Action.DELETE_PROJECT: "You can only delete your own projects",
    Action.SET_PROJECT_STATUS: "You can only update the status of your own projects",
    Action.ASSIGN_CONSULTANT: "You can only assign consultants to your own projects",
    Action.SUBMIT_EXPENSE: "Only consultants and managers can submit expenses",
    Action.SUBMIT_EXPENSE_ON_BEHALF: "You can only create expenses for projects you manage",
    Action.REVIEW_EXPENSE: "You can only approve expenses for projects you manage",
    Action.SUBMIT_MILEAGE: "Only consultants can submit mileage",
    Action.REVIEW_MILEAGE: "You can only approve mileage for projects you manage",
    Action.MANAGE_CONSULTANTS: "Only managers can manage consultants",
    Action.UPLOAD_LOGO: "Only managers can update the logo",
}


def is_allowed(role: Optional[str], action: Action, requester: str = "", owner: Optional[str] = None) -> bool:
    if action == Action.SUBMIT_EXPENSE:
        return role in ("consultant", "manager")
    if action == Action.SUBMIT_MILEAGE:
        return role == "consultant"
    if action in _MANAGER_ACTIONS and role != "manager":
        return False
    if action in _OWNER_ACTIONS:
        # projet introuvable (owner None) => refus, jamais d'accès implicite
        return owner is not None and owner == requester
    return True


def authorize(user: AppUser, action: Action, owner: Optional[str] = None) -> None:
    if not is_allowed(user.role, action, requester=user.email, owner=owner):
        raise AuthorizationError(_MESSAGES.get(action))


def require_role(user: AppUser, action: Action) -> None:
    """Contrôle du rôle seul, avant résolution des ressources."""
    if action in _MANAGER_ACTIONS and user.role != "manager":
        raise AuthorizationError(_MESSAGES.get(action))
    if action in (Action.SUBMIT_EXPENSE, Action.SUBMIT_MILEAGE):
        authorize(user, action)


# ---------- Visibilité (listes) ----------

def can_view_project(user: AppUser, project: Project) -> bool:
    # tous les managers voient tous les projets (visibilité partagée voulue)
    if user.is_manager:
        return True
    return user.email in project.consultant_ids and project.status == "active"


def visible_projects(user: AppUser, projects: Iterable[Project]) -> List[Project]:
    return [p for p in projects if can_view_project(user, p)]


def managed_project_ids(user: AppUser, projects: Iterable[Project]) -> Set[str]:
    return {p.id for p in projects if p.manager_id == user.email}


def can_view_submission(user: AppUser, record: Expense | MileageEntry, managed_ids: Set[str]) -> bool:
    if user.is_consultant:
        return record.consultant_email == user.email
    if user.is_manager:
        return record.project_id in managed_ids
    return False
