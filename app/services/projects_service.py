# app/services/projects_service.py
"""
Registre des projets (clés `project:<id>`).

Toutes les mutations sont des read-then-write sans verrou : deux
affectations concurrentes sur le même projet peuvent perdre l'une d'elles
(dernier écrivain gagnant).
"""
import logging
from typing import List, Optional

from app.errors import NotFoundError, ValidationError
from app.models.auth import AppUser
from app.models.project import PROJECT_STATUSES, Project
from app.services import policy
from app.services.clock import new_id, now_iso
from app.services.kv_store import KVStore
from app.services.policy import Action
from app.services.users_service import get_user_by_email

logger = logging.getLogger(__name__)

PROJECT_PREFIX = "project:"


def project_key(project_id: str) -> str:
    return f"{PROJECT_PREFIX}{project_id}"


def get_project(store: KVStore, project_id: str) -> Optional[Project]:
    if not project_id:
        return None
    doc = store.get(project_key(project_id))
    return Project(**doc) if doc else None


def require_project(store: KVStore, project_id: str) -> Project:
    project = get_project(store, project_id)
    if not project:
        raise NotFoundError("Project not found")
    return project


def save_project(store: KVStore, project: Project) -> Project:
    store.set(project_key(project.id), project.to_doc())
    return project


def list_all_projects(store: KVStore) -> List[Project]:
    return [Project(**doc) for doc in store.get_by_prefix(PROJECT_PREFIX)]


def list_projects(store: KVStore, user: AppUser) -> List[Project]:
    """Managers : tous les projets. Consultants : projets actifs où ils sont assignés."""
    return policy.visible_projects(user, list_all_projects(store))


def create_project(store: KVStore, user: AppUser, name: str, description: Optional[str] = None) -> Project:
    policy.authorize(user, Action.CREATE_PROJECT)
    if not (name or "").strip():
        raise ValidationError("Project name is required")

    project = Project(
        id=new_id(),
        name=name.strip(),
        description=description or "",
        manager_id=user.email,
        consultant_ids=[],
        status="active",
        created_at=now_iso(),
    )
    save_project(store, project)
    logger.info("[projects] %s created %s (%s)", user.email, project.id, project.name)
    return project


def assign_consultant(store: KVStore, user: AppUser, project_id: str, consultant_email: str) -> Project:
    """Ajoute un consultant ; ré-assigner un consultant déjà présent ne fait rien."""
    policy.require_role(user, Action.ASSIGN_CONSULTANT)
    if not consultant_email:
        raise ValidationError("Consultant email is required")

    consultant = get_user_by_email(store, consultant_email)
    if not consultant or not consultant.is_consultant:
        raise NotFoundError("Consultant not found")

    project = require_project(store, project_id)
    policy.authorize(user, Action.ASSIGN_CONSULTANT, owner=project.manager_id)

    if consultant_email not in project.consultant_ids:
        project.consultant_ids.append(consultant_email)
        project.updated_at = now_iso()
        save_project(store, project)
        logger.info("[projects] %s assigned %s to %s", user.email, consultant_email, project_id)
    return project


def set_project_status(store: KVStore, user: AppUser, project_id: str, status: str) -> Project:
    policy.require_role(user, Action.SET_PROJECT_STATUS)
    if status not in PROJECT_STATUSES:
        raise ValidationError('Invalid status. Must be "active" or "archived"')

    project = require_project(store, project_id)
    policy.authorize(user, Action.SET_PROJECT_STATUS, owner=project.manager_id)

    project.status = status
    project.updated_at = now_iso()
    save_project(store, project)
    logger.info("[projects] %s set %s to %s", user.email, project_id, status)
    return project


def delete_project(store: KVStore, user: AppUser, project_id: str) -> None:
    """Suppression définitive, sans cascade sur les notes de frais."""
    policy.require_role(user, Action.DELETE_PROJECT)
    project = require_project(store, project_id)
    policy.authorize(user, Action.DELETE_PROJECT, owner=project.manager_id)

    store.delete(project_key(project_id))
    logger.info("[projects] %s deleted %s", user.email, project_id)
