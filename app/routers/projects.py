# app/routers/projects.py
"""
Endpoints projets.
- Managers : création, affectation, archivage, suppression (propriétaire uniquement)
- Consultants : liste des projets actifs auxquels ils sont assignés
"""
from fastapi import APIRouter, Depends

from app.auth import get_current_user
from app.deps import get_store
from app.models.auth import AppUser
from app.models.schemas import AssignConsultantInput, CreateProjectInput, ProjectStatusInput
from app.services.kv_store import KVStore
from app.services.projects_service import (
    assign_consultant,
    create_project,
    delete_project,
    list_projects,
    set_project_status,
)

router = APIRouter()


@router.post("/projects")
def create_project_route(
    body: CreateProjectInput,
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
):
    project = create_project(store, user, body.name, body.description)
    return {"success": True, "project": project.to_doc()}


@router.get("/projects")
def list_projects_route(
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
):
    return {"projects": [p.to_doc() for p in list_projects(store, user)]}


@router.post("/projects/{project_id}/assign")
def assign_consultant_route(
    project_id: str,
    body: AssignConsultantInput,
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
):
    project = assign_consultant(store, user, project_id, body.consultant_email)
    return {"success": True, "project": project.to_doc()}


@router.patch("/projects/{project_id}/status")
def set_project_status_route(
    project_id: str,
    body: ProjectStatusInput,
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
):
    project = set_project_status(store, user, project_id, body.status)
    return {"success": True, "project": project.to_doc()}


@router.delete("/projects/{project_id}")
def delete_project_route(
    project_id: str,
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
):
    delete_project(store, user, project_id)
    return {"success": True, "message": "Project deleted successfully"}
