# app/routers/consultants.py
"""
Annuaire des consultants (managers uniquement, sans restriction par projet).
"""

from fastapi import APIRouter, Depends

from app.auth import get_current_user
from app.deps import get_blob, get_identity, get_store
from app.models.auth import AppUser
from app.models.schemas import NewConsultantInput, PasswordInput, UpdateConsultantInput
from app.services.blob_client import BlobStorage
from app.services.identity_client import IdentityClient
from app.services.kv_store import KVStore
from app.services.workflow import (
    create_consultant,
    list_consultants,
    reset_consultant_password,
    update_consultant,
)

router = APIRouter()

@router.get("/consultants")
def list_consultants_route(
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
    blob: BlobStorage = Depends(get_blob),
):
    return {"consultants": list_consultants(store, blob, user)}

@router.post("/consultants")
def create_consultant_route(
    body: NewConsultantInput,
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
    identity: IdentityClient = Depends(get_identity),
):
    consultant = create_consultant(store, identity, user, body)
    return {"success": True, "consultant": consultant.to_doc()}

@router.patch("/consultants/{email}")
def update_consultant_route(
    email: str,
    body: UpdateConsultantInput,
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
    identity: IdentityClient = Depends(get_identity),
):
    consultant = update_consultant(store, identity, user, email, body)
    return {"success": True, "consultant": consultant.to_doc()}

@router.patch("/consultants/{email}/password")
def reset_password_route(
    email: str,
    body: PasswordInput,
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
    identity: IdentityClient = Depends(get_identity),
):
    reset_consultant_password(store, identity, user, email, body.password)
    return {"success": True, "message": "Password updated successfully"}
