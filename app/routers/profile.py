# app/routers/profile.py
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from app.auth import get_auth_identity, get_current_user
from app.deps import get_blob, get_identity, get_store
from app.models.auth import AppUser
from app.models.schemas import ProfileInput
from app.services.blob_client import BlobStorage
from app.services.identity_client import AuthIdentity, IdentityClient
from app.services.kv_store import KVStore
from app.services.workflow import UploadedFile, update_profile, upload_avatar

router = APIRouter()


@router.put("/profile")
def update_profile_route(
    body: ProfileInput,
    auth: AuthIdentity = Depends(get_auth_identity),
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
    identity: IdentityClient = Depends(get_identity),
):
    updated = update_profile(store, identity, auth, user, body)
    return {"success": True, "user": updated.to_doc()}


@router.post("/profile/avatar")
async def upload_avatar_route(
    avatar: Optional[UploadFile] = File(None),
    auth: AuthIdentity = Depends(get_auth_identity),
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
    blob: BlobStorage = Depends(get_blob),
):
    upload = None
    if avatar is not None:
        upload = UploadedFile(avatar.filename or "avatar", avatar.content_type, await avatar.read())
    url = upload_avatar(store, blob, auth, user, upload)
    return {"success": True, "avatarUrl": url}
