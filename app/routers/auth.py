# app/routers/auth.py
from fastapi import APIRouter, Depends

from app.auth import get_auth_identity, get_current_user
from app.deps import get_blob, get_identity, get_store
from app.models.auth import AppUser
from app.models.schemas import SignupInput
from app.services.blob_client import BlobStorage
from app.services.identity_client import AuthIdentity, IdentityClient
from app.services.kv_store import KVStore
from app.services.workflow import session_profile, signup

router = APIRouter()


@router.post("/signup")
def signup_route(
    body: SignupInput,
    store: KVStore = Depends(get_store),
    identity: IdentityClient = Depends(get_identity),
):
    user = signup(store, identity, body)
    return {"success": True, "user": {"email": user.email, "name": user.name, "role": user.role}}


@router.get("/session")
def get_session(
    auth: AuthIdentity = Depends(get_auth_identity),
    user: AppUser = Depends(get_current_user),
    blob: BlobStorage = Depends(get_blob),
):
    return {"user": session_profile(blob, auth, user)}
