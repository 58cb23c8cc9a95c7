# app/routers/logo.py
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from app.auth import get_current_user
from app.deps import get_blob, get_store
from app.models.auth import AppUser
from app.services.blob_client import BlobStorage
from app.services.kv_store import KVStore
from app.services.workflow import UploadedFile, get_logo_url, upload_logo

router = APIRouter()


@router.get("/logo")
def get_logo_route(store: KVStore = Depends(get_store)):
    """Public : logo courant ou null."""
    return {"logoUrl": get_logo_url(store)}


@router.post("/logo")
async def upload_logo_route(
    logo: Optional[UploadFile] = File(None),
    user: AppUser = Depends(get_current_user),
    store: KVStore = Depends(get_store),
    blob: BlobStorage = Depends(get_blob),
):
    upload = None
    if logo is not None:
        upload = UploadedFile(logo.filename or "logo", logo.content_type, await logo.read())
    url = upload_logo(store, blob, user, upload)
    return {"success": True, "logoUrl": url}
