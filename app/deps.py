# app/deps.py
from fastapi import HTTPException

from app.config import settings
from app.services.blob_client import BlobStorage, get_blob_storage
from app.services.identity_client import IdentityClient, get_identity_client
from app.services.kv_store import KVStore, get_kv_store


def get_store() -> KVStore:
    return get_kv_store()

def get_blob() -> BlobStorage:
    return get_blob_storage()

def get_identity() -> IdentityClient:
    return get_identity_client()

def ensure_sample_data_enabled():
    if not settings.ENABLE_SAMPLE_DATA:
        raise HTTPException(status_code=404, detail="Not found")
    return True
