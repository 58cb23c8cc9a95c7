# app/routers/setup.py
from fastapi import APIRouter, Depends

from app.deps import ensure_sample_data_enabled, get_identity, get_store
from app.services.identity_client import IdentityClient
from app.services.kv_store import KVStore
from app.services.sample_data import setup_sample_data

router = APIRouter()


@router.post("/setup-sample-data")
def setup_sample_data_route(
    _: bool = Depends(ensure_sample_data_enabled),
    store: KVStore = Depends(get_store),
    identity: IdentityClient = Depends(get_identity),
):
    """Désactivé par défaut (ENABLE_SAMPLE_DATA=true pour l'activer)."""
    result = setup_sample_data(store, identity)
    return {"success": True, "message": "Sample data created successfully", **result}
