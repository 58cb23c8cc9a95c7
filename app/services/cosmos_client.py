# app/services/cosmos_client.py
from azure.cosmos import CosmosClient
from app.config import settings

_cosmos_client: CosmosClient | None = None

def get_cosmos_client() -> CosmosClient:
    """Client partagé ; timeouts bornés pour que l'API ne reste jamais suspendue."""
    global _cosmos_client
    if _cosmos_client is None:
        if not (settings.COSMOS_URI and settings.COSMOS_KEY):
            raise RuntimeError("COSMOS_URI ou COSMOS_KEY non configuré.")
        _cosmos_client = CosmosClient(
            settings.COSMOS_URI,
            credential=settings.COSMOS_KEY,
            connection_timeout=int(settings.HTTP_TIMEOUT_SECONDS),
            retry_total=settings.COSMOS_RETRY_TOTAL,
        )
    return _cosmos_client

def get_kv_container():
    """Conteneur unique clé/valeur (users, projects, expenses, mileage, logo)."""
    database = get_cosmos_client().get_database_client(settings.COSMOS_DB_NAME)
    return database.get_container_client(settings.COSMOS_CONTAINER_KV)
