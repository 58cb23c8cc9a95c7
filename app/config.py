# app/config.py
from pydantic import BaseModel
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseModel):
    # Misc
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    ENABLE_SAMPLE_DATA: bool = os.getenv("ENABLE_SAMPLE_DATA", "false").lower() == "true"
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    # ===== Cosmos DB (key-value store) =====
    COSMOS_URI: str = os.getenv("COSMOS_URI", "")
    COSMOS_KEY: str = os.getenv("COSMOS_KEY", "")
    # ex: expenses-db (dev) / expenses-db-prod
    COSMOS_DB_NAME: str = os.getenv("COSMOS_DB_NAME", "expenses-db")
    COSMOS_CONTAINER_KV: str = os.getenv("COSMOS_CONTAINER_KV", "kv_store")
    COSMOS_RETRY_TOTAL: int = int(os.getenv("COSMOS_RETRY_TOTAL", "3"))

    # ===== Azure Blob Storage (receipts, logos, avatars) =====
    # Option 1 : connection string complète (recommandé)
    AZURE_STORAGE_CONNECTION_STRING: str = os.getenv("AZURE_STORAGE_CONNECTION_STRING", "")
    # Option 2 : URL + KEY (fallback si pas de connection string)
    AZURE_STORAGE_ACCOUNT_URL: str = os.getenv("AZURE_STORAGE_ACCOUNT_URL", "")
    AZURE_STORAGE_ACCOUNT_KEY: str = os.getenv("AZURE_STORAGE_ACCOUNT_KEY", "")

    STORAGE_CONTAINER_RECEIPTS: str = os.getenv("STORAGE_CONTAINER_RECEIPTS", "receipts")
    STORAGE_CONTAINER_LOGOS: str = os.getenv("STORAGE_CONTAINER_LOGOS", "logos")
    STORAGE_CONTAINER_AVATARS: str = os.getenv("STORAGE_CONTAINER_AVATARS", "avatars")
    SIGNED_URL_TTL_SECONDS: int = int(os.getenv("SIGNED_URL_TTL_SECONDS", "31536000"))  # 1 an

    # ===== Identity provider (hosted auth admin API) =====
    AUTH_URL: str = os.getenv("AUTH_URL", "")
    AUTH_SERVICE_KEY: str = os.getenv("AUTH_SERVICE_KEY", "")
    # Secret HS256 ; si vide, les jetons sont vérifiés via l'endpoint /user du fournisseur
    AUTH_JWT_SECRET: str = os.getenv("AUTH_JWT_SECRET", "")
    AUTH_AUDIENCE: str = os.getenv("AUTH_AUDIENCE", "authenticated")
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
