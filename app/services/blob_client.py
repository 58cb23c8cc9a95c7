# app/services/blob_client.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.blob import (
    BlobSasPermissions,
    BlobServiceClient,
    ContentSettings,
    generate_blob_sas,
)

from app.config import settings
from app.errors import TransientError, ValidationError

logger = logging.getLogger(__name__)

_blob_service_client: BlobServiceClient | None = None

def get_blob_service_client() -> BlobServiceClient:
    global _blob_service_client
    if _blob_service_client is not None:
        return _blob_service_client

    if settings.AZURE_STORAGE_CONNECTION_STRING:
        _blob_service_client = BlobServiceClient.from_connection_string(
            settings.AZURE_STORAGE_CONNECTION_STRING
        )
        return _blob_service_client

    if settings.AZURE_STORAGE_ACCOUNT_URL and settings.AZURE_STORAGE_ACCOUNT_KEY:
        _blob_service_client = BlobServiceClient(
            account_url=settings.AZURE_STORAGE_ACCOUNT_URL,
            credential=settings.AZURE_STORAGE_ACCOUNT_KEY,
        )
        return _blob_service_client

    raise RuntimeError(
        "Configuration Azure Blob incomplète. "
        "Définis AZURE_STORAGE_CONNECTION_STRING ou AZURE_STORAGE_ACCOUNT_URL + AZURE_STORAGE_ACCOUNT_KEY."
    )


class BlobStorage:
    """Reçus, logos et avatars : stocke des octets, rend une référence signée."""

    def __init__(self, service: BlobServiceClient | None = None):
        self._service = service

    @property
    def service(self) -> BlobServiceClient:
        if self._service is None:
            self._service = get_blob_service_client()
        return self._service

    def upload(
        self,
        container_name: str,
        blob_name: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload de bytes dans un conteneur Blob.
        Retourne le nom du blob (référence durable côté stockage).
        """
        if not data:
            raise ValidationError("File is empty")

        container = self.service.get_container_client(container_name)

        # On crée le conteneur si nécessaire (idempotent)
        try:
            container.create_container()
        except ResourceExistsError:
            pass

        content_settings = ContentSettings(content_type=content_type or "application/octet-stream")
        try:
            container.get_blob_client(blob_name).upload_blob(
                data, overwrite=True, content_settings=content_settings
            )
        except AzureError as e:
            logger.error("[blob] upload %s/%s failed: %s", container_name, blob_name, e)
            raise TransientError("Failed to upload file") from e

        logger.info("[blob] uploaded %s/%s (%d bytes)", container_name, blob_name, len(data))
        return blob_name

    def signed_url(self, container_name: str, blob_name: str, ttl_seconds: int | None = None) -> str:
        """URL SAS en lecture seule, valable `ttl_seconds` (1 an par défaut)."""
        ttl = ttl_seconds or settings.SIGNED_URL_TTL_SECONDS
        account_key = getattr(self.service.credential, "account_key", None) or settings.AZURE_STORAGE_ACCOUNT_KEY
        if not account_key:
            raise RuntimeError("Clé de compte Azure Storage requise pour signer les URLs.")

        sas = generate_blob_sas(
            account_name=self.service.account_name,
            container_name=container_name,
            blob_name=blob_name,
            account_key=account_key,
            permission=BlobSasPermissions(read=True),
            expiry=datetime.now(timezone.utc) + timedelta(seconds=ttl),
        )
        blob_url = self.service.get_blob_client(container_name, blob_name).url
        return f"{blob_url}?{sas}"


_blob_storage: BlobStorage | None = None

def get_blob_storage() -> BlobStorage:
    global _blob_storage
    if _blob_storage is None:
        _blob_storage = BlobStorage()
    return _blob_storage
