# app/services/kv_store.py
"""
Stockage clé/valeur au-dessus d'un conteneur Cosmos.

Chaque entrée est un document `{"id": <clé>, "value": {...}}` (partition /id).
Sémantique « last writer wins », pas de transaction multi-clés : toute
mutation est un read-then-write côté appelant.
"""
import logging
from typing import Any, Dict, List, Optional

from azure.core.exceptions import ServiceRequestError, ServiceResponseError
from azure.cosmos import exceptions

from app.errors import TransientError
from app.services.cosmos_client import get_kv_container

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {408, 429}


def _translate(e: Exception, op: str, key: str) -> Exception:
    if isinstance(e, (ServiceRequestError, ServiceResponseError)):
        logger.warning("[kv] %s %s: transport error %s", op, key, e)
        return TransientError("Storage unavailable")
    if isinstance(e, exceptions.CosmosHttpResponseError):
        code = e.status_code or 500
        if code in _RETRYABLE_STATUS or code >= 500:
            logger.warning("[kv] %s %s: status %s", op, key, code)
            return TransientError("Storage unavailable")
    return e


class KVStore:
    def __init__(self, container=None):
        self._container = container

    @property
    def container(self):
        if self._container is None:
            self._container = get_kv_container()
        return self._container

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            doc = self.container.read_item(item=key, partition_key=key)
        except exceptions.CosmosResourceNotFoundError:
            return None
        except Exception as e:
            raise _translate(e, "get", key) from e
        return doc.get("value")

    def set(self, key: str, value: Dict[str, Any]) -> None:
        try:
            self.container.upsert_item(body={"id": key, "value": value})
        except Exception as e:
            raise _translate(e, "set", key) from e

    def delete(self, key: str) -> None:
        try:
            self.container.delete_item(item=key, partition_key=key)
        except exceptions.CosmosResourceNotFoundError:
            pass  # déjà supprimé
        except Exception as e:
            raise _translate(e, "delete", key) from e

    def get_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        """Toutes les valeurs dont la clé commence par `prefix`, triées par clé."""
        query = "SELECT c.id, c['value'] FROM c WHERE STARTSWITH(c.id, @prefix) ORDER BY c.id"
        try:
            items = self.container.query_items(
                query=query,
                parameters=[{"name": "@prefix", "value": prefix}],
                enable_cross_partition_query=True,
            )
            return [it["value"] for it in items if it.get("value") is not None]
        except Exception as e:
            raise _translate(e, "scan", prefix) from e


_kv_store: KVStore | None = None

def get_kv_store() -> KVStore:
    global _kv_store
    if _kv_store is None:
        _kv_store = KVStore()
    return _kv_store
