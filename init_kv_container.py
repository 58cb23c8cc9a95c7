#!/usr/bin/env python3
"""
Script d'initialisation du conteneur Cosmos DB clé/valeur.
À exécuter une seule fois avant le premier démarrage.

Usage:
    python init_kv_container.py
"""
import logging

from azure.cosmos import PartitionKey, exceptions

from app.config import settings
from app.services.cosmos_client import get_cosmos_client

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger("init_kv_container")


def init_container() -> bool:
    """Crée la base et le conteneur s'ils n'existent pas."""

    logger.info("Connexion à Cosmos DB : %s", settings.COSMOS_URI)
    client = get_cosmos_client()

    database_name = settings.COSMOS_DB_NAME
    try:
        database = client.create_database_if_not_exists(id=database_name)
        logger.info("Base de données '%s' OK", database_name)
    except exceptions.CosmosHttpResponseError as e:
        logger.error("Erreur création base de données : %s", e)
        return False

    # users, projects, expenses, mileage et logo partagent le même conteneur ;
    # la clé (ex. "project:<uuid>") est à la fois l'id et la partition.
    container_id = settings.COSMOS_CONTAINER_KV
    try:
        database.create_container_if_not_exists(
            id=container_id,
            partition_key=PartitionKey(path="/id"),
            offer_throughput=400  # 400 RU/s (minimum)
        )
        logger.info("Conteneur '%s' OK (partition key /id)", container_id)
    except exceptions.CosmosHttpResponseError as e:
        logger.error("Erreur création conteneur '%s' : %s", container_id, e)
        return False

    logger.info("Initialisation terminée")
    return True


if __name__ == "__main__":
    raise SystemExit(0 if init_container() else 1)
