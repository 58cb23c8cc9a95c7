# app/services/sample_data.py
"""Jeu de données de démonstration : 1 manager, 2 consultants, 2 projets."""
import logging
from typing import Any, Dict, List

from app.errors import ValidationError
from app.models.auth import AppUser
from app.models.project import Project
from app.services.clock import new_id, now_iso
from app.services.identity_client import IdentityClient
from app.services.kv_store import KVStore
from app.services.projects_service import save_project
from app.services.users_service import save_user

logger = logging.getLogger(__name__)

MANAGER = {"email": "manager@example.com", "password": "manager123", "name": "Sarah Johnson"}
CONSULTANTS = [
    {"email": "consultant1@example.com", "password": "consultant123", "name": "John Smith"},
    {"email": "consultant2@example.com", "password": "consultant123", "name": "Emily Davis"},
]


def _ensure_identity(identity: IdentityClient, account: dict, role: str) -> None:
    try:
        identity.create_user(account["email"], account["password"], {"name": account["name"], "role": role})
    except ValidationError as e:
        # relancer le seed ne doit pas échouer sur les comptes existants
        if "already" not in str(e).lower():
            raise
        logger.info("[sample-data] %s already registered", account["email"])


def setup_sample_data(store: KVStore, identity: IdentityClient) -> Dict[str, Any]:
    logger.info("[sample-data] starting")

    _ensure_identity(identity, MANAGER, "manager")
    save_user(store, AppUser(email=MANAGER["email"], name=MANAGER["name"], role="manager", created_at=now_iso()))

    for c in CONSULTANTS:
        _ensure_identity(identity, c, "consultant")
        save_user(store, AppUser(email=c["email"], name=c["name"], role="consultant", created_at=now_iso()))

    projects: List[Project] = [
        Project(
            id=new_id(),
            name="Digital Transformation Initiative",
            description="Enterprise-wide digital transformation project for a Fortune 500 client",
            manager_id=MANAGER["email"],
            consultant_ids=[c["email"] for c in CONSULTANTS],
            created_at=now_iso(),
        ),
        Project(
            id=new_id(),
            name="Cloud Migration Project",
            description="Migration of legacy systems to AWS cloud infrastructure",
            manager_id=MANAGER["email"],
            consultant_ids=[CONSULTANTS[0]["email"]],
            created_at=now_iso(),
        ),
    ]
    for p in projects:
        save_project(store, p)

    logger.info("[sample-data] complete (%d projects)", len(projects))
    return {
        "credentials": {"manager": MANAGER, "consultants": CONSULTANTS},
        "projects": [p.to_doc() for p in projects],
    }
