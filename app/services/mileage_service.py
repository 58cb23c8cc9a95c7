# app/services/mileage_service.py
"""Trajets déclarés seuls (clés `mileage:<id>`), même cycle de revue que les notes."""
import logging
from typing import List, Optional

from app.errors import NotFoundError, ValidationError
from app.models.auth import AppUser
from app.models.expense import REVIEW_DECISIONS, MileageEntry
from app.models.schemas import MileageInput
from app.services import policy
from app.services.clock import new_id, now_iso
from app.services.expenses_service import apply_review, newest_first, parse_positive
from app.services.kv_store import KVStore
from app.services.policy import Action
from app.services.projects_service import get_project, list_all_projects

logger = logging.getLogger(__name__)

MILEAGE_PREFIX = "mileage:"


def mileage_key(entry_id: str) -> str:
    return f"{MILEAGE_PREFIX}{entry_id}"


def create_mileage_entry(store: KVStore, user: AppUser, data: MileageInput) -> MileageEntry:
    policy.require_role(user, Action.SUBMIT_MILEAGE)
    if not (data.project_id and data.start_location and data.end_location and data.distance):
        raise ValidationError("Project, start location, end location, and distance are required")

    now = now_iso()
    entry = MileageEntry(
        id=new_id(),
        consultant_email=user.email,
        project_id=data.project_id,
        start_location=data.start_location,
        end_location=data.end_location,
        distance=parse_positive(data.distance, "Distance"),
        date=data.date or now,
        notes=data.notes or "",
        status="pending",
        submitted_at=now,
    )
    store.set(mileage_key(entry.id), entry.to_doc())
    logger.info("[mileage] %s logged %s km on %s", user.email, entry.distance, entry.project_id)
    return entry


def get_mileage_entry(store: KVStore, entry_id: str) -> Optional[MileageEntry]:
    doc = store.get(mileage_key(entry_id)) if entry_id else None
    return MileageEntry(**doc) if doc else None


def list_all_mileage_entries(store: KVStore) -> List[MileageEntry]:
    return [MileageEntry(**doc) for doc in store.get_by_prefix(MILEAGE_PREFIX)]


def list_mileage_entries(store: KVStore, user: AppUser) -> List[MileageEntry]:
    managed = policy.managed_project_ids(user, list_all_projects(store)) if user.is_manager else set()
    visible = [m for m in list_all_mileage_entries(store) if policy.can_view_submission(user, m, managed)]
    return newest_first(visible)


def review_mileage_entry(store: KVStore, user: AppUser, entry_id: str, status: str) -> MileageEntry:
    policy.require_role(user, Action.REVIEW_MILEAGE)
    if status not in REVIEW_DECISIONS:
        raise ValidationError("Status must be approved or rejected")

    entry = get_mileage_entry(store, entry_id)
    if not entry:
        raise NotFoundError("Mileage entry not found")

    project = get_project(store, entry.project_id)
    policy.authorize(user, Action.REVIEW_MILEAGE, owner=project.manager_id if project else None)

    apply_review(entry, status, user.email)
    store.set(mileage_key(entry.id), entry.to_doc())
    logger.info("[mileage] %s %s %s", user.email, status, entry.id)
    return entry
