# app/services/expenses_service.py
"""
Registre des notes de frais (clés `expense:<id>`).

Cycle de vie : pending -> approved | pending -> rejected, une seule revue,
par le manager propriétaire du projet. Aucune autre mutation (hors
propagation d'un changement d'email).
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.auth import AppUser
from app.models.expense import REVIEW_DECISIONS, Expense, Mileage, to_decimal
from app.models.schemas import ExpenseInput
from app.services import policy
from app.services.clock import new_id, now_iso, parse_iso
from app.services.kv_store import KVStore
from app.services.policy import Action
from app.services.projects_service import get_project, list_all_projects, require_project

logger = logging.getLogger(__name__)

EXPENSE_PREFIX = "expense:"


def expense_key(expense_id: str) -> str:
    return f"{EXPENSE_PREFIX}{expense_id}"


@dataclass
class ReceiptRef:
    file_name: str
    url: str = ""


def parse_positive(value, label: str) -> Decimal:
    try:
        d = to_decimal(value)
    except ValueError:
        raise ValidationError(f"{label} must be a number")
    if d <= 0:
        raise ValidationError(f"{label} must be greater than zero")
    return d


def build_mileage(data: ExpenseInput) -> Optional[Mileage]:
    """Trajet attaché seulement si départ, arrivée et distance sont tous fournis."""
    if not (data.start_location and data.end_location and data.distance):
        return None
    return Mileage(
        start_location=data.start_location,
        end_location=data.end_location,
        distance=parse_positive(data.distance, "Distance"),
    )


def validate_submission(store: KVStore, user: AppUser, data: ExpenseInput, has_receipt: bool = True) -> str:
    """
    Contrôles avant tout upload : champs requis, rôle, bénéficiaire.
    Retourne l'email du consultant bénéficiaire.
    """
    policy.require_role(user, Action.SUBMIT_EXPENSE)
    if not (data.project_id and data.amount and data.description and has_receipt):
        raise ValidationError("Project, amount, description, and receipt file are required")
    parse_positive(data.amount, "Amount")
    build_mileage(data)

    if user.is_consultant:
        require_project(store, data.project_id)
        return user.email

    # Manager : saisie pour le compte d'un consultant assigné au projet
    if not data.consultant_email:
        raise ValidationError("Managers must assign expenses to a consultant")
    project = require_project(store, data.project_id)
    policy.authorize(user, Action.SUBMIT_EXPENSE_ON_BEHALF, owner=project.manager_id)
    if data.consultant_email not in project.consultant_ids:
        raise ValidationError("Consultant is not assigned to this project")
    return data.consultant_email


def record_expense(
    store: KVStore,
    user: AppUser,
    data: ExpenseInput,
    consultant_email: str,
    receipt: ReceiptRef,
) -> Expense:
    now = now_iso()
    expense = Expense(
        id=new_id(),
        consultant_email=consultant_email,
        project_id=data.project_id,
        amount=parse_positive(data.amount, "Amount"),
        description=data.description,
        date=data.date or now,
        receipt_url=receipt.url,
        receipt_file_name=receipt.file_name,
        status="pending",
        submitted_at=now,
        submitted_by=user.email,
        mileage=build_mileage(data),
    )
    store.set(expense_key(expense.id), expense.to_doc())
    logger.info(
        "[expenses] %s submitted %s for %s on %s (%s)",
        user.email, expense.id, consultant_email, expense.project_id, expense.amount,
    )
    return expense


def create_expense(store: KVStore, user: AppUser, data: ExpenseInput, receipt: Optional[ReceiptRef]) -> Expense:
    consultant_email = validate_submission(store, user, data, has_receipt=receipt is not None)
    return record_expense(store, user, data, consultant_email, receipt)


def get_expense(store: KVStore, expense_id: str) -> Optional[Expense]:
    doc = store.get(expense_key(expense_id)) if expense_id else None
    return Expense(**doc) if doc else None


def list_all_expenses(store: KVStore) -> List[Expense]:
    return [Expense(**doc) for doc in store.get_by_prefix(EXPENSE_PREFIX)]


def newest_first(records: list) -> list:
    # tri stable : à horodatage égal, l'ordre des clés est conservé
    return sorted(records, key=lambda r: parse_iso(r.submitted_at), reverse=True)


def list_expenses(store: KVStore, user: AppUser) -> List[Expense]:
    """
    Consultant : ses propres notes. Manager : notes des projets dont il est
    propriétaire (jointure sur les projets existants ; un projet supprimé
    rend ses notes invisibles).
    """
    managed = policy.managed_project_ids(user, list_all_projects(store)) if user.is_manager else set()
    visible = [e for e in list_all_expenses(store) if policy.can_view_submission(user, e, managed)]
    return newest_first(visible)


def apply_review(record, status: str, reviewer: str):
    """Transition unique depuis pending ; toute seconde revue est un conflit."""
    if record.status != "pending":
        raise ConflictError(f"Already reviewed ({record.status})")
    record.status = status
    record.reviewed_at = now_iso()
    record.reviewed_by = reviewer
    return record


def review_expense(store: KVStore, user: AppUser, expense_id: str, status: str) -> Expense:
    policy.require_role(user, Action.REVIEW_EXPENSE)
    if status not in REVIEW_DECISIONS:
        raise ValidationError("Status must be approved or rejected")

    expense = get_expense(store, expense_id)
    if not expense:
        raise NotFoundError("Expense not found")

    project = get_project(store, expense.project_id)
    policy.authorize(user, Action.REVIEW_EXPENSE, owner=project.manager_id if project else None)

    apply_review(expense, status, user.email)
    store.set(expense_key(expense.id), expense.to_doc())
    logger.info("[expenses] %s %s %s", user.email, status, expense.id)
    return expense
