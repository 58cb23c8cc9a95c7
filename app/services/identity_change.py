# app/services/identity_change.py
"""
Propagation d'un changement d'email (clé d'identité des utilisateurs).

Ordre des étapes :
  1. le nouvel email ne doit appartenir à aucun autre utilisateur ;
  2. mise à jour chez le fournisseur d'identité (en cas d'échec, rien n'a
     encore été écrit dans le store) ;
  3. réécriture des projets (managerId, consultantIds) ;
  4. réécriture des notes de frais et des trajets (consultantEmail) ;
  5. suppression de `user:<ancien>` puis écriture de `user:<nouveau>`.

Le store n'offre pas de transaction multi-clés : une interruption entre 2 et 5
laisse des références à l'ancien email. Chaque étape est journalisée pour
permettre une reprise manuelle.
"""
import logging
from typing import Any, Dict, List, Optional

from app.errors import ConflictError, NotFoundError
from app.models.auth import AppUser
from app.services.expenses_service import expense_key, list_all_expenses
from app.services.identity_client import IdentityClient
from app.services.kv_store import KVStore
from app.services.mileage_service import list_all_mileage_entries, mileage_key
from app.services.projects_service import list_all_projects, save_project
from app.services.users_service import delete_user, get_user_by_email, save_user

logger = logging.getLogger(__name__)


def _replace(emails: List[str], old: str, new: str) -> List[str]:
    out: List[str] = []
    for e in emails:
        e = new if e == old else e
        if e not in out:
            out.append(e)
    return out


def rewrite_project_references(store: KVStore, old_email: str, new_email: str) -> int:
    count = 0
    for project in list_all_projects(store):
        changed = False
        if project.manager_id == old_email:
            project.manager_id = new_email
            changed = True
        if old_email in project.consultant_ids:
            project.consultant_ids = _replace(project.consultant_ids, old_email, new_email)
            changed = True
        if changed:
            save_project(store, project)
            count += 1
    return count


def rewrite_submission_references(store: KVStore, old_email: str, new_email: str) -> int:
    count = 0
    for expense in list_all_expenses(store):
        if expense.consultant_email == old_email:
            expense.consultant_email = new_email
            store.set(expense_key(expense.id), expense.to_doc())
            count += 1
    for entry in list_all_mileage_entries(store):
        if entry.consultant_email == old_email:
            entry.consultant_email = new_email
            store.set(mileage_key(entry.id), entry.to_doc())
            count += 1
    return count


def change_email(
    store: KVStore,
    identity: IdentityClient,
    old_email: str,
    new_email: str,
    auth_user_id: str,
    updates: Optional[Dict[str, Any]] = None,
    identity_attributes: Optional[Dict[str, Any]] = None,
) -> AppUser:
    """
    Déplace `user:<old_email>` vers `user:<new_email>` et réécrit toutes les
    références. `updates` (name, updatedAt...) est appliqué au profil avant
    l'écriture finale ; `identity_attributes` (ex. user_metadata) part dans le
    même appel au fournisseur que le nouvel email.
    """
    user = get_user_by_email(store, old_email)
    if not user:
        raise NotFoundError("User not found")

    if new_email != old_email and get_user_by_email(store, new_email):
        raise ConflictError("Email address already in use")

    if new_email == old_email:
        if updates:
            user = user.model_copy(update=updates)
            save_user(store, user)
        return user

    # Étape 2 : fournisseur d'identité. Toute erreur remonte avant écriture locale.
    identity.update_user(auth_user_id, email=new_email, **(identity_attributes or {}))
    logger.info("[identity-change] %s -> %s: identity provider updated", old_email, new_email)

    n_projects = rewrite_project_references(store, old_email, new_email)
    logger.info("[identity-change] %s -> %s: %d projects rewritten", old_email, new_email, n_projects)

    n_records = rewrite_submission_references(store, old_email, new_email)
    logger.info("[identity-change] %s -> %s: %d expenses/mileage rewritten", old_email, new_email, n_records)

    moved = user.model_copy(update={**(updates or {}), "email": new_email})
    delete_user(store, old_email)
    save_user(store, moved)
    logger.info("[identity-change] %s -> %s: user record moved", old_email, new_email)
    return moved
