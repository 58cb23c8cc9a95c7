# app/services/workflow.py
"""
Cas d'usage qui combinent plusieurs collaborateurs (store, fournisseur
d'identité, stockage blob). Aucun état propre : chaque appel relit le store.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.config import settings
from app.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.models.auth import ROLES, AppUser
from app.models.expense import Expense
from app.models.schemas import (
    ExpenseInput,
    NewConsultantInput,
    ProfileInput,
    SignupInput,
    UpdateConsultantInput,
)
from app.services import policy
from app.services.blob_client import BlobStorage
from app.services.clock import new_id, now_iso
from app.services.expenses_service import ReceiptRef, record_expense, validate_submission
from app.services.identity_change import change_email
from app.services.identity_client import AuthIdentity, IdentityClient
from app.services.kv_store import KVStore
from app.services.policy import Action
from app.services.users_service import create_user, get_user_by_email, list_users, save_user

logger = logging.getLogger(__name__)

LOGO_KEY = "app:logo"
MIN_PASSWORD_LENGTH = 6


@dataclass
class UploadedFile:
    filename: str
    content_type: Optional[str]
    data: bytes

    @property
    def extension(self) -> str:
        return self.filename.rsplit(".", 1)[-1] if "." in self.filename else "bin"


def _check_password(password: str) -> None:
    if not password:
        raise ValidationError("Password is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def _avatar_url(blob: BlobStorage, user: AppUser) -> Optional[str]:
    if not user.avatar_file_name:
        return None
    return blob.signed_url(settings.STORAGE_CONTAINER_AVATARS, user.avatar_file_name)


# ---------- Auth ----------

def signup(store: KVStore, identity: IdentityClient, body: SignupInput) -> AppUser:
    if not (body.password and body.name.strip()):
        raise ValidationError("Email, password, name, and role are required")
    if body.role not in ROLES:
        raise ValidationError("Role must be consultant or manager")
    email = str(body.email)
    if get_user_by_email(store, email):
        raise ConflictError("A user with this email already exists")

    identity.create_user(email, body.password, {"name": body.name, "role": body.role})
    return create_user(store, AppUser(email=email, name=body.name, role=body.role, created_at=now_iso()))


def session_profile(blob: BlobStorage, auth: AuthIdentity, user: AppUser) -> Dict[str, Any]:
    return {
        "email": auth.email,
        "name": auth.user_metadata.get("name"),
        "role": auth.user_metadata.get("role"),
        **user.to_doc(),
        "avatarUrl": _avatar_url(blob, user),
    }


# ---------- Notes de frais ----------

def submit_expense(
    store: KVStore,
    blob: BlobStorage,
    user: AppUser,
    data: ExpenseInput,
    receipt: Optional[UploadedFile],
) -> Expense:
    """Valide et autorise d'abord ; le reçu n'est uploadé qu'ensuite."""
    consultant_email = validate_submission(store, user, data, has_receipt=bool(receipt and receipt.data))

    container = settings.STORAGE_CONTAINER_RECEIPTS
    file_name = blob.upload(container, f"{new_id()}-{receipt.filename}", receipt.data, receipt.content_type)
    ref = ReceiptRef(file_name=file_name, url=blob.signed_url(container, file_name))
    return record_expense(store, user, data, consultant_email, ref)


# ---------- Consultants (managers) ----------

def list_consultants(store: KVStore, blob: BlobStorage, user: AppUser) -> List[Dict[str, Any]]:
    policy.authorize(user, Action.MANAGE_CONSULTANTS)
    return [
        {**c.to_doc(), "avatarUrl": _avatar_url(blob, c)}
        for c in list_users(store, role="consultant")
    ]


def create_consultant(store: KVStore, identity: IdentityClient, user: AppUser, body: NewConsultantInput) -> AppUser:
    policy.authorize(user, Action.MANAGE_CONSULTANTS)
    email = str(body.email)
    _check_password(body.password)
    name = (body.name or "").strip() or email.split("@")[0]

    if get_user_by_email(store, email):
        raise ConflictError("A user with this email already exists")

    identity.create_user(email, body.password, {"name": name, "role": "consultant"})
    consultant = AppUser(
        email=email,
        name=name,
        role="consultant",
        created_at=now_iso(),
        created_by=user.email,
    )
    return create_user(store, consultant)


def _require_consultant(store: KVStore, email: str, action: str) -> AppUser:
    consultant = get_user_by_email(store, email)
    if not consultant:
        raise NotFoundError("Consultant not found")
    if not consultant.is_consultant:
        raise AuthorizationError(f"Can only {action} consultants")
    return consultant


def _require_auth_user(identity: IdentityClient, email: str) -> AuthIdentity:
    auth_user = identity.find_user_by_email(email)
    if not auth_user:
        raise NotFoundError("User not found in auth system")
    return auth_user


def update_consultant(
    store: KVStore,
    identity: IdentityClient,
    user: AppUser,
    email: str,
    body: UpdateConsultantInput,
) -> AppUser:
    policy.authorize(user, Action.MANAGE_CONSULTANTS)
    consultant = _require_consultant(store, email, "update")

    updates: Dict[str, Any] = {"updated_at": now_iso(), "updated_by": user.email}
    if body.name is not None:
        updates["name"] = body.name

    new_email = str(body.new_email) if body.new_email else None
    if new_email and new_email != email:
        if get_user_by_email(store, new_email):
            raise ConflictError("Email address already in use")
        auth_user = _require_auth_user(identity, email)
        updated = change_email(store, identity, email, new_email, auth_user.id, updates)
    else:
        updated = save_user(store, consultant.model_copy(update=updates))

    logger.info("[consultants] %s updated %s", user.email, updated.email)
    return updated


def reset_consultant_password(
    store: KVStore,
    identity: IdentityClient,
    user: AppUser,
    email: str,
    password: str,
) -> None:
    policy.authorize(user, Action.MANAGE_CONSULTANTS)
    _check_password(password)
    _require_consultant(store, email, "reset passwords for")

    auth_user = _require_auth_user(identity, email)
    identity.update_user(auth_user.id, password=password)
    logger.info("[consultants] %s reset password of %s", user.email, email)


# ---------- Profil ----------

def update_profile(
    store: KVStore,
    identity: IdentityClient,
    auth: AuthIdentity,
    user: AppUser,
    body: ProfileInput,
) -> AppUser:
    if not (body.name or body.email):
        raise ValidationError("Name or email is required")

    new_email = str(body.email) if body.email else None
    if new_email and new_email != user.email and get_user_by_email(store, new_email):
        raise ConflictError("Email address already in use")

    updates: Dict[str, Any] = {"updated_at": now_iso(), "updated_by": user.email}
    attributes: Dict[str, Any] = {}
    if body.name and body.name != user.name:
        attributes["user_metadata"] = {**auth.user_metadata, "name": body.name}
        updates["name"] = body.name

    # un seul appel au fournisseur : nom et email changent ensemble ou pas du tout
    if new_email and new_email != user.email:
        return change_email(store, identity, user.email, new_email, auth.id, updates, attributes)

    if attributes:
        identity.update_user(auth.id, **attributes)
    return save_user(store, user.model_copy(update=updates))


def upload_avatar(store: KVStore, blob: BlobStorage, auth: AuthIdentity, user: AppUser, avatar: UploadedFile) -> str:
    if not (avatar and avatar.data):
        raise ValidationError("Avatar file is required")

    container = settings.STORAGE_CONTAINER_AVATARS
    file_name = blob.upload(container, f"avatar-{auth.id}-{new_id()}.{avatar.extension}", avatar.data, avatar.content_type)
    url = blob.signed_url(container, file_name)

    save_user(store, user.model_copy(update={"avatar_file_name": file_name, "avatar_updated_at": now_iso()}))
    logger.info("[profile] %s uploaded avatar %s", user.email, file_name)
    return url


# ---------- Logo ----------

def get_logo_url(store: KVStore) -> Optional[str]:
    logo = store.get(LOGO_KEY)
    return (logo or {}).get("url")


def upload_logo(store: KVStore, blob: BlobStorage, user: AppUser, logo: UploadedFile) -> str:
    policy.authorize(user, Action.UPLOAD_LOGO)
    if not (logo and logo.data):
        raise ValidationError("Logo file is required")

    container = settings.STORAGE_CONTAINER_LOGOS
    file_name = blob.upload(container, f"logo-{new_id()}.{logo.extension}", logo.data, logo.content_type)
    url = blob.signed_url(container, file_name)

    store.set(LOGO_KEY, {
        "url": url,
        "fileName": file_name,
        "uploadedBy": user.email,
        "uploadedAt": now_iso(),
    })
    logger.info("[logo] %s uploaded %s", user.email, file_name)
    return url
