# app/services/users_service.py
import logging
from typing import List, Optional

from app.errors import ConflictError
from app.models.auth import AppUser
from app.services.kv_store import KVStore

logger = logging.getLogger(__name__)

USER_PREFIX = "user:"


def user_key(email: str) -> str:
    # clé sensible à la casse, telle que stockée
    return f"{USER_PREFIX}{email}"


def get_user_by_email(store: KVStore, email: str) -> Optional[AppUser]:
    if not email:
        return None
    doc = store.get(user_key(email))
    return AppUser(**doc) if doc else None


def list_users(store: KVStore, role: Optional[str] = None) -> List[AppUser]:
    users = [AppUser(**doc) for doc in store.get_by_prefix(USER_PREFIX)]
    if role:
        users = [u for u in users if u.role == role]
    return users


def create_user(store: KVStore, user: AppUser) -> AppUser:
    if store.get(user_key(user.email)):
        raise ConflictError("A user with this email already exists")
    store.set(user_key(user.email), user.to_doc())
    logger.info("[users] created %s (%s)", user.email, user.role)
    return user


def save_user(store: KVStore, user: AppUser) -> AppUser:
    store.set(user_key(user.email), user.to_doc())
    return user


def delete_user(store: KVStore, email: str) -> None:
    store.delete(user_key(email))
