# app/auth.py
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.deps import get_identity, get_store
from app.errors import AuthenticationError, AuthorizationError
from app.models.auth import AppUser
from app.services.identity_client import AuthIdentity, IdentityClient
from app.services.kv_store import KVStore
from app.services.users_service import get_user_by_email

security = HTTPBearer(auto_error=False)


async def get_auth_identity(
    creds: HTTPAuthorizationCredentials = Depends(security),
    identity: IdentityClient = Depends(get_identity),
) -> AuthIdentity:
    if creds is None or not creds.credentials:
        raise AuthenticationError("No token provided")
    return identity.verify_token(creds.credentials)


async def get_current_user(
    auth: AuthIdentity = Depends(get_auth_identity),
    store: KVStore = Depends(get_store),
) -> AppUser:
    """Profil du principal ; relu dans le store à chaque requête (pas de cache)."""
    user = get_user_by_email(store, auth.email)
    if not user:
        raise AuthorizationError("User profile not found")
    return user
