# app/services/identity_client.py
"""
Client du fournisseur d'identité (API admin d'auth hébergée).

- Vérification des jetons : décodage HS256 local (python-jose) si un secret
  est configuré, sinon appel de l'endpoint /user du fournisseur.
- Administration : création, mise à jour (email / mot de passe / metadata),
  recherche par email.

Tous les appels HTTP portent un timeout ; un timeout ou une 5xx devient
une TransientError.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests
from jose import jwt, JWTError

from app.config import settings
from app.errors import AuthenticationError, NotFoundError, TransientError, ValidationError

logger = logging.getLogger(__name__)

_PAGE_SIZE = 1000


@dataclass
class AuthIdentity:
    """Principal résolu à partir d'un jeton bearer."""
    id: str
    email: str
    user_metadata: Dict[str, Any] = field(default_factory=dict)


def _identity_from_payload(data: dict) -> AuthIdentity:
    return AuthIdentity(
        id=str(data.get("id") or data.get("sub") or ""),
        email=data.get("email") or "",
        user_metadata=data.get("user_metadata") or {},
    )


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    for k in ("msg", "message", "error_description", "error"):
        v = body.get(k) if isinstance(body, dict) else None
        if isinstance(v, str) and v.strip():
            return v
    return f"HTTP {resp.status_code}"


class IdentityClient:
    def __init__(
        self,
        base_url: str | None = None,
        service_key: str | None = None,
        jwt_secret: str | None = None,
        timeout: float | None = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.AUTH_URL).rstrip("/")
        self.service_key = service_key if service_key is not None else settings.AUTH_SERVICE_KEY
        self.jwt_secret = jwt_secret if jwt_secret is not None else settings.AUTH_JWT_SECRET
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

    # ---------- HTTP ----------

    def _headers(self, bearer: str | None = None) -> dict:
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {bearer or self.service_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, bearer: str | None = None, **kwargs) -> requests.Response:
        if not (self.base_url and self.service_key):
            raise RuntimeError("AUTH_URL ou AUTH_SERVICE_KEY non configuré.")
        url = f"{self.base_url}/auth/v1{path}"
        try:
            resp = requests.request(
                method, url, headers=self._headers(bearer), timeout=self.timeout, **kwargs
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.warning("[identity] %s %s unreachable: %s", method, path, e)
            raise TransientError("Identity provider unavailable") from e
        if resp.status_code >= 500:
            logger.warning("[identity] %s %s -> %s", method, path, resp.status_code)
            raise TransientError("Identity provider unavailable")
        return resp

    def _admin(self, method: str, path: str, **kwargs) -> dict:
        resp = self._request(method, f"/admin{path}", **kwargs)
        if resp.status_code == 404:
            raise NotFoundError("User not found in auth system")
        if resp.status_code >= 400:
            msg = _error_message(resp)
            logger.info("[identity] %s %s rejected: %s", method, path, msg)
            raise ValidationError(msg)
        return resp.json() if resp.content else {}

    # ---------- Jetons ----------

    def verify_token(self, token: str) -> AuthIdentity:
        if not token:
            raise AuthenticationError("No token provided")

        if self.jwt_secret:
            try:
                claims = jwt.decode(
                    token,
                    self.jwt_secret,
                    algorithms=["HS256"],
                    audience=settings.AUTH_AUDIENCE or None,
                    options={"verify_aud": bool(settings.AUTH_AUDIENCE)},
                )
            except JWTError as e:
                raise AuthenticationError(f"Invalid token: {e}")
            identity = _identity_from_payload(claims)
        else:
            resp = self._request("GET", "/user", bearer=token)
            if resp.status_code >= 400:
                raise AuthenticationError("Invalid token or user not found")
            identity = _identity_from_payload(resp.json())

        if not identity.email:
            raise AuthenticationError("Invalid token or user not found")
        return identity

    # ---------- Administration ----------

    def create_user(self, email: str, password: str, user_metadata: dict) -> AuthIdentity:
        data = self._admin(
            "POST",
            "/users",
            json={
                "email": email,
                "password": password,
                "user_metadata": user_metadata,
                # pas de serveur mail : confirmation automatique
                "email_confirm": True,
            },
        )
        logger.info("[identity] created %s", email)
        return _identity_from_payload(data)

    def update_user(self, user_id: str, **attributes) -> AuthIdentity:
        if not user_id:
            raise NotFoundError("User not found in auth system")
        data = self._admin("PUT", f"/users/{user_id}", json=attributes)
        logger.info("[identity] updated %s (%s)", user_id, ", ".join(sorted(attributes)))
        return _identity_from_payload(data)

    def find_user_by_email(self, email: str) -> Optional[AuthIdentity]:
        page = 1
        while True:
            data = self._admin("GET", "/users", params={"page": page, "per_page": _PAGE_SIZE})
            users = data.get("users", []) if isinstance(data, dict) else data
            for u in users or []:
                if u.get("email") == email:
                    return _identity_from_payload(u)
            if not users or len(users) < _PAGE_SIZE:
                return None
            page += 1


_identity_client: IdentityClient | None = None

def get_identity_client() -> IdentityClient:
    global _identity_client
    if _identity_client is None:
        _identity_client = IdentityClient()
    return _identity_client
