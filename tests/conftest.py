"""Pytest configuration.

In-memory stand-ins for the three collaborators (key-value store, blob
storage, identity provider), duck-typed to the adapters in app.services.
"""
import copy
import itertools
import uuid

import pytest
from fastapi.testclient import TestClient

from app.deps import get_blob, get_identity, get_store
from app.errors import AuthenticationError, NotFoundError, TransientError, ValidationError
from app.main import app
from app.models.auth import AppUser
from app.models.project import Project
from app.services.identity_client import AuthIdentity
from app.services.users_service import save_user


class InMemoryStore:
    """Last-writer-wins dict; values are copied in and out like a remote store."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return copy.deepcopy(self.data.get(key))

    def set(self, key, value):
        self.data[key] = copy.deepcopy(value)

    def delete(self, key):
        self.data.pop(key, None)

    def get_by_prefix(self, prefix):
        return [copy.deepcopy(v) for k, v in sorted(self.data.items()) if k.startswith(prefix)]

    def keys(self, prefix=""):
        return sorted(k for k in self.data if k.startswith(prefix))


class FakeBlobStorage:
    def __init__(self):
        self.blobs = {}

    def upload(self, container_name, blob_name, data, content_type=None):
        if not data:
            raise ValidationError("File is empty")
        self.blobs[(container_name, blob_name)] = (data, content_type)
        return blob_name

    def signed_url(self, container_name, blob_name, ttl_seconds=None):
        return f"https://blob.test/{container_name}/{blob_name}?sig=test"


class FakeIdentityProvider:
    def __init__(self):
        self.users = {}       # id -> AuthIdentity
        self.passwords = {}   # id -> password
        self.tokens = {}      # token -> id
        self.calls = []
        self.fail_updates = False

    def register(self, email, name="Someone", role="consultant", password="secret123"):
        identity = self.create_user(email, password, {"name": name, "role": role})
        token = f"token-{uuid.uuid4()}"
        self.tokens[token] = identity.id
        return identity, token

    def verify_token(self, token):
        user_id = self.tokens.get(token)
        if not user_id or user_id not in self.users:
            raise AuthenticationError("Invalid token or user not found")
        return self.users[user_id]

    def create_user(self, email, password, user_metadata):
        self.calls.append(("create", email))
        if any(u.email == email for u in self.users.values()):
            raise ValidationError("A user with this email address has already been registered")
        identity = AuthIdentity(id=str(uuid.uuid4()), email=email, user_metadata=dict(user_metadata))
        self.users[identity.id] = identity
        self.passwords[identity.id] = password
        return identity

    def update_user(self, user_id, **attributes):
        self.calls.append(("update", user_id, tuple(sorted(attributes))))
        if self.fail_updates:
            raise TransientError("Identity provider unavailable")
        identity = self.users.get(user_id)
        if not identity:
            raise NotFoundError("User not found in auth system")
        if "email" in attributes:
            identity.email = attributes["email"]
        if "password" in attributes:
            self.passwords[user_id] = attributes["password"]
        if "user_metadata" in attributes:
            identity.user_metadata = dict(attributes["user_metadata"])
        return identity

    def find_user_by_email(self, email):
        for u in self.users.values():
            if u.email == email:
                return u
        return None


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def blob():
    return FakeBlobStorage()


@pytest.fixture
def identity():
    return FakeIdentityProvider()


@pytest.fixture
def client(store, blob, identity):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_blob] = lambda: blob
    app.dependency_overrides[get_identity] = lambda: identity
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def fixed_clock(monkeypatch):
    """Strictly increasing timestamps, one second apart."""
    counter = itertools.count(1)

    def tick():
        return f"2024-01-01T00:00:{next(counter):02d}Z"

    for mod in (
        "app.services.projects_service",
        "app.services.expenses_service",
        "app.services.mileage_service",
        "app.services.workflow",
    ):
        monkeypatch.setattr(f"{mod}.now_iso", tick)
    return tick


@pytest.fixture
def make_user(store, identity):
    """Registers a principal with the identity provider and the user directory."""

    def _make(email, role="consultant", name=None):
        auth, token = identity.register(email, name=name or email.split("@")[0], role=role)
        user = save_user(store, AppUser(email=email, name=name or email.split("@")[0], role=role,
                                        created_at="2024-01-01T00:00:00Z"))
        return user, auth, token

    return _make


@pytest.fixture
def manager(make_user):
    return make_user("manager@x.com", role="manager", name="Sarah Johnson")[0]


@pytest.fixture
def consultant(make_user):
    return make_user("a@x.com", role="consultant", name="John Smith")[0]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def seed_project(store, manager_email, consultants=(), status=None, project_id=None):
    doc = Project(
        id=project_id or str(uuid.uuid4()),
        name="Cloud Migration",
        manager_id=manager_email,
        consultant_ids=list(consultants),
        created_at="2024-01-01T00:00:00Z",
    ).to_doc()
    if status is None:
        doc.pop("status")  # record written before status existed
    else:
        doc["status"] = status
    store.set(f"project:{doc['id']}", doc)
    return Project(**doc)
