import pytest
import requests
from azure.core.exceptions import ServiceRequestError
from azure.cosmos import exceptions
from jose import jwt

from app.errors import AuthenticationError, NotFoundError, TransientError, ValidationError
from app.services import identity_client as identity_module
from app.services.identity_client import IdentityClient
from app.services.kv_store import KVStore


class FakeContainer:
    def __init__(self):
        self.items = {}
        self.fail_with = None

    def _maybe_fail(self):
        if self.fail_with:
            raise self.fail_with

    def read_item(self, item, partition_key):
        self._maybe_fail()
        if item not in self.items:
            raise exceptions.CosmosResourceNotFoundError(status_code=404, message="missing")
        return self.items[item]

    def upsert_item(self, body):
        self._maybe_fail()
        self.items[body["id"]] = body

    def delete_item(self, item, partition_key):
        self._maybe_fail()
        if item not in self.items:
            raise exceptions.CosmosResourceNotFoundError(status_code=404, message="missing")
        del self.items[item]

    def query_items(self, query, parameters, enable_cross_partition_query):
        self._maybe_fail()
        prefix = parameters[0]["value"]
        return [
            {"id": k, "value": v["value"]}
            for k, v in sorted(self.items.items())
            if k.startswith(prefix)
        ]


# ---------- KVStore ----------

def test_kv_round_trip_and_missing_key():
    container = FakeContainer()
    kv = KVStore(container)

    assert kv.get("user:a@x.com") is None
    kv.set("user:a@x.com", {"email": "a@x.com"})
    assert container.items["user:a@x.com"] == {"id": "user:a@x.com", "value": {"email": "a@x.com"}}
    assert kv.get("user:a@x.com") == {"email": "a@x.com"}

    kv.delete("user:a@x.com")
    kv.delete("user:a@x.com")
    assert kv.get("user:a@x.com") is None


def test_kv_prefix_scan_is_ordered_by_key():
    kv = KVStore(FakeContainer())
    kv.set("project:b", {"id": "b"})
    kv.set("project:a", {"id": "a"})
    kv.set("user:x", {"email": "x"})
    assert kv.get_by_prefix("project:") == [{"id": "a"}, {"id": "b"}]


@pytest.mark.parametrize("error", [
    exceptions.CosmosHttpResponseError(status_code=503, message="unavailable"),
    exceptions.CosmosHttpResponseError(status_code=429, message="throttled"),
    ServiceRequestError("connection reset"),
])
def test_kv_transient_failures(error):
    container = FakeContainer()
    container.fail_with = error
    kv = KVStore(container)
    with pytest.raises(TransientError):
        kv.get("project:a")
    with pytest.raises(TransientError):
        kv.set("project:a", {})


def test_kv_other_errors_propagate():
    container = FakeContainer()
    container.fail_with = exceptions.CosmosHttpResponseError(status_code=400, message="bad query")
    with pytest.raises(exceptions.CosmosHttpResponseError):
        KVStore(container).get_by_prefix("project:")


# ---------- IdentityClient ----------

class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.content = b"" if payload is None else b"{}"
        self.text = ""

    def json(self):
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


@pytest.fixture
def http(monkeypatch):
    """Enregistre les appels et rejoue des réponses programmées."""
    calls = []
    responses = []

    def fake_request(method, url, headers=None, timeout=None, **kwargs):
        calls.append({"method": method, "url": url, "headers": headers, "timeout": timeout, **kwargs})
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(identity_module.requests, "request", fake_request)
    return calls, responses


def _client(secret=""):
    return IdentityClient(base_url="https://auth.test/", service_key="svc", jwt_secret=secret, timeout=5)


def test_create_user_posts_to_admin_api(http):
    calls, responses = http
    responses.append(FakeResponse(200, {"id": "u1", "email": "a@x.com", "user_metadata": {"role": "consultant"}}))

    created = _client().create_user("a@x.com", "secret123", {"role": "consultant"})

    assert created.id == "u1"
    call = calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://auth.test/auth/v1/admin/users"
    assert call["timeout"] == 5
    assert call["json"]["email_confirm"] is True
    assert call["headers"]["Authorization"] == "Bearer svc"


def test_provider_rejection_is_a_validation_error(http):
    _, responses = http
    responses.append(FakeResponse(422, {"msg": "A user with this email address has already been registered"}))
    with pytest.raises(ValidationError, match="already been registered"):
        _client().create_user("a@x.com", "secret123", {})


def test_unknown_user_is_not_found(http):
    _, responses = http
    responses.append(FakeResponse(404, {"msg": "User not found"}))
    with pytest.raises(NotFoundError):
        _client().update_user("u1", email="b@x.com")


@pytest.mark.parametrize("result", [FakeResponse(502, {}), requests.Timeout("slow")])
def test_outages_are_transient(http, result):
    _, responses = http
    responses.append(result)
    with pytest.raises(TransientError):
        _client().update_user("u1", password="changed99")


def test_find_user_by_email_pages_through_results(http, monkeypatch):
    calls, responses = http
    monkeypatch.setattr(identity_module, "_PAGE_SIZE", 2)
    responses.append(FakeResponse(200, {"users": [{"id": "1", "email": "x@x.com"}, {"id": "2", "email": "y@x.com"}]}))
    responses.append(FakeResponse(200, {"users": [{"id": "3", "email": "a@x.com"}]}))

    found = _client().find_user_by_email("a@x.com")

    assert found.id == "3"
    assert [c["params"]["page"] for c in calls] == [1, 2]


def test_find_user_by_email_returns_none(http):
    _, responses = http
    responses.append(FakeResponse(200, {"users": []}))
    assert _client().find_user_by_email("ghost@x.com") is None


def test_verify_token_through_provider(http):
    calls, responses = http
    responses.append(FakeResponse(200, {"id": "u1", "email": "a@x.com", "user_metadata": {"name": "A"}}))

    who = _client().verify_token("user-token")

    assert who.email == "a@x.com"
    assert calls[0]["url"].endswith("/auth/v1/user")
    assert calls[0]["headers"]["Authorization"] == "Bearer user-token"


def test_verify_token_rejected_by_provider(http):
    _, responses = http
    responses.append(FakeResponse(401, {"msg": "invalid JWT"}))
    with pytest.raises(AuthenticationError):
        _client().verify_token("bad")


def test_verify_token_locally_with_secret(http):
    calls, _ = http
    token = jwt.encode(
        {"sub": "u1", "email": "a@x.com", "aud": "authenticated", "user_metadata": {"role": "manager"}},
        "s3cret",
        algorithm="HS256",
    )

    who = _client(secret="s3cret").verify_token(token)

    assert (who.id, who.email, who.user_metadata["role"]) == ("u1", "a@x.com", "manager")
    assert calls == []


def test_verify_token_wrong_secret():
    token = jwt.encode({"sub": "u1", "email": "a@x.com", "aud": "authenticated"}, "other", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        _client(secret="s3cret").verify_token(token)


def test_empty_token():
    with pytest.raises(AuthenticationError):
        _client().verify_token("")
