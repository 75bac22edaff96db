"""Pytest shared fixtures: local store, fake HTTP session, sample tenant/realm."""
import json
import pathlib
import sys
import time
from types import SimpleNamespace
from typing import Any, Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from bi_admin.core.scope import Scope
from bi_admin.core.store import Database, Realm, Tenant, Token


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_real_http(monkeypatch, request):
    """
    Prevent unit tests from reaching real endpoints.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _refuse(self, method, url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")

    monkeypatch.setattr(requests.Session, "request", _refuse)


# ─────────────────────────────────────────────────────────────────────────────
# Fake HTTP session
# ─────────────────────────────────────────────────────────────────────────────
class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None, url: str = ""):
        self.status_code = status_code
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self.text = text
        self.url = url

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Stands in for requests.Session; answers queued responses per (method, url)."""

    def __init__(self):
        self.calls = []
        self._queues = {}

    def add(self, method: str, url: str, payload: Any = None, status_code: int = 200, text: Optional[str] = None):
        response = FakeResponse(status_code, payload, text, url)
        self._queues.setdefault((method.upper(), url), []).append(response)
        return self

    def add_error(self, method: str, url: str, exc: Exception):
        self._queues.setdefault((method.upper(), url), []).append(exc)
        return self

    def request(self, method: str, url: str, **kwargs):
        self.calls.append(SimpleNamespace(method=method.upper(), url=url, **kwargs))
        queue = self._queues.get((method.upper(), url))
        if not queue:
            raise AssertionError(f"Unexpected HTTP {method.upper()} {url}")
        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url: str, **kwargs):
        return self.request("POST", url, **kwargs)

    def calls_to(self, url: str):
        return [call for call in self.calls if call.url == url]


@pytest.fixture()
def fake_session():
    return FakeSession()


# ─────────────────────────────────────────────────────────────────────────────
# Local store and sample records
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def db(tmp_path):
    database = Database.initialize(tmp_path / "sqlite.db")
    yield database
    database.close()


def make_realm(realm_id: str = "r1", tenant_id: str = "t1", **overrides) -> Realm:
    values = dict(
        id=realm_id,
        tenant_id=tenant_id,
        application_id=f"app-{realm_id}",
        client_id=f"client-{realm_id}",
        client_secret=f"secret-{realm_id}",
        open_id_configuration_url="https://auth.example.com/.well-known/openid-configuration",
        auth_base_url="https://auth.example.com",
        api_base_url="https://api.example.com",
    )
    values.update(overrides)
    return Realm(**values)


@pytest.fixture()
def realm_factory():
    return make_realm


@pytest.fixture()
def scope(db):
    """Registered t1/r1 scope with a long-lived cached token (no exchange needed)."""
    tenant, realm = Tenant("t1"), make_realm()
    db.upsert_tenant_and_realm(tenant, realm)
    db.set_token(Token(
        access_token="cached-token",
        expires_at=int(time.time()) + 3600,
        tenant_id=tenant.id,
        realm_id=realm.id,
        application_id=realm.application_id,
    ))
    return Scope(tenant, realm)
