"""
Shared pytest fixtures for the portal test suite.

The backend REST API is never contacted: ``requests.Session`` inside the API
client is swapped for ``FakeSession``, which answers from a route table keyed
by (METHOD, path) and records every call it receives.
"""
import json as _json

import pytest

import portal.services.api_client as api_client
from portal import create_app
from portal.config import TestConfig
from portal.services.settings_store import MemorySettingsStore

API_PREFIX = "/api/v1"


# ── Fake backend ──────────────────────────────────────────────────────────────

class FakeResponse:
    def __init__(self, status_code=200, payload=None, raw=None):
        self.status_code = status_code
        self._payload = payload
        if raw is not None:
            self.content = raw.encode()
        elif payload is None:
            self.content = b""
        else:
            self.content = _json.dumps(payload).encode()
        self.text = self.content.decode()

    def json(self):
        return _json.loads(self.text)


class FakeBackend:
    """Route table plus call log shared by every session a test opens."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, method, path, payload=None, status=200, raw=None, error=None):
        self.routes[(method.upper(), path)] = (status, payload, raw, error)
        return self

    def calls_to(self, method, path):
        return [c for c in self.calls if c["method"] == method.upper() and c["path"] == path]

    def last(self, method, path):
        matches = self.calls_to(method, path)
        assert matches, f"no {method} {path} call recorded; saw {[(c['method'], c['path']) for c in self.calls]}"
        return matches[-1]

    def respond(self, method, url, params=None, json=None, files=None, headers=None):
        path = url.split(API_PREFIX, 1)[-1]
        self.calls.append({
            "method": method.upper(),
            "path": path,
            "params": params,
            "json": json,
            "files": files,
            "headers": dict(headers or {}),
        })
        status, payload, raw, error = self.routes.get(
            (method.upper(), path), (404, {"message": f"no route for {method} {path}"}, None, None)
        )
        if error is not None:
            raise error
        return FakeResponse(status, payload, raw)


class FakeSession:
    def __init__(self, fake):
        self._fake = fake
        self.headers = {}

    def request(self, method, url, params=None, json=None, files=None, timeout=None):
        return self._fake.respond(method, url, params=params, json=json, files=files, headers=self.headers)


@pytest.fixture
def fake_api(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr(api_client.requests, "Session", lambda: FakeSession(fake))
    return fake


# ── Flask app / client ────────────────────────────────────────────────────────

@pytest.fixture
def app(tmp_path, fake_api):
    class _Config(TestConfig):
        LOG_DIR = str(tmp_path / "logs")

    app = create_app(_Config)
    app.extensions["settings_store"] = MemorySettingsStore()
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


USERS = {
    "client": {"id": "11", "name": "Dana Client", "email": "dana@acme.com", "company": "Acme Ltd"},
    "agent": {"id": "22", "name": "Sam Agent", "email": "sam@bizdesk.io", "company": ""},
    "admin": {"id": "1", "name": "Ada Admin", "email": "ada@bizdesk.io", "company": ""},
}


def login_as(client, role="client", **overrides):
    """Put a signed-in user and backend token straight into the session cookie."""
    user = {
        **USERS[role],
        "role": role,
        "status": "Active",
        "phone": "",
        "pending_approval": False,
        **overrides,
    }
    with client.session_transaction() as sess:
        sess["user"] = user
        sess["api_token"] = "token-" + role
        sess["_user_id"] = user["id"]
        sess["_fresh"] = True
    return user


@pytest.fixture
def as_client(client):
    login_as(client, "client")
    return client


@pytest.fixture
def as_agent(client):
    login_as(client, "agent")
    return client


@pytest.fixture
def as_admin(client):
    login_as(client, "admin")
    return client


def flashes(client):
    with client.session_transaction() as sess:
        return [msg for _, msg in sess.get("_flashes", [])]
