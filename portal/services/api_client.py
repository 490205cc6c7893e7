# portal/services/api_client.py
from __future__ import annotations
import logging
from typing import Any, Optional

import requests
from flask import current_app, g, session

from ..lifecycle.formatting import file_url

log = logging.getLogger(__name__)

TOKEN_KEY = "api_token"


class BackendError(Exception):
    """Any failed backend call. ``message`` is the server text when it sent one."""

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message or "Backend request failed")
        self.message = message
        self.status_code = status_code

    def user_message(self, fallback: str) -> str:
        return self.message or fallback


class BackendUnavailable(BackendError):
    """Transport failure: connection refused, DNS, timeout."""


class BackendRejected(BackendError):
    """The backend answered with a 4xx/5xx."""


class BackendUnauthorized(BackendRejected):
    pass


def _server_message(resp: requests.Response) -> Optional[str]:
    try:
        data = resp.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        msg = data.get("message") or data.get("error")
        return str(msg) if msg else None
    return None


class BackendClient:
    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 20):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    # -----------------
    # Transport
    # -----------------

    def request(self, method: str, path: str, *, params: Optional[dict] = None,
                json: Any = None, files: Optional[dict] = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = self.session.request(method, url, params=params, json=json, files=files, timeout=self.timeout)
        except requests.RequestException as e:
            log.warning("Backend %s %s unreachable: %s", method, path, e)
            raise BackendUnavailable("The server could not be reached. Please try again.") from e

        log.info("Backend %s %s status=%s", method, path, resp.status_code)
        if resp.status_code >= 400:
            msg = _server_message(resp)
            log.warning("Backend %s %s rejected %s: %s", method, path, resp.status_code, msg or resp.text[:200])
            cls = BackendUnauthorized if resp.status_code == 401 else BackendRejected
            raise cls(msg, status_code=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None

    def get(self, path, **kw):
        return self.request("GET", path, **kw)

    def post(self, path, **kw):
        return self.request("POST", path, **kw)

    def put(self, path, **kw):
        return self.request("PUT", path, **kw)

    def patch(self, path, **kw):
        return self.request("PATCH", path, **kw)

    def delete(self, path, **kw):
        return self.request("DELETE", path, **kw)

    def get_list(self, path, **kw) -> list:
        data = self.get(path, **kw)
        return data if isinstance(data, list) else []

    # -----------------
    # Auth
    # -----------------

    def login(self, email: str, password: str) -> dict:
        return self.post("/auth/login", json={"email": email, "password": password}) or {}

    def register(self, *, full_name: str, email: str, password: str,
                 company_name: str = "", phone: str = "") -> dict:
        return self.post("/auth/register", json={
            "fullName": full_name,
            "email": email,
            "password": password,
            "companyName": company_name,
            "mobile": phone,
        }) or {}

    def me(self) -> dict:
        return self.get("/auth/me") or {}

    def update_me(self, payload: dict) -> dict:
        return self.put("/auth/me", json=payload) or {}

    # -----------------
    # Requests & proposals
    # -----------------

    def list_requests(self, status: Optional[str] = None) -> list:
        return self.get_list("/requests", params={"status": status} if status else None)

    def create_request(self, *, category_id: Optional[str], details: str, priority: str) -> dict:
        return self.post("/requests", json={"categoryId": category_id, "details": details, "priority": priority}) or {}

    def categories(self) -> list:
        return self.get_list("/categories")

    def assign_agent(self, request_id, agent_id) -> Any:
        return self.patch(f"/requests/{request_id}/assign", json={"agentId": agent_id})

    def create_proposal(self, request_id, items: list[dict]) -> dict:
        return self.post("/proposals", json={"requestId": request_id, "items": items}) or {}

    def send_proposal(self, proposal_id) -> Any:
        return self.post(f"/proposals/{proposal_id}/send", json={})

    def accept_proposal(self, proposal_id) -> Any:
        return self.patch(f"/proposals/{proposal_id}/accept")

    # -----------------
    # Projects
    # -----------------

    def list_projects(self) -> list:
        return self.get_list("/projects")

    def get_project(self, project_id) -> dict:
        return self.get(f"/projects/{project_id}") or {}

    def update_project(self, project_id, *, progress: int, ecd: Optional[str]) -> dict:
        return self.patch(f"/projects/{project_id}", json={"progressPercent": progress, "ecd": ecd or None}) or {}

    def upload_asset(self, project_id, asset_type: str, upload) -> dict:
        filename, stream, mimetype = upload
        return self.post(
            f"/projects/{project_id}/assets",
            params={"type": asset_type},
            files={"file": (filename, stream, mimetype)},
        ) or {}

    def list_notes(self, project_id) -> list:
        return self.get_list(f"/projects/{project_id}/notes")

    def post_note(self, project_id, content: str) -> dict:
        return self.post(f"/projects/{project_id}/notes", json={"content": content}) or {}

    def project_vault(self, project_id) -> str:
        data = self.get(f"/projects/{project_id}/vault") or {}
        return data.get("vault") or ""

    # -----------------
    # Clients
    # -----------------

    def my_client(self) -> dict:
        return self.get("/clients/me") or {}

    def update_my_vault(self, text: str) -> dict:
        return self.put("/clients/me", json={"technicalVault": text}) or {}

    def agent_clients(self) -> list:
        return self.get_list("/clients/agent-list")

    # -----------------
    # Admin
    # -----------------

    def pending_users(self) -> list:
        return self.get_list("/admin/users/pending")

    def set_user_status(self, user_id, status: str) -> Any:
        return self.patch(f"/admin/users/{user_id}/status", json={"status": status})

    def list_agents(self) -> list:
        return self.get_list("/admin/agents")

    def create_agent(self, *, full_name: str, email: str, phone: str, password: str) -> dict:
        return self.post("/admin/agents", json={
            "fullName": full_name, "email": email, "mobile": phone, "password": password,
        }) or {}

    def set_agent_status(self, agent_id, status: str) -> Any:
        return self.patch(f"/admin/agents/{agent_id}/status", json={"status": status})

    def delete_agent(self, agent_id) -> Any:
        return self.delete(f"/admin/agents/{agent_id}")

    def list_clients(self) -> list:
        return self.get_list("/admin/clients")

    def client_history(self, client_id) -> dict:
        data = self.get(f"/admin/clients/{client_id}/history")
        if isinstance(data, list):
            return {"client": {}, "requests": data}
        return data or {}

    def health(self) -> dict:
        return self.get("/admin/health") or {}


def build_client(token: Optional[str] = None) -> BackendClient:
    cfg = current_app.config
    return BackendClient(cfg["API_BASE_URL"], token=token, timeout=cfg.get("API_TIMEOUT", 20))


def backend() -> BackendClient:
    """Client for the current request, authenticated with the session token."""
    if "backend" not in g:
        g.backend = build_client(session.get(TOKEN_KEY))
    return g.backend


def asset_url(path: Optional[str]) -> Optional[str]:
    cfg = current_app.config
    return file_url(path, cfg["API_BASE_URL"], cfg.get("API_VERSION_SUFFIX", "/api/v1"))
