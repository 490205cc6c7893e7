# portal/services/settings_store.py
"""Admin platform settings kept on the portal side.

The backend has no settings endpoint, so the portal persists them, along with
agents' unsent proposal drafts, through a key-value store registered at
``app.extensions["settings_store"]``.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional, Protocol

from flask import current_app

from ..extensions import db
from ..models.setting import PlatformSetting

log = logging.getLogger(__name__)

SETTINGS_KEY = "admin_platform_settings"
ASSIGNMENT_MODES = (
    ("manual", "Manual Assignment (Admin)"),
    ("auto", "Automatic (Load Balancing)"),
    ("round-robin", "Round Robin"),
)


@dataclass
class PlatformSettings:
    auto_approval: bool = False
    email_notifications: bool = True
    agent_assignment: str = "manual"
    maintenance_mode: bool = False
    max_projects_per_agent: int = 10
    session_timeout: int = 30

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PlatformSettings":
        base = cls()
        if not isinstance(data, dict):
            return base
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        merged = {**asdict(base), **values}
        if merged["agent_assignment"] not in {m for m, _ in ASSIGNMENT_MODES}:
            merged["agent_assignment"] = base.agent_assignment
        for key in ("max_projects_per_agent", "session_timeout"):
            try:
                merged[key] = int(merged[key])
            except (TypeError, ValueError):
                merged[key] = getattr(base, key)
        for key in ("auto_approval", "email_notifications", "maintenance_mode"):
            merged[key] = bool(merged[key])
        return cls(**merged)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SettingsStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemorySettingsStore:
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {k: json.dumps(v) for k, v in (initial or {}).items()}

    def get(self, key):
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key, value):
        self._data[key] = json.dumps(value)

    def delete(self, key):
        self._data.pop(key, None)


class SqlSettingsStore:
    """Settings rows in the portal's own SQL database."""

    def get(self, key):
        row = db.session.get(PlatformSetting, key)
        if row is None:
            return None
        try:
            return json.loads(row.value)
        except ValueError:
            log.warning("Ignoring unreadable setting %s", key)
            return None

    def set(self, key, value):
        row = db.session.get(PlatformSetting, key)
        if row is None:
            row = PlatformSetting(key=key, value=json.dumps(value))
            db.session.add(row)
        else:
            row.value = json.dumps(value)
        db.session.commit()

    def delete(self, key):
        row = db.session.get(PlatformSetting, key)
        if row is not None:
            db.session.delete(row)
            db.session.commit()


def settings_store() -> SettingsStore:
    return current_app.extensions["settings_store"]


def load_platform_settings(store: Optional[SettingsStore] = None) -> PlatformSettings:
    store = store or settings_store()
    return PlatformSettings.from_dict(store.get(SETTINGS_KEY))


def save_platform_settings(settings: PlatformSettings, store: Optional[SettingsStore] = None) -> None:
    store = store or settings_store()
    store.set(SETTINGS_KEY, settings.to_dict())
