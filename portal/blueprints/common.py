# portal/blueprints/common.py
"""View-boundary handling shared by the client, agent and admin pages."""
from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from flask import flash

from ..services.api_client import BackendError, BackendUnauthorized

log = logging.getLogger(__name__)

T = TypeVar("T")


def fetch_or(fetch: Callable[[], T], fallback: T, message: str) -> T:
    """Run a backend read; on failure log, flash once and return ``fallback``."""
    try:
        return fetch()
    except BackendUnauthorized:
        raise
    except BackendError as e:
        log.warning("%s: %s", message, e)
        flash(message, "danger")
        return fallback


def run_action(action: Callable[[], Any], success: str, failure: str) -> bool:
    """Run a backend mutation and flash the outcome.

    Server-supplied text wins over ``failure``. Nothing is changed locally,
    the caller redirects and the next GET re-fetches.
    """
    try:
        action()
    except BackendUnauthorized:
        raise
    except BackendError as e:
        log.warning("%s: %s", failure, e)
        flash(e.user_message(failure), "danger")
        return False
    flash(success, "success")
    return True
