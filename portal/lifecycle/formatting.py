# portal/lifecycle/formatting.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

PRIORITIES = ("Low", "Medium", "High")
DEFAULT_PRIORITY = "Medium"


def format_money(value: Any) -> str:
    """Two-decimal string; unparsable amounts render as 0.00."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        amount = 0.0
    if amount != amount:  # NaN
        amount = 0.0
    return f"{amount:.2f}"


def money_label(value: Any, symbol: str = "$") -> Optional[str]:
    if value is None or value == "":
        return None
    return f"{symbol}{format_money(value)}"


def parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not value or not isinstance(value, str):
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.strptime(raw[:10], "%Y-%m-%d")
    except ValueError:
        return None


def format_date(value: Any, empty: str = "N/A") -> str:
    """``Jan 5, 2025`` style date, or ``empty`` when missing or unparsable."""
    dt = parse_timestamp(value)
    if dt is None:
        return empty
    return f"{dt:%b} {dt.day}, {dt.year}"


def format_ecd(value: Any) -> str:
    return format_date(value, empty="TBD")


def date_input_value(value: Any) -> str:
    """``YYYY-MM-DD`` for <input type=date>, empty string when unknown."""
    dt = parse_timestamp(value)
    return dt.strftime("%Y-%m-%d") if dt else ""


def priority_label(priority: Optional[str]) -> str:
    return priority if priority in PRIORITIES else DEFAULT_PRIORITY


def initials(name: Optional[str], fallback: str = "U") -> str:
    parts = [p for p in (name or "").split() if p]
    if not parts:
        return fallback
    return "".join(p[0] for p in parts).upper()


def clamp_progress(value: Any) -> int:
    try:
        pct = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return min(max(pct, 0), 100)


def file_url(path: Optional[str], api_base: str, version_suffix: str = "/api/v1") -> Optional[str]:
    """Public URL of a server-relative upload path.

    The API base loses its version suffix, Windows separators become ``/``.
    """
    if not path:
        return None
    base = (api_base or "").rstrip("/")
    if version_suffix:
        base = base.replace(version_suffix.rstrip("/"), "", 1)
    clean = str(path).replace("\\", "/").lstrip("/")
    return f"{base}/{clean}"
