# portal/lifecycle/stats.py
"""Dashboard counters and list filters shared by several views."""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .rows import AccountRow, ProjectRow, RequestRow
from .status import PENDING_TRIAGE, PROJECT_DELIVERED, PROJECT_IN_PROGRESS, PROJECT_PENDING, is_agent_actionable


def client_request_counts(rows: Sequence[RequestRow]) -> dict:
    pending = sum(1 for r in rows if r.client_category in ("pending-review", "pending"))
    action = sum(1 for r in rows if r.client_category == "action-required")
    return {"total": len(rows), "pending": pending, "action": action}


def first_action_required(rows: Iterable[RequestRow]) -> Optional[RequestRow]:
    return next((r for r in rows if r.client_category == "action-required"), None)


def agent_actionable(rows: Iterable[RequestRow]) -> List[RequestRow]:
    return [r for r in rows if is_agent_actionable(r.agent_token)]


def awaiting_triage(records: Iterable[dict]) -> List[dict]:
    # the status query param is not trusted; keep exact matches only
    return [r for r in records if isinstance(r, dict) and r.get("status") == PENDING_TRIAGE]


def agent_profile_stats(raw_projects: Iterable[dict]) -> dict:
    projects = [p for p in raw_projects if isinstance(p, dict)]
    active = sum(1 for p in projects if p.get("globalStatus") in (PROJECT_IN_PROGRESS, PROJECT_PENDING))
    completed = sum(1 for p in projects if p.get("globalStatus") == PROJECT_DELIVERED)
    clients = {p.get("clientId") for p in projects if p.get("clientId") is not None}
    return {"active_projects": active, "completed_projects": completed, "total_clients": len(clients)}


def agent_client_stats(clients: Sequence[AccountRow]) -> dict:
    return {
        "total": len(clients),
        "active": sum(1 for c in clients if c.active_projects > 0),
        "active_projects": sum(c.active_projects for c in clients),
    }


def active_account_count(accounts: Iterable[AccountRow]) -> int:
    return sum(1 for a in accounts if a.is_active)


def pending_approvals(accounts: Iterable[AccountRow]) -> List[AccountRow]:
    return [a for a in accounts if a.pending_approval]


def search_accounts(accounts: Iterable[AccountRow], term: Optional[str]) -> List[AccountRow]:
    needle = (term or "").strip().lower()
    if not needle:
        return list(accounts)
    return [
        a for a in accounts
        if needle in a.name.lower() or needle in a.company.lower() or needle in a.email.lower()
    ]


def filter_projects_by_ui(rows: Iterable[ProjectRow], ui_status: str) -> List[ProjectRow]:
    if not ui_status or ui_status == "all":
        return list(rows)
    return [p for p in rows if p.ui_status == ui_status]


def filter_projects_admin(rows: Iterable[ProjectRow], status: str = "All", term: Optional[str] = None) -> List[ProjectRow]:
    needle = (term or "").strip().lower()
    out = []
    for p in rows:
        if status and status != "All" and p.global_status != status:
            continue
        if needle and needle not in p.client_name.lower() and needle not in p.agent_name.lower():
            continue
        out.append(p)
    return out
