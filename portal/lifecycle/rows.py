# portal/lifecycle/rows.py
"""Normalize raw backend records into the rows the tables render."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from .formatting import clamp_progress, format_date, format_ecd, money_label, priority_label
from .status import (
    account_badge,
    agent_request_token,
    client_request_category,
    project_ui_status,
    proposal_badge,
)


def _nested(obj: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _truthy_flag(val: Any) -> bool:
    if isinstance(val, str):
        return val.strip().lower() in {"1", "true", "yes", "on"}
    return bool(val)


def _count(val: Any) -> int:
    """Non-negative integer count; junk from the backend reads as 0."""
    try:
        return max(int(float(val)), 0)
    except (TypeError, ValueError, OverflowError):
        return 0


@dataclass(frozen=True)
class RequestRow:
    id: str
    client: str
    client_email: str
    category: str
    details: str
    priority: str
    status: str
    client_category: str
    agent_token: str
    created: str
    agent_name: str
    proposal_id: Optional[str] = None
    proposal_status: Optional[str] = None
    proposal_amount: Optional[str] = None
    pdf_path: Optional[str] = None

    @property
    def proposal_badge(self) -> str:
        return proposal_badge(self.proposal_status)

    @property
    def is_draft(self) -> bool:
        return self.proposal_status == "Draft"


@dataclass(frozen=True)
class ProjectRow:
    id: str
    name: str
    client_id: Optional[str]
    client_name: str
    agent_name: str
    category: str
    global_status: str
    ui_status: str
    progress: int
    ecd: str
    started: str
    budget: str
    details: str = ""


@dataclass(frozen=True)
class AccountRow:
    id: str
    name: str
    email: str
    phone: str
    company: str
    status: str
    pending_approval: bool
    joined: str
    active_projects: int = 0
    industry: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == "Active" and not self.pending_approval

    @property
    def badge(self) -> str:
        if self.pending_approval:
            return "pending"
        return account_badge(self.status)

    @property
    def toggled_status(self) -> str:
        return "Rejected" if self.status == "Active" else "Active"


def request_row(raw: dict, client_name: str = "", client_email: str = "") -> RequestRow:
    proposal = raw.get("Proposal") if isinstance(raw.get("Proposal"), dict) else None
    status = raw.get("status") or ""
    return RequestRow(
        id=str(raw.get("id", "")),
        client=(_nested(raw, "Client", "companyName") or _nested(raw, "Client", "User", "fullName")
                or client_name or "Unknown Client"),
        client_email=_nested(raw, "Client", "User", "email") or client_email or "",
        category=_nested(raw, "Category", "name") or "General Service",
        details=raw.get("details") or "",
        priority=priority_label(raw.get("priority")),
        status=status,
        client_category=client_request_category(status),
        agent_token=agent_request_token(status),
        created=format_date(raw.get("createdAt")),
        agent_name=_nested(raw, "AssignedAgent", "fullName") or "Unassigned",
        proposal_id=str(proposal["id"]) if proposal and proposal.get("id") is not None else None,
        proposal_status=proposal.get("status") if proposal else None,
        proposal_amount=money_label(proposal.get("totalAmount")) if proposal else None,
        pdf_path=proposal.get("pdfPath") if proposal else None,
    )


def project_row(raw: dict) -> ProjectRow:
    status = raw.get("globalStatus") or ""
    client_id = raw.get("clientId")
    return ProjectRow(
        id=str(raw.get("id", "")),
        name=_nested(raw, "Request", "Category", "name") or f"Project #{raw.get('id', '')}",
        client_id=str(client_id) if client_id is not None else None,
        client_name=(_nested(raw, "Client", "companyName") or _nested(raw, "Client", "User", "fullName")
                     or "Unknown"),
        agent_name=_nested(raw, "Agent", "fullName") or "Unassigned",
        category=_nested(raw, "Request", "Category", "name") or "General",
        global_status=status or "Pending",
        ui_status=project_ui_status(status),
        progress=clamp_progress(raw.get("progressPercent") or 0),
        ecd=format_ecd(raw.get("ecd")),
        started=format_date(raw.get("createdAt")),
        budget=money_label(_nested(raw, "Request", "Proposal", "totalAmount")) or "TBD",
        details=_nested(raw, "Request", "details") or "",
    )


def account_row(raw: dict, pending: bool = False) -> AccountRow:
    flag = raw.get("pendingApproval")
    return AccountRow(
        id=str(raw.get("id", "")),
        name=raw.get("fullName") or raw.get("name") or "",
        email=raw.get("email") or "",
        phone=raw.get("mobile") or raw.get("phone") or "",
        company=raw.get("companyName") or raw.get("company") or "",
        status=raw.get("status") or "",
        pending_approval=pending if flag is None else _truthy_flag(flag),
        joined=format_date(raw.get("createdAt") or raw.get("joinedDate")),
        active_projects=_count(raw.get("activeProjects")),
        industry=raw.get("industry") or "",
    )


def request_rows(records: Optional[Iterable[Any]], **kw) -> List[RequestRow]:
    return [request_row(r, **kw) for r in (records or []) if isinstance(r, dict)]


def project_rows(records: Optional[Iterable[Any]]) -> List[ProjectRow]:
    return [project_row(r) for r in (records or []) if isinstance(r, dict)]


def account_rows(records: Optional[Iterable[Any]], pending: bool = False) -> List[AccountRow]:
    return [account_row(r, pending=pending) for r in (records or []) if isinstance(r, dict)]


@dataclass(frozen=True)
class NoteRow:
    id: str
    content: str
    author: str
    role: str
    posted: str
    is_mine: bool


def note_rows(records: Optional[Iterable[Any]], my_name: str = "") -> List[NoteRow]:
    """Discussion thread in backend order; ``is_mine`` matches on author name."""
    out = []
    for raw in records or []:
        if not isinstance(raw, dict):
            continue
        author = _nested(raw, "Author", "fullName") or "Unknown"
        out.append(NoteRow(
            id=str(raw.get("id", "")),
            content=raw.get("content") or "",
            author=author,
            role=_nested(raw, "Author", "role") or "",
            posted=format_date(raw.get("createdAt")),
            is_mine=bool(my_name) and author == my_name,
        ))
    return out
