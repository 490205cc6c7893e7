# portal/lifecycle/timeline.py
"""Request -> proposal -> project cards for the admin client drill-down.

The backend already joins each request with its proposal and project. This
module only shapes those records for display: every card carries all three
blocks, and a missing proposal or project becomes a labelled placeholder
instead of disappearing.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

from .formatting import clamp_progress, format_date, format_ecd, money_label, priority_label
from .status import client_request_category, project_ui_status

PROPOSAL_PLACEHOLDER = "Proposal not generated yet"
PROJECT_PLACEHOLDER = "Project not started"

UrlBuilder = Callable[[Optional[str]], Optional[str]]


@dataclass(frozen=True)
class RequestBlock:
    id: str
    category: str
    details: str
    priority: str
    status: str
    category_badge: str
    submitted: str
    agent_name: str


@dataclass(frozen=True)
class ProposalBlock:
    present: bool
    label: str
    id: Optional[str] = None
    status: Optional[str] = None
    amount: Optional[str] = None
    pdf_url: Optional[str] = None

    @classmethod
    def placeholder(cls) -> "ProposalBlock":
        return cls(present=False, label=PROPOSAL_PLACEHOLDER)


@dataclass(frozen=True)
class ProjectBlock:
    present: bool
    label: str
    id: Optional[str] = None
    status: Optional[str] = None
    ui_status: Optional[str] = None
    progress: int = 0
    ecd: Optional[str] = None

    @classmethod
    def placeholder(cls) -> "ProjectBlock":
        return cls(present=False, label=PROJECT_PLACEHOLDER)


@dataclass(frozen=True)
class TimelineEntry:
    request: RequestBlock
    proposal: ProposalBlock
    project: ProjectBlock
    stage: int = field(default=1)


def _name(obj: Any, *keys: str, default: str = "") -> str:
    if not isinstance(obj, dict):
        return default
    for key in keys:
        val = obj.get(key)
        if val:
            return str(val)
    return default


def _request_block(raw: dict) -> RequestBlock:
    status = raw.get("status") or ""
    return RequestBlock(
        id=str(raw.get("id", "")),
        category=_name(raw.get("Category"), "name", default="General Service"),
        details=raw.get("details") or "",
        priority=priority_label(raw.get("priority")),
        status=status,
        category_badge=client_request_category(status),
        submitted=format_date(raw.get("createdAt")),
        agent_name=_name(raw.get("AssignedAgent"), "fullName", "name", default="Unassigned"),
    )


def _proposal_block(proposal: Any, build_url: Optional[UrlBuilder]) -> ProposalBlock:
    if not isinstance(proposal, dict) or not proposal:
        return ProposalBlock.placeholder()
    pdf_path = proposal.get("pdfPath")
    return ProposalBlock(
        present=True,
        label=f"Proposal #{proposal.get('id', '')}",
        id=str(proposal.get("id", "")),
        status=proposal.get("status") or "Draft",
        amount=money_label(proposal.get("totalAmount")) or "TBD",
        pdf_url=build_url(pdf_path) if (build_url and pdf_path) else None,
    )


def _project_block(project: Any) -> ProjectBlock:
    if not isinstance(project, dict) or not project:
        return ProjectBlock.placeholder()
    status = project.get("globalStatus") or ""
    return ProjectBlock(
        present=True,
        label=f"Project #{project.get('id', '')}",
        id=str(project.get("id", "")),
        status=status or "Pending",
        ui_status=project_ui_status(status),
        progress=clamp_progress(project.get("progressPercent") or 0),
        ecd=format_ecd(project.get("ecd")),
    )


def assemble_entry(raw: dict, build_url: Optional[UrlBuilder] = None) -> TimelineEntry:
    proposal = raw.get("Proposal")
    project = raw.get("Project")
    if not project and isinstance(proposal, dict):
        project = proposal.get("Project")

    req = _request_block(raw)
    prop = _proposal_block(proposal, build_url)
    proj = _project_block(project)
    stage = 1 + int(prop.present) + int(proj.present)
    return TimelineEntry(request=req, proposal=prop, project=proj, stage=stage)


def assemble_timeline(records: Optional[Iterable[Any]], build_url: Optional[UrlBuilder] = None) -> List[TimelineEntry]:
    """One entry per request, in the order the backend returned them."""
    return [assemble_entry(r, build_url) for r in (records or []) if isinstance(r, dict)]
