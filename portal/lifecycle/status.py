# portal/lifecycle/status.py
"""Backend lifecycle status -> role-specific display category.

Every view that shows a request or project badge goes through these helpers.
Lookups are literal and case-sensitive against the backend values.
"""
from __future__ import annotations

from typing import Optional

# ServiceRequest.status as stored by the backend
PENDING_TRIAGE = "Pending Triage"
ASSIGNED = "Assigned"
QUOTED = "Quoted"
CONVERTED = "Converted"
REJECTED = "Rejected"

# Project.globalStatus
PROJECT_PENDING = "Pending"
PROJECT_IN_PROGRESS = "In Progress"
PROJECT_DELIVERED = "Delivered"
PROJECT_STATUSES = (PROJECT_PENDING, PROJECT_IN_PROGRESS, PROJECT_DELIVERED)

CLIENT_DEFAULT = "pending"
PROJECT_DEFAULT = "planning"

_CLIENT_CATEGORIES = {
    PENDING_TRIAGE: "pending-review",
    ASSIGNED: "in-progress",
    QUOTED: "action-required",
    CONVERTED: "approved",
    REJECTED: "rejected",
}

_PROJECT_UI = {
    PROJECT_PENDING: "planning",
    PROJECT_IN_PROGRESS: "in-progress",
    PROJECT_DELIVERED: "review",
}

# tokens an agent dashboard surfaces after projection
AGENT_ACTIONABLE = frozenset({"pending", "assigned", "new", "quoted"})

# agent project filter buttons (id, label)
PROJECT_FILTERS = (
    ("all", "All Projects"),
    ("in-progress", "In Progress"),
    ("planning", "Planning"),
    ("review", "Review"),
    ("completed", "Completed"),
)


def client_request_category(status: Optional[str]) -> str:
    if not isinstance(status, str):
        return CLIENT_DEFAULT
    return _CLIENT_CATEGORIES.get(status, CLIENT_DEFAULT)


def agent_request_token(status: Optional[str]) -> str:
    if not isinstance(status, str) or not status:
        return CLIENT_DEFAULT
    if status == ASSIGNED:
        return "pending"
    return status.lower()


def is_agent_actionable(token: str) -> bool:
    return token in AGENT_ACTIONABLE


def project_ui_status(global_status: Optional[str]) -> str:
    if not isinstance(global_status, str) or not global_status:
        return PROJECT_DEFAULT
    return _PROJECT_UI.get(global_status, global_status.lower())


def proposal_badge(proposal_status: Optional[str]) -> str:
    """Badge shown in the agent request table's status column."""
    if proposal_status == "Draft":
        return "draft"
    if proposal_status == "Sent":
        return "sent"
    return "pending-review"


def account_badge(status: Optional[str]) -> str:
    return "active" if status == "Active" else "inactive"
