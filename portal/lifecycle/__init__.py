"""Pure request / proposal / project lifecycle helpers used by every view."""
from .formatting import file_url, format_date, format_ecd, format_money, money_label
from .line_items import TAX_RATE, LineItem, LineItemSheet
from .rows import account_rows, project_rows, request_rows
from .status import (
    agent_request_token,
    client_request_category,
    is_agent_actionable,
    project_ui_status,
)
from .timeline import PROJECT_PLACEHOLDER, PROPOSAL_PLACEHOLDER, assemble_timeline

__all__ = [
    "TAX_RATE",
    "LineItem",
    "LineItemSheet",
    "PROJECT_PLACEHOLDER",
    "PROPOSAL_PLACEHOLDER",
    "account_rows",
    "agent_request_token",
    "assemble_timeline",
    "client_request_category",
    "file_url",
    "format_date",
    "format_ecd",
    "format_money",
    "is_agent_actionable",
    "money_label",
    "project_rows",
    "project_ui_status",
    "request_rows",
]
