# portal/blueprints/admin/projects.py
from flask import render_template, request
from flask_login import login_required

from ...extensions import _
from ...lifecycle.rows import project_rows
from ...lifecycle.stats import filter_projects_admin
from ...lifecycle.status import PROJECT_STATUSES
from ...security import roles_required
from ...services.api_client import backend
from ..common import fetch_or
from . import admin_bp

STATUS_CHOICES = ("All",) + PROJECT_STATUSES


@admin_bp.get('/projects')
@login_required
@roles_required('admin')
def projects():
    status = request.args.get('status', 'All')
    if status not in STATUS_CHOICES:
        status = 'All'
    q = (request.args.get('q') or '').strip()

    raw = fetch_or(lambda: backend().list_projects(), [], _('Failed to load projects'))
    rows = project_rows(raw)
    return render_template(
        'admin/projects.html',
        rows=filter_projects_admin(rows, status=status, term=q),
        total=len(rows),
        status=status,
        statuses=STATUS_CHOICES,
        q=q,
    )
