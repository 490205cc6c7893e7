# portal/blueprints/admin/service_requests.py
from flask import render_template
from flask_login import login_required

from ...extensions import _
from ...lifecycle.rows import request_rows
from ...security import roles_required
from ...services.api_client import backend
from ..common import fetch_or
from . import admin_bp


@admin_bp.get('/requests')
@login_required
@roles_required('admin')
def requests_list():
    raw = fetch_or(lambda: backend().list_requests(), [], _('Failed to fetch requests'))
    return render_template('admin/requests.html', rows=request_rows(raw))
