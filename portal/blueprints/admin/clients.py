# portal/blueprints/admin/clients.py
import logging

from flask import render_template, request, redirect, url_for, flash
from flask_login import login_required

from ...extensions import _
from ...lifecycle.rows import account_row, account_rows
from ...lifecycle.stats import search_accounts
from ...lifecycle.timeline import assemble_timeline
from ...security import roles_required
from ...services.api_client import BackendError, BackendUnauthorized, asset_url, backend
from ..common import fetch_or, run_action
from . import admin_bp

log = logging.getLogger(__name__)


@admin_bp.get('/clients')
@login_required
@roles_required('admin')
def clients():
    q = (request.args.get('q') or '').strip()
    raw = fetch_or(lambda: backend().list_clients(), [], _('Failed to load clients'))
    rows = account_rows(raw)
    return render_template('admin/clients.html', rows=search_accounts(rows, q), total=len(rows), q=q)


@admin_bp.post('/clients/<client_id>/toggle')
@login_required
@roles_required('admin')
def client_toggle(client_id):
    new_status = 'Rejected' if request.form.get('status') == 'Active' else 'Active'
    run_action(
        lambda: backend().set_user_status(client_id, new_status),
        _('Client activated successfully') if new_status == 'Active' else _('Client deactivated successfully'),
        _('Failed to update status'),
    )
    return redirect(url_for('admin.clients', q=request.form.get('q') or None))


@admin_bp.get('/clients/<client_id>/timeline')
@login_required
@roles_required('admin')
def client_timeline(client_id):
    try:
        history = backend().client_history(client_id)
    except BackendUnauthorized:
        raise
    except BackendError as e:
        log.warning("History for client %s failed: %s", client_id, e)
        flash(e.user_message(_('Failed to load client history')), 'danger')
        return redirect(url_for('admin.clients'))

    client = account_row(history.get("client") or {"id": client_id})
    entries = assemble_timeline(history.get("requests"), build_url=asset_url)
    return render_template('admin/client_timeline.html', client=client, entries=entries)
