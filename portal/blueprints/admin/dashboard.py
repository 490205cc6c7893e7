# portal/blueprints/admin/dashboard.py
from flask import render_template, request, redirect, url_for, flash
from flask_login import login_required

from ...extensions import _
from ...lifecycle.rows import account_rows, request_rows
from ...lifecycle.stats import awaiting_triage, pending_approvals
from ...lifecycle.status import PENDING_TRIAGE
from ...security import roles_required
from ...services.api_client import backend
from ..common import fetch_or, run_action
from . import admin_bp


@admin_bp.get('/dashboard')
@login_required
@roles_required('admin')
def dashboard():
    api = backend()
    message = _('Failed to load dashboard data')
    pending_raw = fetch_or(api.pending_users, None, message)
    if pending_raw is None:
        pending_raw, triage_raw, agents_raw = [], [], []
    else:
        triage_raw = fetch_or(lambda: api.list_requests(PENDING_TRIAGE), [], message)
        agents_raw = fetch_or(api.list_agents, [], message)

    pending = pending_approvals(account_rows(pending_raw, pending=True))
    triage = request_rows(awaiting_triage(triage_raw))
    agents = [a for a in account_rows(agents_raw) if a.is_active]
    return render_template('admin/dashboard.html', pending=pending, triage=triage, agents=agents)


@admin_bp.post('/users/<user_id>/approve')
@login_required
@roles_required('admin')
def user_approve(user_id):
    run_action(
        lambda: backend().set_user_status(user_id, 'Active'),
        _('User approved successfully'),
        _('Failed to update user status'),
    )
    return redirect(url_for('admin.dashboard'))


@admin_bp.post('/users/<user_id>/reject')
@login_required
@roles_required('admin')
def user_reject(user_id):
    run_action(
        lambda: backend().set_user_status(user_id, 'Rejected'),
        _('User rejected successfully'),
        _('Failed to update user status'),
    )
    return redirect(url_for('admin.dashboard'))


@admin_bp.post('/requests/<request_id>/assign')
@login_required
@roles_required('admin')
def request_assign(request_id):
    agent_id = (request.form.get('agent_id') or '').strip()
    if not agent_id:
        flash(_('Please select an agent first'), 'warning')
        return redirect(url_for('admin.dashboard'))

    run_action(
        lambda: backend().assign_agent(request_id, agent_id),
        _('Agent assigned successfully'),
        _('Failed to assign agent'),
    )
    return redirect(url_for('admin.dashboard'))
