# portal/blueprints/admin/agents.py
from flask import render_template, request, redirect, url_for, flash
from flask_login import login_required

from ...extensions import _
from ...lifecycle.rows import account_rows
from ...security import roles_required
from ...services.api_client import backend
from ..common import fetch_or, run_action
from . import admin_bp
from .forms import AgentForm


@admin_bp.get('/agents')
@login_required
@roles_required('admin')
def agents():
    raw = fetch_or(lambda: backend().list_agents(), [], _('Failed to load agents'))
    return render_template('admin/agents.html', rows=account_rows(raw), form=AgentForm())


@admin_bp.post('/agents')
@login_required
@roles_required('admin')
def agent_create():
    form = AgentForm()
    if not form.validate_on_submit():
        for errors in form.errors.values():
            flash(errors[0], 'warning')
            break
        return redirect(url_for('admin.agents'))

    name = form.full_name.data.strip()
    run_action(
        lambda: backend().create_agent(
            full_name=name,
            email=form.email.data.strip().lower(),
            phone=(form.phone.data or '').strip(),
            password=form.password.data,
        ),
        _('Agent %(name)s created successfully!', name=name),
        _('Failed to create agent'),
    )
    return redirect(url_for('admin.agents'))


@admin_bp.post('/agents/<agent_id>/toggle')
@login_required
@roles_required('admin')
def agent_toggle(agent_id):
    # the row's current status travels with the form; Active flips to Rejected
    new_status = 'Rejected' if request.form.get('status') == 'Active' else 'Active'
    run_action(
        lambda: backend().set_agent_status(agent_id, new_status),
        _('Agent activated successfully') if new_status == 'Active' else _('Agent deactivated successfully'),
        _('Failed to update status'),
    )
    return redirect(url_for('admin.agents'))


@admin_bp.post('/agents/<agent_id>/delete')
@login_required
@roles_required('admin')
def agent_delete(agent_id):
    run_action(
        lambda: backend().delete_agent(agent_id),
        _('Agent deleted successfully'),
        _('Failed to delete agent'),
    )
    return redirect(url_for('admin.agents'))
