# portal/blueprints/admin/settings.py
import logging
import time

from flask import render_template, request, redirect, url_for, flash
from flask_login import login_required

from ...extensions import _
from ...lifecycle.rows import account_rows
from ...lifecycle.stats import active_account_count
from ...security import roles_required
from ...services.api_client import BackendError, BackendUnauthorized, backend
from ...services.settings_store import PlatformSettings, load_platform_settings, save_platform_settings
from . import admin_bp
from .forms import SettingsForm

log = logging.getLogger(__name__)


def _system_stats(api) -> dict:
    """Health check plus active-agent count; each half fails on its own."""
    stats = {"serverStatus": "Offline", "dbStatus": "Unknown", "responseTime": "-", "activeAgents": 0}

    start = time.monotonic()
    try:
        health = api.health()
    except BackendUnauthorized:
        raise
    except BackendError as e:
        log.warning("Health check failed: %s", e)
    else:
        latency = int((time.monotonic() - start) * 1000)
        stats.update(
            serverStatus=health.get("server") or "Online",
            dbStatus=health.get("database") or "Connected",
            responseTime=f"{latency}ms",
        )

    try:
        stats["activeAgents"] = active_account_count(account_rows(api.list_agents()))
    except BackendUnauthorized:
        raise
    except BackendError as e:
        log.warning("Agent count failed: %s", e)
    return stats


@admin_bp.route('/settings', methods=['GET', 'POST'])
@login_required
@roles_required('admin')
def settings():
    current = load_platform_settings()
    form = SettingsForm(data=current.to_dict()) if request.method == 'GET' else SettingsForm()

    if form.validate_on_submit():
        updated = PlatformSettings.from_dict({
            "auto_approval": form.auto_approval.data,
            "email_notifications": form.email_notifications.data,
            "agent_assignment": form.agent_assignment.data,
            "maintenance_mode": form.maintenance_mode.data,
            "max_projects_per_agent": form.max_projects_per_agent.data,
            "session_timeout": form.session_timeout.data,
        })
        save_platform_settings(updated)
        flash(_('Settings saved successfully'), 'success')
        return redirect(url_for('admin.settings'))

    return render_template('admin/settings.html', form=form, stats=_system_stats(backend()))
