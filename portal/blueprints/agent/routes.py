# portal/blueprints/agent/routes.py
import logging

from flask import render_template, redirect, url_for, request, flash, jsonify
from flask_login import login_required, current_user

from . import agent_bp
from .forms import ProjectUpdateForm
from ...extensions import _
from ...forms import NoteForm, UploadForm
from ...lifecycle.formatting import clamp_progress, date_input_value, format_money
from ...lifecycle.line_items import LineItemSheet
from ...lifecycle.rows import account_rows, note_rows, project_row, project_rows, request_rows
from ...lifecycle.stats import agent_actionable, agent_client_stats, filter_projects_by_ui
from ...lifecycle.status import PROJECT_FILTERS
from ...security import roles_required
from ...services.api_client import BackendError, BackendUnauthorized, backend
from ...services.settings_store import settings_store
from ...services.uploads import ASSET_DELIVERABLE, prepare_upload, split_assets
from ..common import fetch_or, run_action

log = logging.getLogger(__name__)

# -----------------
# Helpers
# -----------------

# drafts live in the settings store, never in the session cookie
DRAFT_KEY = "proposal_draft:{user_id}:{request_id}"


def _draft_key(request_id: str) -> str:
    return DRAFT_KEY.format(user_id=current_user.id, request_id=request_id)


def _load_draft(request_id: str, form=None) -> LineItemSheet:
    """The saved draft, else the rows the page just posted, else a seeded sheet."""
    state = settings_store().get(_draft_key(request_id))
    if state:
        return LineItemSheet.from_state(state)
    if form is not None:
        posted = list(dict.fromkeys(form.getlist("item_id")))
        return LineItemSheet.from_state([{"id": item_id} for item_id in posted])
    return LineItemSheet.seeded()


def _save_draft(request_id: str, sheet: LineItemSheet) -> None:
    settings_store().set(_draft_key(request_id), sheet.to_state())


def _drop_draft(request_id: str) -> None:
    settings_store().delete(_draft_key(request_id))


def _apply_posted_rows(sheet: LineItemSheet, form) -> None:
    """Fold the edited row inputs back into the sheet, one field at a time."""
    for item_id in form.getlist("item_id"):
        if sheet.get(item_id) is None:
            continue
        for field_name in ("description", "quantity", "unit_price"):
            key = f"{field_name}-{item_id}"
            if key in form:
                sheet.update_item(item_id, field_name, form.get(key))


def _totals(sheet: LineItemSheet) -> dict:
    return {
        "subtotal": format_money(sheet.subtotal),
        "tax": format_money(sheet.tax),
        "total": format_money(sheet.total),
    }


# -----------------
# Dashboard
# -----------------

@agent_bp.route('/dashboard')
@login_required
@roles_required('agent')
def dashboard():
    api = backend()
    raw_requests = fetch_or(api.list_requests, None, _('Failed to load dashboard data'))
    # a failed request load already flashed; skip the projects call
    raw_projects = fetch_or(api.list_projects, [], _('Failed to load dashboard data')) if raw_requests is not None else []

    rows = agent_actionable(request_rows(raw_requests or []))
    projects = project_rows(raw_projects)
    return render_template('agent/dashboard.html', rows=rows, projects=projects)


@agent_bp.route('/proposals/<proposal_id>/send', methods=['POST'])
@login_required
@roles_required('agent')
def proposal_send(proposal_id):
    run_action(
        lambda: backend().send_proposal(proposal_id),
        _('Proposal sent successfully!'),
        _('Failed to send proposal'),
    )
    return redirect(url_for('agent.dashboard'))


# -----------------
# Proposal builder
# -----------------

@agent_bp.route('/requests/<request_id>/proposal', methods=['GET', 'POST'])
@login_required
@roles_required('agent')
def proposal_builder(request_id):
    if request.method == 'GET':
        if request.args.get('fresh'):
            _drop_draft(request_id)
        sheet = _load_draft(request_id)

        raw = fetch_or(lambda: backend().list_requests(), [], _('Failed to load request details'))
        row = next((r for r in request_rows(raw) if r.id == str(request_id)), None)
        return render_template(
            'agent/proposal_builder.html',
            request_id=request_id,
            row=row,
            sheet=sheet,
            totals=_totals(sheet),
        )

    sheet = _load_draft(request_id, request.form)
    _apply_posted_rows(sheet, request.form)
    action = request.form.get('action', 'update')
    remove_id = request.form.get('remove')

    if remove_id:
        if not sheet.can_remove:
            flash(_('A proposal needs at least one line item.'), 'warning')
        else:
            sheet.remove_item(remove_id)
    elif action == 'add':
        sheet.add_item()
    elif action == 'generate':
        items = sheet.to_payload()
        try:
            backend().create_proposal(request_id, items)
        except BackendUnauthorized:
            raise
        except BackendError as e:
            log.warning("Proposal generation failed for request %s: %s", request_id, e)
            flash(e.user_message(_('Failed to generate proposal')), 'danger')
        else:
            _drop_draft(request_id)
            flash(_('Proposal Generated! You can now view or send it from the dashboard.'), 'success')
            return redirect(url_for('agent.dashboard'))

    _save_draft(request_id, sheet)
    return redirect(url_for('agent.proposal_builder', request_id=request_id))


@agent_bp.route('/proposals/totals', methods=['POST'])
@login_required
@roles_required('agent')
def proposal_totals():
    data = request.get_json(silent=True) or {}
    sheet = LineItemSheet([])
    for raw in data.get('items') or []:
        if not isinstance(raw, dict):
            continue
        item = sheet.add_item()
        sheet.update_item(item.id, 'quantity', raw.get('quantity'))
        sheet.update_item(item.id, 'unit_price', raw.get('unit_price', raw.get('unitPrice')))
    return jsonify(_totals(sheet))


# -----------------
# Projects
# -----------------

@agent_bp.route('/projects')
@login_required
@roles_required('agent')
def projects():
    status = request.args.get('status', 'all')
    if status not in dict(PROJECT_FILTERS):
        status = 'all'
    raw = fetch_or(lambda: backend().list_projects(), [], _('Failed to load projects'))
    rows = project_rows(raw)
    return render_template(
        'agent/projects.html',
        rows=filter_projects_by_ui(rows, status),
        total=len(rows),
        status=status,
        filters=PROJECT_FILTERS,
    )


@agent_bp.route('/projects/<project_id>', methods=['GET', 'POST'])
@login_required
@roles_required('agent')
def project_manage(project_id):
    api = backend()
    form = ProjectUpdateForm()

    if form.validate_on_submit():
        progress = clamp_progress(form.progress.data)
        ecd = form.ecd.data.isoformat() if form.ecd.data else None
        run_action(
            lambda: api.update_project(project_id, progress=progress, ecd=ecd),
            _('Project status updated successfully'),
            _('Failed to update status'),
        )
        return redirect(url_for('agent.project_manage', project_id=project_id))
    if request.method == 'POST':
        for errors in form.errors.values():
            for msg in errors:
                flash(msg, 'warning')
        return redirect(url_for('agent.project_manage', project_id=project_id))

    try:
        raw = api.get_project(project_id)
    except BackendUnauthorized:
        raise
    except BackendError as e:
        log.warning("Project %s load failed: %s", project_id, e)
        flash(_('Failed to load project details'), 'danger')
        return redirect(url_for('agent.dashboard'))

    project = project_row(raw)
    form.progress.data = project.progress
    ecd_value = date_input_value(raw.get("ecd"))

    vault_text = None
    if request.args.get('vault'):
        vault_text = fetch_or(lambda: api.project_vault(project_id), None, _('Failed to access client vault'))

    client_assets, deliverables = split_assets(raw.get("Assets"))
    notes = fetch_or(lambda: api.list_notes(project_id), [], _('Failed to load notes'))

    return render_template(
        'agent/project_manage.html',
        project=project,
        raw=raw,
        form=form,
        ecd_value=ecd_value,
        client_assets=client_assets,
        deliverables=deliverables,
        vault_text=vault_text,
        notes=note_rows(notes, my_name=current_user.name),
        upload_form=UploadForm(),
        note_form=NoteForm(),
    )


@agent_bp.route('/projects/<project_id>/deliverables', methods=['POST'])
@login_required
@roles_required('agent')
def deliverable_upload(project_id):
    try:
        upload = prepare_upload(request.files.get('file'))
    except ValueError as e:
        flash(str(e), 'warning')
        return redirect(url_for('agent.project_manage', project_id=project_id))

    run_action(
        lambda: backend().upload_asset(project_id, ASSET_DELIVERABLE, upload),
        _('File uploaded successfully'),
        _('Failed to upload file'),
    )
    return redirect(url_for('agent.project_manage', project_id=project_id))


@agent_bp.route('/projects/<project_id>/notes', methods=['POST'])
@login_required
@roles_required('agent')
def note_post(project_id):
    form = NoteForm()
    if not form.validate_on_submit():
        flash(_('Write something first.'), 'warning')
        return redirect(url_for('agent.project_manage', project_id=project_id))

    run_action(
        lambda: backend().post_note(project_id, form.content.data.strip()),
        _('Note posted'),
        _('Failed to post note'),
    )
    return redirect(url_for('agent.project_manage', project_id=project_id))


# -----------------
# Clients
# -----------------

@agent_bp.route('/clients')
@login_required
@roles_required('agent')
def clients():
    raw = fetch_or(lambda: backend().agent_clients(), [], _('Failed to load clients'))
    rows = account_rows(raw)
    return render_template('agent/clients.html', rows=rows, stats=agent_client_stats(rows))
