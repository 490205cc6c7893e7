# portal/blueprints/client/routes.py
import logging

from flask import render_template, redirect, url_for, request, flash
from flask_login import login_required, current_user

from . import client_bp
from .forms import ServiceRequestForm
from ...extensions import _
from ...forms import NoteForm, UploadForm, VaultForm
from ...lifecycle.rows import note_rows, project_rows, project_row, request_rows
from ...lifecycle.stats import client_request_counts, first_action_required
from ...security import roles_required
from ...services.api_client import BackendError, BackendUnauthorized, backend
from ...services.uploads import ASSET_CLIENT, prepare_upload, split_assets
from ..common import fetch_or, run_action

log = logging.getLogger(__name__)


# -----------------
# Dashboard
# -----------------

@client_bp.route('/dashboard')
@login_required
@roles_required('client')
def dashboard():
    raw = fetch_or(lambda: backend().list_requests(), [], _('Could not load your requests. Please try again.'))
    rows = request_rows(raw, client_name=current_user.name, client_email=current_user.email)
    return render_template(
        'client/dashboard.html',
        rows=rows,
        counts=client_request_counts(rows),
        highlighted=first_action_required(rows),
    )


@client_bp.route('/proposals/<proposal_id>/accept', methods=['POST'])
@login_required
@roles_required('client')
def accept_proposal(proposal_id):
    run_action(
        lambda: backend().accept_proposal(proposal_id),
        _('Proposal Accepted! Project started.'),
        _('Failed to accept proposal'),
    )
    return redirect(url_for('client.dashboard'))


# -----------------
# New request
# -----------------

@client_bp.route('/requests/new', methods=['GET', 'POST'])
@login_required
@roles_required('client')
def request_new():
    form = ServiceRequestForm()
    categories = fetch_or(lambda: backend().categories(), [], _('Could not load services. Please try again.'))
    form.category.choices = [
        (str(c.get("id")), c.get("name") or "Service") for c in categories if isinstance(c, dict)
    ]

    if form.validate_on_submit():
        try:
            backend().create_request(
                category_id=form.category.data,
                details=form.details.data.strip(),
                priority=form.priority.data,
            )
        except BackendUnauthorized:
            raise
        except BackendError as e:
            log.warning("Request submission failed: %s", e)
            flash(e.user_message(_('Failed to submit request')), 'danger')
            return render_template('client/request_new.html', form=form)
        flash(_('Request submitted. An agent will be assigned shortly.'), 'success')
        return redirect(url_for('client.dashboard'))

    return render_template('client/request_new.html', form=form)


# -----------------
# Projects
# -----------------

@client_bp.route('/projects')
@login_required
@roles_required('client')
def projects():
    raw = fetch_or(lambda: backend().list_projects(), [], _('Failed to load projects'))
    return render_template('client/projects.html', rows=project_rows(raw))


@client_bp.route('/projects/<project_id>')
@login_required
@roles_required('client')
def project_detail(project_id):
    api = backend()
    try:
        raw = api.get_project(project_id)
    except BackendUnauthorized:
        raise
    except BackendError as e:
        log.warning("Project %s load failed: %s", project_id, e)
        flash(_('Failed to load project details'), 'danger')
        return redirect(url_for('client.projects'))

    mode = request.args.get('vault', '')
    vault_text = ""
    if mode in ('show', 'edit'):
        me = fetch_or(api.my_client, {}, _('Could not load your credentials'))
        vault_text = me.get("technicalVault") or ""

    vault_form = VaultForm()
    if mode == 'edit':
        vault_form.vault.data = vault_text

    client_assets, deliverables = split_assets(raw.get("Assets"))
    notes = fetch_or(lambda: api.list_notes(project_id), [], _('Failed to load notes'))

    return render_template(
        'client/project_detail.html',
        project=project_row(raw),
        client_assets=client_assets,
        deliverables=deliverables,
        notes=note_rows(notes, my_name=current_user.name),
        vault_mode=mode,
        vault_text=vault_text,
        vault_form=vault_form,
        upload_form=UploadForm(),
        note_form=NoteForm(),
    )


@client_bp.route('/projects/<project_id>/assets', methods=['POST'])
@login_required
@roles_required('client')
def asset_upload(project_id):
    try:
        upload = prepare_upload(request.files.get('file'))
    except ValueError as e:
        flash(str(e), 'warning')
        return redirect(url_for('client.project_detail', project_id=project_id))

    run_action(
        lambda: backend().upload_asset(project_id, ASSET_CLIENT, upload),
        _('File uploaded successfully!'),
        _('Upload failed'),
    )
    return redirect(url_for('client.project_detail', project_id=project_id))


@client_bp.route('/projects/<project_id>/vault', methods=['POST'])
@login_required
@roles_required('client')
def vault_update(project_id):
    form = VaultForm()
    if not form.validate_on_submit():
        flash(_('Credentials could not be saved.'), 'warning')
        return redirect(url_for('client.project_detail', project_id=project_id, vault='edit'))

    ok = run_action(
        lambda: backend().update_my_vault(form.vault.data or ""),
        _('Credentials updated securely!'),
        _('Failed to update vault'),
    )
    return redirect(url_for('client.project_detail', project_id=project_id, vault='show' if ok else 'edit'))


@client_bp.route('/projects/<project_id>/notes', methods=['POST'])
@login_required
@roles_required('client')
def note_post(project_id):
    form = NoteForm()
    if not form.validate_on_submit():
        flash(_('Write something first.'), 'warning')
        return redirect(url_for('client.project_detail', project_id=project_id))

    run_action(
        lambda: backend().post_note(project_id, form.content.data.strip()),
        _('Note posted'),
        _('Failed to send note'),
    )
    return redirect(url_for('client.project_detail', project_id=project_id))
