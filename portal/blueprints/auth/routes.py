# portal/blueprints/auth/routes.py
import logging

from flask import render_template, request, redirect, url_for, flash, session
from flask_login import login_user, logout_user, login_required, current_user
from ...extensions import _
from ...lifecycle.stats import agent_profile_stats
from ...models.user import SessionUser
from ...services.api_client import TOKEN_KEY, BackendError, BackendRejected, BackendUnauthorized, backend, build_client
from ..common import fetch_or
from . import auth_bp
from .forms import RegisterForm, LoginForm, ProfileForm

log = logging.getLogger(__name__)

# -----------------
# Utilities
# -----------------

def _redirect_next(default_endpoint: str):
    nxt = request.args.get("next") or request.form.get("next")
    # local paths only
    if nxt and nxt.startswith("/") and not nxt.startswith("//"):
        return nxt
    return url_for(default_endpoint)


def _start_session(token: str, user: SessionUser, remember: bool = False):
    session[TOKEN_KEY] = token
    session["user"] = user.to_session()
    login_user(user, remember=remember)


# -----------------
# Register
# -----------------

@auth_bp.route('/register', methods=['GET', 'POST'])
def register():
    if current_user.is_authenticated:
        return redirect(url_for(current_user.dashboard_endpoint))

    form = RegisterForm()
    if form.validate_on_submit():
        try:
            build_client().register(
                full_name=form.name.data.strip(),
                email=form.email.data.strip().lower(),
                password=form.password.data,
                company_name=(form.company.data or '').strip(),
                phone=(form.phone.data or '').strip(),
            )
        except BackendError as e:
            log.warning("Registration failed: %s", e)
            flash(e.user_message(_('Registration failed. Please try again.')), 'danger')
            return render_template('auth/register.html', form=form)

        session["pending_email"] = form.email.data.strip().lower()
        flash(_('Account created. An administrator will review it shortly.'), 'success')
        return redirect(url_for('auth.pending_approval'))

    return render_template('auth/register.html', form=form)


@auth_bp.route('/pending-approval')
def pending_approval():
    return render_template('auth/pending_approval.html', email=session.get("pending_email"))


# -----------------
# Login / Logout
# -----------------

@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for(current_user.dashboard_endpoint))

    form = LoginForm()
    if form.validate_on_submit():
        email = form.email.data.strip().lower()
        try:
            data = build_client().login(email, form.password.data)
        except BackendRejected as e:
            log.info("Sign-in rejected for %s: %s", email, e)
            flash(e.user_message(_('Invalid email or password.')), 'danger')
            return render_template('auth/login.html', form=form)
        except BackendError as e:
            log.warning("Sign-in unavailable: %s", e)
            flash(e.user_message(_('Sign-in is unavailable right now.')), 'danger')
            return render_template('auth/login.html', form=form)

        token = data.get("token") or data.get("accessToken")
        user_data = data.get("user")
        if not token or not isinstance(user_data, dict):
            log.error("Login response missing token or user for %s", email)
            flash(_('Unexpected response from the server.'), 'danger')
            return render_template('auth/login.html', form=form)

        user = SessionUser.from_api(user_data)
        if user.pending_approval:
            session["pending_email"] = user.email
            return redirect(url_for('auth.pending_approval'))

        if user.status != 'Active':
            flash(_('Your account is deactivated. Contact support.'), 'warning')
            return render_template('auth/login.html', form=form)

        _start_session(token, user, remember=bool(form.remember.data))
        log.info("User %s signed in as %s", user.id, user.role)
        return redirect(_redirect_next(user.dashboard_endpoint))

    # Preserve next param
    form.next.data = request.args.get('next', '')
    return render_template('auth/login.html', form=form)


@auth_bp.route('/logout')
@login_required
def logout():
    logout_user()
    session.pop(TOKEN_KEY, None)
    session.pop("user", None)
    flash(_('You have been logged out.'), 'info')
    return redirect(url_for('auth.login'))


# -----------------
# Profile
# -----------------

@auth_bp.route('/profile', methods=['GET', 'POST'])
@login_required
def profile():
    form = ProfileForm()

    if form.validate_on_submit():
        payload = {"fullName": form.full_name.data.strip(), "mobile": (form.phone.data or '').strip()}
        if form.new_password.data:
            payload["password"] = form.new_password.data
        try:
            backend().update_me(payload)
        except BackendUnauthorized:
            raise
        except BackendError as e:
            log.warning("Profile update for user %s failed: %s", current_user.id, e)
            flash(e.user_message(_('Failed to update profile')), 'danger')
        else:
            data = dict(session.get("user") or {})
            data.update(name=payload["fullName"], phone=payload["mobile"])
            session["user"] = data
            flash(_('Profile updated successfully'), 'success')
            return redirect(url_for('auth.profile'))
    elif request.method == 'GET':
        me = fetch_or(lambda: backend().me(), {}, _('Failed to load profile data'))
        form.full_name.data = me.get("fullName") or current_user.name
        form.phone.data = me.get("mobile") or current_user.phone

    stats = None
    if current_user.role == 'agent':
        projects = fetch_or(lambda: backend().list_projects(), [], _('Failed to load profile data'))
        stats = agent_profile_stats(projects)

    return render_template('auth/profile.html', form=form, stats=stats)
