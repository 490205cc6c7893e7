import logging
from flask import render_template, request, redirect, url_for, flash, session
from flask_login import logout_user
from werkzeug.exceptions import HTTPException
from flask_wtf.csrf import CSRFError
from ...services.api_client import BackendUnauthorized, BackendError
from . import errors_bp

log = logging.getLogger(__name__)

# Backend says the token is gone/expired: drop the local session too
@errors_bp.app_errorhandler(BackendUnauthorized)
def err_backend_unauthorized(e):
    logout_user()
    session.clear()
    flash("Your session has expired. Please sign in again.", "warning")
    return redirect(url_for("auth.login", next=request.path))

# Any other backend failure that escaped a view's own handling
@errors_bp.app_errorhandler(BackendError)
def err_backend(e):
    log.error("Unhandled backend error on %s: %s", request.path, e)
    return render_template("errors/backend.html", message=e.user_message("The service is temporarily unavailable.")), 502

# 401 – Unauthorized
@errors_bp.app_errorhandler(401)
def err_401(e):
    return render_template("errors/error.html", code=401, name="Unauthorized", description=e.description), 401

# 403 – Forbidden
@errors_bp.app_errorhandler(403)
def err_403(e):
    return render_template("errors/error.html", code=403, name="Forbidden",
                           description="You do not have access to this page."), 403

# 404 – Not Found
@errors_bp.app_errorhandler(404)
def err_404(e):
    return render_template("errors/error.html", code=404, name="Not Found",
                           description=f"Nothing lives at {request.path}."), 404

# 413 – Payload Too Large (uploads)
@errors_bp.app_errorhandler(413)
def err_413(e):
    return render_template("errors/error.html", code=413, name="File too large",
                           description="The uploaded file exceeds the size limit."), 413

# CSRF – typically treated as 400 Bad Request
@errors_bp.app_errorhandler(CSRFError)
def err_csrf(e):
    return render_template("errors/error.html", code=400, name="Form expired", description=e.description), 400

# Fallback for uncaught HTTPException (shows friendly page with code/desc)
@errors_bp.app_errorhandler(HTTPException)
def err_http(e: HTTPException):
    return render_template("errors/error.html", code=e.code, name=e.name, description=e.description), e.code

# Last-resort: any other Exception
@errors_bp.app_errorhandler(Exception)
def err_unexpected(e):
    log.exception("Unhandled error on %s", request.path)
    # generic page only, details go to the log
    return render_template("errors/error.html", code=500, name="Server error",
                           description="Something went wrong on our side."), 500
