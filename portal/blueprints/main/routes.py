# portal/blueprints/main/routes.py
from flask import current_app, render_template, redirect, url_for, session, request
from flask_login import current_user
from . import main_bp


@main_bp.route("/")
def index():
    if current_user.is_authenticated:
        return redirect(url_for(current_user.dashboard_endpoint))
    return render_template("home.html")


@main_bp.route("/lang/<code>")
def set_language(code):
    if code in current_app.config.get("LANGUAGES", ["en"]):
        session["lang"] = code
    return redirect(request.referrer or url_for("main.index"))
