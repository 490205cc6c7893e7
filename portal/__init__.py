import os
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime
from flask import Flask, redirect, request, session, url_for
from flask_login import current_user
from flask_babel import get_locale
from .extensions import db, login_manager, csrf, babel
from .config import Config
from .models.user import SessionUser
from .lifecycle.formatting import format_date, format_ecd, format_money, initials
from .services.api_client import asset_url
from .services.settings_store import SqlSettingsStore

# Blueprints
from .blueprints.errors import errors_bp
from .blueprints.auth import auth_bp
from .blueprints.main import main_bp
from .blueprints.client import client_bp
from .blueprints.agent import agent_bp
from .blueprints.admin import admin_bp


# Optional: Sentry
def _init_sentry(app):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=app.config.get("SENTRY_TRACES_SAMPLE_RATE", 0.0),
            environment=os.getenv("ENV", "development"),
            release=os.getenv("GIT_COMMIT", None),
            send_default_pii=False,
        )
        app.logger.info("Sentry initialized.")
    except Exception as e:
        app.logger.warning(f"Sentry init failed: {e}")

def _init_logging(app):
    # Base level
    level_name = app.config.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)

    # Ensure log dir exists
    log_dir = Path(app.config.get("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / app.config.get("LOG_FILENAME", "portal.log")

    # Formatter: text or JSON
    if app.config.get("LOG_JSON", False):
        try:
            import json_log_formatter
            formatter = json_log_formatter.JSONFormatter()
        except Exception:
            formatter = logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")
    else:
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")

    # Rotating file handler (5MB x 5)
    file_handler = RotatingFileHandler(
        log_path, maxBytes=5_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    app.logger.addHandler(file_handler)

    # Stream to stdout as well (useful on dev/docker)
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    app.logger.addHandler(stream_handler)

    app.logger.info("Logging initialized.")

def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)

    Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///" + os.path.join(app.instance_path, "portal.db")
    app.config.setdefault("LANGUAGES", ["en"])

    # Extensions
    db.init_app(app)
    login_manager.init_app(app)
    csrf.init_app(app)

    def _select_locale():
        return (
            session.get("lang")
            or request.accept_languages.best_match(app.config.get("LANGUAGES", ["en"]))
            or "en"
        )
    babel.init_app(app, locale_selector=_select_locale)

    # Admin settings live here because the backend has no settings endpoint
    app.extensions.setdefault("settings_store", SqlSettingsStore())
    with app.app_context():
        db.create_all()

    @login_manager.user_loader
    def load_user(user_id):
        data = session.get("user")
        if not data or str(data.get("id")) != str(user_id):
            return None
        return SessionUser.from_session(data)

    login_manager.login_view = "auth.login"
    login_manager.login_message_category = "info"

    @app.context_processor
    def inject_helpers():
        def _safe_get_locale():
            loc = get_locale()
            return str(loc) if loc else "en"
        return {
            "get_locale": _safe_get_locale,
            "now": datetime.utcnow,
            "asset_url": asset_url,
        }

    app.add_template_filter(format_money, "money")
    app.add_template_filter(format_date, "date")
    app.add_template_filter(format_ecd, "ecd")
    app.add_template_filter(initials, "initials")

    # Logging must come before blueprints so errors during register are captured
    _init_logging(app)
    _init_sentry(app)

    # Blueprints
    app.register_blueprint(errors_bp)  # error handlers
    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(client_bp, url_prefix="/client")
    app.register_blueprint(agent_bp, url_prefix="/agent")
    app.register_blueprint(admin_bp, url_prefix="/admin")

    @app.route("/dashboard")
    def dashboard():
        if not current_user.is_authenticated:
            return redirect(url_for("auth.login"))
        return redirect(url_for(current_user.dashboard_endpoint))

    return app
