import os
from pathlib import Path
import logging
from logging.handlers import RotatingFileHandler
from flask import Flask
from .extensions import db, migrate, login_manager, mail
from .config import Config
from .models.user import User

# Blueprints
from .blueprints.errors import errors_bp
from .blueprints.tasks import tasks_bp


# Optional: Sentry
def _init_sentry(app):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration(), SqlalchemyIntegration()],
        traces_sample_rate=app.config.get("SENTRY_TRACES_SAMPLE_RATE", 0.0),
        environment=os.getenv("ENV", "development"),
        release=os.getenv("GIT_COMMIT", None),
        send_default_pii=False,
    )
    app.logger.info("Sentry initialized.")

def _init_logging(app):
    # Base level
    level_name = app.config.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)

    # Ensure log dir exists
    log_dir = Path(app.config.get("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / app.config.get("LOG_FILENAME", "workdesk.log")

    # Formatter: text or JSON
    if app.config.get("LOG_JSON", False):
        import json_log_formatter
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")

    # Rotating file handler (5MB x 5)
    file_handler = RotatingFileHandler(
        log_path, maxBytes=5_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    # Stream to stdout as well (useful on dev/heroku/docker)
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)

    # app.logger is the "workdesk" logger, so workdesk.services.* and
    # workdesk.hierarchy.* propagate into the same handlers.
    # Remove handlers from an earlier create_app() to avoid duplicates.
    for h in list(app.logger.handlers):
        if getattr(h, "_workdesk_handler", False):
            app.logger.removeHandler(h)
            h.close()
    file_handler._workdesk_handler = True
    stream_handler._workdesk_handler = True
    app.logger.addHandler(file_handler)
    app.logger.addHandler(stream_handler)

    app.logger.info("Logging initialized.")

def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)

    app.config.setdefault("SECRET_KEY", "change-me")
    app.config.setdefault(
        "SQLALCHEMY_DATABASE_URI",
        "sqlite:///" + os.path.join(app.instance_path, "workdesk.db"),
    )
    app.config.setdefault("SQLALCHEMY_TRACK_MODIFICATIONS", False)

    if not app.config.get("TESTING"):
        app.config.from_pyfile("config.py", silent=True)
        Path(app.instance_path).mkdir(parents=True, exist_ok=True)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    mail.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # Logging must come before blueprints so errors during register are captured
    _init_logging(app)
    _init_sentry(app)

    # Blueprints
    app.register_blueprint(errors_bp)  # error handlers
    app.register_blueprint(tasks_bp, url_prefix="/api/tasks")

    @app.get("/health")
    def health():
        return {"status": "healthy", "service": "workdesk"}

    return app
