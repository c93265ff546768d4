# workdesk/config.py
import os
from dotenv import load_dotenv

load_dotenv()

def _as_bool(val: str | None, default=False) -> bool:
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}

class Config:
    # --- Core ---
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    APP_VERSION = os.getenv("APP_VERSION")
    EXTERNAL_BASE_URL = os.getenv("EXTERNAL_BASE_URL")

    # DB
    SQLALCHEMY_DATABASE_URI = (
        os.getenv("SQLALCHEMY_DATABASE_URI")
        or os.getenv("DATABASE_URL")
        or "sqlite:///workdesk.db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Mail ---
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = _as_bool(os.getenv("MAIL_USE_TLS", "1"))
    MAIL_USE_SSL = _as_bool(os.getenv("MAIL_USE_SSL", "0"))  # don't enable together with TLS
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", MAIL_USERNAME)
    MAIL_SUPPRESS_SEND = _as_bool(os.getenv("MAIL_SUPPRESS_SEND", "0"))

    # --- Logging ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("LOG_DIR", "logs")
    LOG_FILENAME = os.getenv("LOG_FILENAME", "workdesk.log")
    LOG_JSON = _as_bool(os.getenv("LOG_JSON", "0"))

    # --- Sentry ---
    SENTRY_DSN = os.getenv("SENTRY_DSN", "")
    SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0"))

    # --- Task hierarchy ---
    # Ancestor walks stop after this many hops (guards against parent cycles)
    HIERARCHY_MAX_ANCESTOR_HOPS = int(os.getenv("HIERARCHY_MAX_ANCESTOR_HOPS", "20"))
    # Estimated-hours differences at or below this are not written back
    HIERARCHY_HOURS_TOLERANCE = float(os.getenv("HIERARCHY_HOURS_TOLERANCE", "0.01"))
    NOTIFY_REASSIGNED_USERS = _as_bool(os.getenv("NOTIFY_REASSIGNED_USERS", "1"), default=True)


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOGIN_DISABLED = True
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = "noreply@workdesk.test"
    SENTRY_DSN = ""
    LOG_LEVEL = "DEBUG"
