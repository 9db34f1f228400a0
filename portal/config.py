# portal/config.py
import os
from dotenv import load_dotenv

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(BASE_DIR, ".env"))

INSTANCE_DIR = os.path.join(BASE_DIR, "instance")


def _env(key: str, default=None):
    v = os.getenv(key)
    return v if v not in (None, "", "None") else default


def _env_bool(key: str, default: bool = False) -> bool:
    v = os.getenv(key)
    if v in (None, "", "None"):
        return default
    return str(v).strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _env_list(key: str, default: str = "") -> list[str]:
    raw = _env(key, default) or ""
    return [part.strip() for part in raw.split(",") if part.strip()]


def _resolve_sqlite_uri(db_url: str | None) -> str:
    if not db_url:
        db_path = os.path.join(INSTANCE_DIR, "portal.db")
        os.makedirs(os.path.dirname(db_path), exist_ok=True)
        return "sqlite:///" + db_path.replace("\\", "/")

    if db_url.startswith("sqlite:///"):
        raw_path = db_url.replace("sqlite:///", "", 1)
        if not os.path.isabs(raw_path):
            raw_path = os.path.join(BASE_DIR, raw_path)
        db_path = os.path.normpath(raw_path)
        os.makedirs(os.path.dirname(db_path), exist_ok=True)
        return "sqlite:///" + db_path.replace("\\", "/")

    # Heroku/Supabase styl "postgres://" SQLAlchemy 2 nezná
    if db_url.startswith("postgres://"):
        return "postgresql://" + db_url[len("postgres://"):]

    return db_url


class Config:
    SECRET_KEY = _env("SECRET_KEY", "dev-please-change-me")

    SQLALCHEMY_DATABASE_URI = _resolve_sqlite_uri(_env("DATABASE_URL"))
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_AS_ASCII = False  # JSON výstup v UTF-8 (Víno, Nápoje...)

    CORS_ORIGINS = _env_list("CORS_ORIGINS", "http://localhost:3000")

    # Tokeny vydává identity provider; tady je jen ověřujeme
    AUTH_TOKEN_SALT = _env("AUTH_TOKEN_SALT", "portal-session")
    AUTH_TOKEN_MAX_AGE = int(_env("AUTH_TOKEN_MAX_AGE", 60 * 60 * 12))
    PROFILE_CACHE_TTL = int(_env("PROFILE_CACHE_TTL", 300))

    MAIL_SERVER = _env("MAIL_SERVER", "smtp.seznam.cz")
    MAIL_PORT = int(_env("MAIL_PORT", 465))
    MAIL_USE_SSL = _env_bool("MAIL_USE_SSL", True)
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", False)
    MAIL_USERNAME = _env("MAIL_USERNAME")
    MAIL_PASSWORD = _env("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = _env("MAIL_DEFAULT_SENDER", _env("MAIL_USERNAME"))
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", False)
    MAIL_DEBUG = _env_bool("MAIL_DEBUG", False)

    # kam chodí upozornění na nové objednávky
    ORDER_ADMIN_EMAIL = _env("ORDER_ADMIN_EMAIL", "fiala@vinaria.cz")
    ORDER_NOTIFY_BCC = _env("ORDER_NOTIFY_BCC")
    COMPANY_NAME = _env("COMPANY_NAME", "VINARIA s.r.o.")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    MAIL_SUPPRESS_SEND = True
    MAIL_SERVER = "localhost"
    MAIL_DEFAULT_SENDER = "objednavky@example.com"
    ORDER_ADMIN_EMAIL = "admin@example.com"
    ORDER_NOTIFY_BCC = None
    PROFILE_CACHE_TTL = 60
