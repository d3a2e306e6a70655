# mgv_backend/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
INSTANCE_DIR = BASE_DIR / "instance"
ENV_PATH = INSTANCE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH)


def normalize_database_url(raw_url: str) -> str:
    """
    Hosted Postgres hands out URLs like postgres://...
    SQLAlchemy needs postgresql+psycopg:// and production requires SSL.
    Empty value falls back to a local SQLite file in instance/.
    """
    if not raw_url:
        return f"sqlite:///{INSTANCE_DIR / 'app.db'}"
    url = raw_url
    if url.startswith("postgres://"):
        url = "postgresql+psycopg://" + url[len("postgres://"):]
    elif url.startswith("postgresql://"):
        url = "postgresql+psycopg://" + url[len("postgresql://"):]
    if url.startswith("postgresql+psycopg://") and "sslmode=" not in url:
        sep = "&" if "?" in url else "?"
        url = f"{url}{sep}sslmode=require"
    return url


def split_csv(raw: str) -> list[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "mgv_dev_secret_key_2025")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Database
    SQLALCHEMY_DATABASE_URI = normalize_database_url(os.getenv("DATABASE_URL", ""))
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    CORS_ORIGINS = split_csv(os.getenv("CORS_ORIGINS", "https://mgv-tech.com,https://www.mgv-tech.com"))
    FRONTEND_URL = os.getenv("FRONTEND_URL", "https://mgv-tech.com").rstrip("/")

    # E-mail
    ADMIN_EMAILS = split_csv(os.getenv("ADMIN_EMAILS") or os.getenv("ADMIN_EMAIL", ""))
    EMAIL_SENDER = os.getenv("EMAIL_USER", "info@mgv-tech.com")
    EMAIL_SENDER_NAME = os.getenv("EMAIL_SENDER_NAME", "Marshall Global Ventures")
    BREVO_API_KEY = os.getenv("BREVO_API_KEY", "")
    BREVO_API_URL = os.getenv("BREVO_API_URL", "https://api.brevo.com/v3/smtp/email")
    EMAIL_TIMEOUT = int(os.getenv("EMAIL_TIMEOUT", "15"))

    # Auth
    AUTH_TOKEN_MAX_AGE = int(os.getenv("AUTH_TOKEN_MAX_AGE", str(7 * 24 * 3600)))
    PASSWORD_RESET_MAX_AGE = int(os.getenv("PASSWORD_RESET_MAX_AGE", "3600"))

    # Orders
    IMMEDIATE_PAYMENT_METHODS = tuple(split_csv(os.getenv("IMMEDIATE_PAYMENT_METHODS", "Credit/Debit Card")))

    # Diagnostics
    DEBUG_ROUTES = os.getenv("DEBUG_ROUTES") == "1"
