"""Application configuration module."""

import os
from datetime import timedelta
from pathlib import Path


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "y"}


class Config:
    """Base configuration for the Flask application."""

    # Core
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=int(os.getenv("JWT_EXPIRES_DAYS", "7")))
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///app.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    if not DATABASE_URL.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS = {
            "pool_pre_ping": True,
            "pool_size": 20,
            "pool_recycle": 1800,
            "pool_timeout": 10,
        }

    # Uploads
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", str(Path("workspace") / "uploads"))
    MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))
    MAX_IMAGES_PER_REQUEST = 10
    ALLOWED_IMAGE_TYPES = os.getenv("ALLOWED_IMAGE_TYPES", "jpeg,jpg,png,gif,webp")

    # Object storage (optional, S3 compatible). Local disk is used when unset.
    OBJECT_STORAGE_BUCKET = os.getenv("OBJECT_STORAGE_BUCKET")
    OBJECT_STORAGE_ENDPOINT = os.getenv("OBJECT_STORAGE_ENDPOINT")
    OBJECT_STORAGE_REGION = os.getenv("OBJECT_STORAGE_REGION", "us-east-1")
    OBJECT_STORAGE_KEY = os.getenv("OBJECT_STORAGE_KEY")
    OBJECT_STORAGE_SECRET = os.getenv("OBJECT_STORAGE_SECRET")
    OBJECT_STORAGE_PUBLIC_BASE = os.getenv("OBJECT_STORAGE_PUBLIC_BASE")

    # CORS
    _raw_origins = os.getenv("ORIGINS", "http://localhost:5173")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Rate limiting
    RATE_LIMIT = os.getenv("RATE_LIMIT", "120 per minute")
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_KEY_PREFIX = os.getenv("RATELIMIT_KEY_PREFIX", "")

    # Email delivery
    APP_NAME = os.getenv("APP_NAME", "Classifieds")
    RESEND_API_KEY = os.getenv("RESEND_API_KEY")
    EMAIL_FROM = os.getenv("EMAIL_FROM", f"{APP_NAME} <onboarding@resend.dev>")
    LOG_OTP_TO_CONSOLE = _env_flag("LOG_OTP_TO_CONSOLE")

    # Realtime
    SOCKETIO_PING_INTERVAL = int(os.getenv("SOCKETIO_PING_INTERVAL", "25"))
    SOCKETIO_PING_TIMEOUT = int(os.getenv("SOCKETIO_PING_TIMEOUT", "60"))
    SOCKETIO_MAX_CONNECTIONS_PER_USER = 5

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
