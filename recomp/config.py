import os
from datetime import timedelta

class Config:
    raw_db_url = os.getenv("DATABASE_URL")

    if raw_db_url:
        if raw_db_url.startswith("postgres://"):
            raw_db_url = raw_db_url.replace("postgres://", "postgresql://", 1)
        SQLALCHEMY_DATABASE_URI = raw_db_url
    else:
        SQLALCHEMY_DATABASE_URI = "sqlite:///recomp.db"

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me-dev-secret")

    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    # Session cookie (one week, like the old express-session setup)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = ENVIRONMENT == "production"
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)

    # Scan image uploads
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads")
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(10 * 1024 * 1024)))

    # Competition window (UTC)
    COMPETITION_ID = os.getenv("COMPETITION_ID", "recomp100_2025")
    COMPETITION_START_DATE = os.getenv("COMPETITION_START_DATE", "2025-08-04T00:00:00")
    COMPETITION_END_DATE = os.getenv("COMPETITION_END_DATE", "2025-11-26T23:59:59")

    # Comma-separated usernames, e.g. "jaron,coach"
    ADMIN_USERNAMES = os.getenv("ADMIN_USERNAMES", "admin")

    APP_URL = os.getenv("APP_URL", "http://localhost:5000")

RESEND_API_KEY = os.getenv("RESEND_API_KEY", None)
RESEND_FROM_EMAIL = os.getenv("RESEND_FROM_EMAIL", "noreply@example.com")

ALLOWED_UPLOAD_EXTENSIONS = {"png", "jpg", "jpeg", "pdf"}
