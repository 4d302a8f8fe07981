# backend/swiftflow/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/swiftflow.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///swiftflow.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # One threshold for every "low stock" decision (digest, dashboard, storefront badge)
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "3"))
    CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "R")

    # Digest emails. The API key is a runtime secret; there is no default.
    REPORT_TIMEZONE = os.environ.get("REPORT_TIMEZONE", "Africa/Johannesburg")
    SENDGRID_API_KEY = os.environ.get("SENDGRID_API_KEY")
    SENDGRID_API_URL = os.environ.get("SENDGRID_API_URL", "https://api.sendgrid.com/v3/mail/send")
    REPORT_FROM_EMAIL = os.environ.get("REPORT_FROM_EMAIL", "no-reply@swiftflow.world")
    REPORT_FROM_NAME = os.environ.get("REPORT_FROM_NAME", "SwiftFlow Reports")

    # Local object storage for logos, product media and payment proofs
    UPLOAD_FOLDER = os.environ.get(
        "UPLOAD_FOLDER",
        os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "instance", "uploads"),
    )
    PUBLIC_UPLOAD_BASE_URL = os.environ.get("PUBLIC_UPLOAD_BASE_URL", "/uploads")
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", str(16 * 1024 * 1024)))

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    }
