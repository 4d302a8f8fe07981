# Overview: Health check and local upload serving.

"""
System endpoints.

/uploads serves files written by storage_service from UPLOAD_FOLDER; in
production a CDN or web server sits in front of the same paths.
"""

import time

from flask import Blueprint, current_app, jsonify, send_from_directory
from sqlalchemy import text

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "latency_ms": round(elapsed_ms, 2), "error": "Database error"}


@system_bp.get("/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    return jsonify({
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {
            "database": database,
            "email": {"configured": bool(current_app.config.get("SENDGRID_API_KEY"))},
        },
    }), 200 if healthy else 503


@system_bp.get("/uploads/<path:relative_path>")
def uploaded_file(relative_path: str):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], relative_path)
