# Overview: Flask API routes for owner reporting; dashboard figures and digest previews.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import reporting_service
from ..decorators import require_auth
from .errors import DOMAIN_ERRORS, domain_error_response


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_auth
def dashboard_route():
    try:
        return jsonify({"summary": reporting_service.dashboard_summary(g.owner_id)}), 200
    except Exception:
        current_app.logger.exception("Failed to build dashboard for owner %s", g.owner_id)
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/digest")
@require_auth
def digest_route():
    """
    Preview the digest email without sending it.

    Query params: frequency=daily|weekly (default: the owner's setting, else weekly)
    """
    frequency = request.args.get("frequency") or g.current_owner.email_report_frequency
    if frequency == "off":
        frequency = "weekly"
    try:
        digest = reporting_service.build_digest(g.current_owner, frequency)
        return jsonify({
            "digest": digest.to_dict(),
            "subject": reporting_service.digest_subject(digest.frequency),
            "recipient": reporting_service.resolve_recipient(g.current_owner),
            "html": reporting_service.render_digest_html(digest),
        }), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to build digest for owner %s", g.owner_id)
        return jsonify({"error": "Internal server error"}), 500
