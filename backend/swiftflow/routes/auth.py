# Overview: Flask API routes for owner auth; parses input and returns JSON responses.

"""
Owner authentication routes.

Signup is open: anyone can create a store. The response carries the session
token so the client can go straight into the setup wizard.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth
from ..time_utils import to_utc_z
from .errors import DOMAIN_ERRORS, domain_error_response


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """Create an owner account and log it in."""
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        owner = auth_service.register_owner(email, password)
        session, token = session_service.create_session(owner.id)

        return jsonify({
            "owner": owner.to_dict(),
            "token": token,
            "expires_at": to_utc_z(session.expires_at),
        }), 201

    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to register owner")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    Token must be sent as `Authorization: Bearer <token>` on owner routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        owner = auth_service.authenticate(email, password)
        if not owner:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(owner.id)

        return jsonify({
            "owner": owner.to_dict(),
            "token": token,
            "expires_at": to_utc_z(session.expires_at),
            "message": "Login successful",
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login owner")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.session_token, reason="Owner logout")
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"owner": g.current_owner.to_dict()}), 200
