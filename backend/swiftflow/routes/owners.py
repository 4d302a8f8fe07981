# Overview: Flask API routes for the signed-in owner's store profile and setup wizard.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import owner_service
from ..services.storage_service import FOLDER_LOGOS, save_upload
from ..decorators import require_auth
from .errors import DOMAIN_ERRORS, domain_error_response


owners_bp = Blueprint("owners", __name__, url_prefix="/api/owners/me")


@owners_bp.get("")
@require_auth
def get_profile_route():
    return jsonify({"owner": g.current_owner.to_dict()}), 200


@owners_bp.patch("")
@require_auth
def update_profile_route():
    try:
        owner = owner_service.update_profile(g.current_owner, request.get_json(silent=True) or {})
        return jsonify({"owner": owner.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update profile for owner %s", g.owner_id)
        return jsonify({"error": "Internal server error"}), 500


@owners_bp.post("/setup/business")
@require_auth
def setup_business_route():
    """Setup step 1: business name, type and bio."""
    try:
        owner = owner_service.save_business_info(g.current_owner, request.get_json(silent=True) or {})
        return jsonify({"owner": owner.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to save business info for owner %s", g.owner_id)
        return jsonify({"error": "Internal server error"}), 500


@owners_bp.post("/setup/bank")
@require_auth
def setup_bank_route():
    """Setup step 2: bank details; completes registration."""
    try:
        owner = owner_service.save_bank_details(g.current_owner, request.get_json(silent=True) or {})
        return jsonify({"owner": owner.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to save bank details for owner %s", g.owner_id)
        return jsonify({"error": "Internal server error"}), 500


@owners_bp.post("/logo")
@require_auth
def upload_logo_route():
    """multipart/form-data with a `file` part."""
    try:
        stored = save_upload(request.files.get("file"), folder=FOLDER_LOGOS, owner_id=g.owner_id)
        owner = owner_service.set_logo(g.current_owner, stored["url"])
        return jsonify({"owner": owner.to_dict(), "logo_url": stored["url"]}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to upload logo for owner %s", g.owner_id)
        return jsonify({"error": "Internal server error"}), 500


@owners_bp.get("/email-settings")
@require_auth
def get_email_settings_route():
    return jsonify({"email_settings": owner_service.get_email_settings(g.current_owner)}), 200


@owners_bp.put("/email-settings")
@require_auth
def update_email_settings_route():
    try:
        settings = owner_service.update_email_settings(g.current_owner, request.get_json(silent=True) or {})
        return jsonify({"email_settings": settings}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update email settings for owner %s", g.owner_id)
        return jsonify({"error": "Internal server error"}), 500
