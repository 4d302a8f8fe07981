# Overview: Flask API routes for the owner's catalog; parses input and returns JSON responses.

"""
Product management routes.

All operations are scoped to the caller (g.owner_id). A product id that
belongs to another owner answers 403.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import product_service, stock_service
from ..services.storage_service import FOLDER_PRODUCTS, save_upload
from ..decorators import require_auth
from .errors import DOMAIN_ERRORS, domain_error_response


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route():
    """Query params: category (optional)."""
    products = product_service.list_products(g.owner_id, category=request.args.get("category"))
    return jsonify({"products": [p.to_dict() for p in products]}), 200


@products_bp.post("")
@require_auth
def create_product_route():
    try:
        product = product_service.create_product(g.owner_id, request.get_json(silent=True) or {})
        return jsonify({"product": product.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/media")
@require_auth
def upload_media_route():
    """
    Upload one image or video (multipart `file`). Returns {"url", "kind"} to
    be placed in a product's media list.
    """
    try:
        stored = save_upload(
            request.files.get("file"),
            folder=FOLDER_PRODUCTS,
            owner_id=g.owner_id,
            kinds=("image", "video"),
        )
        return jsonify({"url": stored["url"], "kind": stored["kind"]}), 201
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to upload product media")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<product_id>")
@require_auth
def get_product_route(product_id: str):
    try:
        product = product_service.get_product(g.owner_id, product_id)
        return jsonify({"product": product.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)


@products_bp.patch("/<product_id>")
@require_auth
def update_product_route(product_id: str):
    try:
        product = product_service.update_product(g.owner_id, product_id, request.get_json(silent=True) or {})
        return jsonify({"product": product.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product %s", product_id)
        return jsonify({"error": "Internal server error"}), 500


@products_bp.delete("/<product_id>")
@require_auth
def delete_product_route(product_id: str):
    try:
        product_service.delete_product(g.owner_id, product_id)
        return jsonify({"deleted": product_id}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete product %s", product_id)
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/<product_id>/stock")
@require_auth
def adjust_stock_route(product_id: str):
    """Body: {"delta": int}. Stock never drops below zero."""
    try:
        data = request.get_json(silent=True) or {}
        if "delta" not in data:
            return jsonify({"error": "delta required"}), 400

        product = stock_service.adjust(g.owner_id, product_id, data.get("delta"))
        return jsonify({"product": product.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to adjust stock for product %s", product_id)
        return jsonify({"error": "Internal server error"}), 500
