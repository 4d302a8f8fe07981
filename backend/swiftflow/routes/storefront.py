# Overview: Anonymous storefront routes; catalog reads, checkout, proof upload and WhatsApp handoff.

"""
Public storefront routes (no authentication).

Reads come only from the public read models (public_owners,
public_products). Checkout is the one exception: it is validated against the
owner's private stock, which is authoritative.
"""

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..models import PublicOwner, PublicProduct
from ..cart import Cart
from ..services import order_service
from ..services.storage_service import FOLDER_PROOFS, save_upload
from ..validation import ValidationError
from .errors import DOMAIN_ERRORS, domain_error_response


storefront_bp = Blueprint("storefront", __name__, url_prefix="/api/storefront")


def _public_owner(owner_id: str):
    return db.session.get(PublicOwner, owner_id)


@storefront_bp.get("/<owner_id>")
def store_route(owner_id: str):
    """Store profile plus visible products. Query params: category (optional)."""
    owner = _public_owner(owner_id)
    if owner is None:
        return jsonify({"error": "Store not found"}), 404

    query = db.session.query(PublicProduct).filter(
        PublicProduct.owner_id == owner_id,
        PublicProduct.is_visible.is_(True),
    )
    category = request.args.get("category")
    if category:
        query = query.filter(PublicProduct.category == category)
    products = query.order_by(PublicProduct.name.asc()).all()

    return jsonify({
        "store": owner.to_dict(),
        "products": [p.to_dict() for p in products],
    }), 200


@storefront_bp.get("/products/<product_id>")
def product_route(product_id: str):
    product = db.session.get(PublicProduct, product_id)
    if product is None or not product.is_visible:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": product.to_dict()}), 200


@storefront_bp.post("/<owner_id>/orders")
def checkout_route(owner_id: str):
    """
    Place an order. Body: {"customer": {"name", "phone"}, "items": [...]}.

    Responds 409 with the offending product when stock is short; nothing is
    written in that case. The response carries the store's bank details so
    the shopper can pay.
    """
    try:
        order = order_service.create_checkout_order(owner_id, request.get_json(silent=True) or {})
        store = _public_owner(owner_id)
        return jsonify({
            "order": order.to_dict(),
            "payment": {
                "has_bank": bool(store and store.has_bank),
                "bank_details": store.bank_details if store and store.has_bank else None,
                "reference": order.id,
            },
        }), 201
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Checkout failed for store %s", owner_id)
        return jsonify({"error": "Internal server error"}), 500


@storefront_bp.post("/<owner_id>/orders/<order_id>/proof")
def upload_proof_route(owner_id: str, order_id: str):
    """
    Upload proof of payment (multipart `file`). Marks the order
    PROOF_UPLOADED; payment confirmation follows from that change.
    """
    try:
        order_service.get_order(owner_id, order_id)
        stored = save_upload(request.files.get("file"), folder=FOLDER_PROOFS, owner_id=owner_id)
        order_service.attach_proof(owner_id, order_id, stored["url"])
        order = order_service.get_order(owner_id, order_id)
        return jsonify({"order": order.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Proof upload failed for order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500


@storefront_bp.post("/<owner_id>/whatsapp")
def whatsapp_route(owner_id: str):
    """
    Build the WhatsApp order message for a cart.
    Body: {"cart": [...], "customer": {"name", "phone"}}.
    """
    try:
        data = request.get_json(silent=True) or {}
        cart = Cart.load(data.get("cart"))
        if not cart.items:
            raise ValidationError("Cart is empty")
        if cart.store_id != owner_id:
            raise ValidationError("Cart belongs to a different store")

        customer = data.get("customer") or {}
        name = str(customer.get("name") or "").strip()
        phone = str(customer.get("phone") or "").strip()
        if not name or not phone:
            raise ValidationError("customer name and phone required", details={"fields": ["name", "phone"]})

        symbol = current_app.config.get("CURRENCY_SYMBOL", "R")
        return jsonify({
            "message": cart.whatsapp_message(name, phone, symbol),
            "url": cart.whatsapp_link(name, phone, symbol),
            "total_cents": cart.total_cents,
        }), 200
    except DOMAIN_ERRORS as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("WhatsApp handoff failed for store %s", owner_id)
        return jsonify({"error": "Internal server error"}), 500
