# Overview: Service-layer operations for products; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Product
from ..signals import product_deleted, product_written
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from .concurrency import run_with_retry
from .order_schema import normalize_media
from .stock_service import get_owned_product


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "category", "price_cents", "stock", "sizes", "media", "is_visible"},
    required_on_create={"name", "price_cents", "media"},
)


def _prepare(payload: dict, *, partial: bool) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    data = {k: v for k, v in payload.items() if k not in ("imageUrl", "imageUrls", "videoUrl")}
    media = normalize_media(payload)
    if media is not None:
        data["media"] = media
    if "sizes" in data and isinstance(data["sizes"], list):
        data["sizes"] = [str(s).strip().upper() for s in data["sizes"]]
    patch = validate_payload(model=Product, payload=data, policy=PRODUCT_POLICY, partial=partial)
    enforce_rules_product(patch)
    return patch


def create_product(owner_id: str, payload: dict) -> Product:
    patch = _prepare(payload, partial=False)
    patch.setdefault("stock", 0)

    def _op():
        product = Product(owner_id=owner_id, **patch)
        db.session.add(product)
        db.session.commit()
        return product

    product = run_with_retry(_op)
    product_written.send(product)
    return product


def update_product(owner_id: str, product_id: str, payload: dict) -> Product:
    """
    Edit product fields. Past orders keep their own name/price snapshots, so
    price changes here never alter existing order totals.
    """
    patch = _prepare(payload, partial=True)

    def _op():
        product = get_owned_product(owner_id, product_id, lock=True)
        for key, value in patch.items():
            setattr(product, key, value)
        db.session.commit()
        return product

    product = run_with_retry(_op)
    product_written.send(product)
    return product


def delete_product(owner_id: str, product_id: str) -> None:
    """Removes the private product; the public copy follows through product_deleted."""
    def _op():
        product = get_owned_product(owner_id, product_id, lock=True)
        db.session.delete(product)
        db.session.commit()

    run_with_retry(_op)
    product_deleted.send(product_id)


def get_product(owner_id: str, product_id: str) -> Product:
    return get_owned_product(owner_id, product_id)


def list_products(owner_id: str, *, category: str | None = None) -> list[Product]:
    query = db.session.query(Product).filter(Product.owner_id == owner_id)
    if category:
        query = query.filter(Product.category == category)
    return query.order_by(Product.created_at.desc()).all()
