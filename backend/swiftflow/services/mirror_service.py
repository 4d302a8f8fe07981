# Overview: Service-layer operations for the public read model; republishes owner and product data.

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Owner, Product, PublicOwner, PublicProduct
"""
Public Read-Model Invariants

- public_owners / public_products are written only from here.
- A public row carries the same id as its private source, so one key targets
  both for updates and deletes.
- Mirror writes run after the private write has committed, in their own
  transaction. A failed mirror write never undoes or blocks the private
  write: it raises MirrorWriteError for the caller to log, and the next write
  of the same source (or `flask mirror rebuild`) repairs the public copy.
"""


class MirrorWriteError(Exception):
    """The public copy could not be written; it stays stale until the next write."""

    def __init__(self, message: str, *, document: str, document_id: str):
        super().__init__(message)
        self.document = document
        self.document_id = document_id


def _commit_mirror(document: str, document_id: str) -> None:
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise MirrorWriteError(
            f"Failed to mirror {document} {document_id}: {exc.__class__.__name__}",
            document=document,
            document_id=document_id,
        ) from exc


def owner_public_view(owner: Owner) -> dict:
    """
    Project an owner onto the fields storefront visitors may read.

    Checkout shows bank-transfer instructions, so the bank payload itself is
    published; has_bank is derived from it. With every bank field blank the
    payload is cleared and has_bank is False.
    """
    bank = owner.bank_details()
    has_bank = any(bank.values())
    return {
        "display_name": (owner.display_name or "").strip(),
        "business_type": (owner.business_type or "").strip(),
        "bio": owner.bio or "",
        "logo_url": owner.logo_url or "",
        "brand_color": owner.brand_color,
        "has_bank": has_bank,
        "bank_details": bank if has_bank else None,
    }


def product_public_view(product: Product, low_stock_threshold: int) -> dict:
    return {
        "owner_id": product.owner_id,
        "name": product.name,
        "price_cents": product.price_cents,
        "stock": product.stock,
        "is_low_stock": 0 < product.stock <= low_stock_threshold,
        "category": product.category,
        "sizes": list(product.sizes or []),
        "media": list(product.media or []),
        "is_visible": product.is_visible,
    }


def publish_owner(owner: Owner) -> PublicOwner:
    view = owner_public_view(owner)
    row = db.session.get(PublicOwner, owner.id)
    if row is None:
        row = PublicOwner(id=owner.id)
        db.session.add(row)
    for key, value in view.items():
        setattr(row, key, value)

    _commit_mirror("owner", owner.id)
    current_app.logger.info("Mirrored owner %s to public profile (has_bank=%s)", owner.id, view["has_bank"])
    return row


def publish_product(product: Product) -> PublicProduct:
    threshold = int(current_app.config.get("LOW_STOCK_THRESHOLD", 3))
    view = product_public_view(product, threshold)
    row = db.session.get(PublicProduct, product.id)
    if row is None:
        row = PublicProduct(id=product.id)
        db.session.add(row)
    for key, value in view.items():
        setattr(row, key, value)

    _commit_mirror("product", product.id)
    current_app.logger.info("Mirrored product %s (stock=%s)", product.id, product.stock)
    return row


def remove_product(product_id: str) -> bool:
    row = db.session.get(PublicProduct, product_id)
    if row is None:
        return False
    db.session.delete(row)
    _commit_mirror("product", product_id)
    current_app.logger.info("Removed public product %s", product_id)
    return True


def rebuild_all() -> dict:
    """
    Read-repair: republish every owner and product, and drop public products
    whose private source no longer exists. Failures are counted, not raised.
    """
    result = {"owners": 0, "products": 0, "removed": 0, "failed": 0}

    for owner in db.session.query(Owner).order_by(Owner.created_at.asc()).all():
        try:
            publish_owner(owner)
            result["owners"] += 1
        except MirrorWriteError:
            current_app.logger.exception("Mirror rebuild failed for owner %s", owner.id)
            result["failed"] += 1

    for product in db.session.query(Product).order_by(Product.created_at.asc()).all():
        try:
            publish_product(product)
            result["products"] += 1
        except MirrorWriteError:
            current_app.logger.exception("Mirror rebuild failed for product %s", product.id)
            result["failed"] += 1

    private_ids = {pid for (pid,) in db.session.query(Product.id).all()}
    orphans = [row.id for row in db.session.query(PublicProduct).all() if row.id not in private_ids]
    for product_id in orphans:
        try:
            remove_product(product_id)
            result["removed"] += 1
        except MirrorWriteError:
            current_app.logger.exception("Mirror rebuild could not remove product %s", product_id)
            result["failed"] += 1

    return result
