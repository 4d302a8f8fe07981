# Overview: Service-layer operations for product stock; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Product
from ..signals import product_written
from ..validation import NotFoundError, ValidationError
from .auth_service import PermissionDeniedError
from .concurrency import lock_for_update, run_with_retry
"""
SwiftFlow Stock Invariants (authoritative)

- Product.stock on the private row is the source of truth; PublicProduct.stock
  is a mirror refreshed after each committed change.
- Stock never goes below zero: every reduction is clamped at the floor.
- decrement() is the only reducing primitive and never commits; callers run it
  inside the same transaction that records why stock left (order confirmation
  or immediate sale), so the reduction happens exactly once per order line.
- reserve() is an availability check at submission time. It does not hold
  stock; a pending order takes stock only when its payment is confirmed.
"""


class InsufficientStockError(Exception):
    """Requested quantity exceeds what is on the shelf."""

    def __init__(self, product_id: str, requested: int, available: int, name: str | None = None):
        label = name or product_id
        super().__init__(f"Only {available} of {label} left in stock (requested {requested})")
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.details = {
            "product_id": product_id,
            "name": name,
            "requested_quantity": requested,
            "available": available,
        }


def get_owned_product(owner_id: str, product_id: str, *, lock: bool = False) -> Product:
    query = db.session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise NotFoundError("Product not found")
    if product.owner_id != owner_id:
        raise PermissionDeniedError("Product belongs to another store")
    return product


def reserve(owner_id: str, product_id: str, quantity: int, *, lock: bool = False) -> Product:
    """
    Check that `quantity` units can be sold right now.

    Raises InsufficientStockError when quantity > stock. Returns the product
    so callers can snapshot its name and price.
    """
    if quantity <= 0:
        raise ValidationError("quantity must be a positive integer")
    product = get_owned_product(owner_id, product_id, lock=lock)
    if quantity > product.stock:
        raise InsufficientStockError(product.id, quantity, product.stock, name=product.name)
    return product


def decrement(product: Product, quantity: int) -> int:
    """
    Remove `quantity` units, flooring at zero. Flushes, never commits.

    Returns the number of units actually removed.
    """
    if quantity < 0:
        raise ValueError("decrement quantity must be >= 0")
    removed = min(quantity, product.stock)
    product.stock = product.stock - removed
    db.session.flush()
    return removed


def adjust(owner_id: str, product_id: str, delta: int) -> Product:
    """
    Owner-initiated correction (the +1 / -1 buttons, or any delta).

    No business precondition beyond the floor: a delta that would go negative
    lands on zero.
    """
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValidationError("delta must be an integer")

    def _op():
        product = get_owned_product(owner_id, product_id, lock=True)
        product.stock = max(0, product.stock + delta)
        db.session.commit()
        return product

    product = run_with_retry(_op)
    product_written.send(product)
    return product


def low_stock_products(owner_id: str, threshold: int) -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.owner_id == owner_id, Product.stock <= threshold)
        .order_by(Product.name.asc())
        .all()
    )
