"""
Order Service - order lifecycle and the order/stock consistency path

Two named order types keep stock timing consistent per flow:

- PENDING_PAYMENT (storefront checkout): stock is only checked at
  submission. Stock leaves the shelf in confirm_payment(), in one transaction
  with the PAID status flip and the income entry.
- IMMEDIATE_SALE (owner-entered sale): born PAID; stock and the income entry
  are written in the same transaction that creates the order.

Order.stock_applied_at is written in exactly the transaction that removes
stock, so confirm_payment() is idempotent under redelivered events.
The manual status toggle only settles an order whose stock was never taken;
otherwise it leaves stock and finance alone.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Order, OrderLine, Owner, Product
from ..models.orders import (
    ORDER_TYPE_IMMEDIATE_SALE,
    ORDER_TYPE_PENDING_PAYMENT,
    STATUS_LABELS,
    STATUS_PAID,
    STATUS_PROOF_UPLOADED,
    STATUS_WAITING_FOR_PAYMENT,
)
from ..signals import order_updated, product_written
from ..validation import ALLOWED_SIZES, NotFoundError, ValidationError
from swiftflow.time_utils import utcnow
from .auth_service import PermissionDeniedError
from .concurrency import lock_for_update, run_with_retry
from .finance_service import record_income
from .order_schema import CheckoutRequest, normalize_checkout
from .stock_service import decrement, reserve


WALK_IN_CUSTOMER = "Walk-in customer"
MANUAL_STATUSES = {STATUS_PAID, STATUS_WAITING_FOR_PAYMENT}


def _get_order(owner_id: str, order_id: str, *, lock: bool = False) -> Order:
    query = db.session.query(Order).filter_by(id=order_id)
    if lock:
        query = lock_for_update(query)
    order = query.first()
    if order is None:
        raise NotFoundError("Order not found")
    if order.owner_id != owner_id:
        raise PermissionDeniedError("Order belongs to another store")
    return order


def _require_active_owner(owner_id: str) -> Owner:
    owner = db.session.get(Owner, owner_id)
    if owner is None or not owner.is_active:
        raise NotFoundError("Store not found")
    return owner


def _reserve_lines(owner_id: str, request: CheckoutRequest, *, storefront: bool) -> dict[str, Product]:
    """
    Check every requested quantity against current stock (summed per product)
    and validate sizes. Returns products keyed by id. Writes nothing.
    """
    products: dict[str, Product] = {}
    for product_id, quantity in request.quantities_by_product().items():
        try:
            product = reserve(owner_id, product_id, quantity, lock=True)
        except (NotFoundError, PermissionDeniedError):
            raise ValidationError(
                "Product is not sold by this store",
                details={"product_id": product_id},
            )
        if storefront and not product.is_visible:
            raise ValidationError(
                f"{product.name} is not available",
                details={"product_id": product_id},
            )
        products[product_id] = product

    for line in request.lines:
        product = products[line.product_id]
        allowed = list(product.sizes or [])
        if allowed:
            if line.size not in allowed:
                raise ValidationError(
                    f"Choose a size for {product.name} ({', '.join(allowed)})",
                    details={"product_id": product.id, "sizes": allowed},
                )
        elif line.size is not None and line.size not in ALLOWED_SIZES:
            raise ValidationError(f"Unknown size {line.size!r}")

    return products


def _build_order(
    owner_id: str,
    request: CheckoutRequest,
    products: dict[str, Product],
    *,
    order_type: str,
    status: str,
) -> Order:
    """Snapshot name and unit price per line; total is the sum of line totals."""
    order = Order(
        owner_id=owner_id,
        order_type=order_type,
        status=status,
        customer_name=request.customer_name or WALK_IN_CUSTOMER,
        customer_phone=request.customer_phone or None,
        total_cents=0,
    )
    total = 0
    for number, line in enumerate(request.lines, start=1):
        product = products[line.product_id]
        line_total = product.price_cents * line.quantity
        total += line_total
        order.lines.append(OrderLine(
            line_number=number,
            product_id=product.id,
            product_name=product.name,
            unit_price_cents=product.price_cents,
            quantity=line.quantity,
            size=line.size,
            line_total_cents=line_total,
        ))
    order.total_cents = total
    db.session.add(order)
    db.session.flush()
    return order


def _apply_stock(order: Order) -> list[Product]:
    """
    Decrement stock for every line of `order` and stamp stock_applied_at.
    Runs inside the caller's transaction.
    """
    touched: dict[str, Product] = {}
    for line in order.lines:
        product = lock_for_update(
            db.session.query(Product).filter_by(id=line.product_id, owner_id=order.owner_id)
        ).first()
        if product is None:
            current_app.logger.warning(
                "Order %s line %s references missing product %s; stock not adjusted",
                order.id, line.line_number, line.product_id,
            )
            continue
        removed = decrement(product, line.quantity)
        if removed < line.quantity:
            current_app.logger.warning(
                "Order %s took %s of %s requested units of product %s (stock floor reached)",
                order.id, removed, line.quantity, product.id,
            )
        touched[product.id] = product
    order.stock_applied_at = utcnow()
    return list(touched.values())


def _settle(order: Order, source: str) -> list[Product]:
    """Flip `order` to PAID, take its stock and book its income in the caller's transaction."""
    order.status = STATUS_PAID
    order.paid_at = order.paid_at or utcnow()
    touched = _apply_stock(order)
    record_income(
        owner_id=order.owner_id,
        amount_cents=order.total_cents,
        source=source,
        order_id=order.id,
        occurred_at=order.paid_at,
    )
    return touched


def _announce_products(products: list[Product]) -> None:
    for product in products:
        product_written.send(product)


def create_checkout_order(owner_id: str, payload: dict) -> Order:
    """
    Storefront checkout: create a PENDING_PAYMENT order in WAITING_FOR_PAYMENT.

    Fails with InsufficientStockError (nothing written) when any product's
    summed quantity exceeds its stock.
    """
    request = normalize_checkout(payload, require_customer=True)

    def _op():
        _require_active_owner(owner_id)
        products = _reserve_lines(owner_id, request, storefront=True)
        order = _build_order(
            owner_id,
            request,
            products,
            order_type=ORDER_TYPE_PENDING_PAYMENT,
            status=STATUS_WAITING_FOR_PAYMENT,
        )
        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info("Checkout order %s created for owner %s (total=%s)", order.id, owner_id, order.total_cents)
    return order


def create_manual_order(owner_id: str, payload: dict) -> Order:
    """
    Owner-entered sale: order, stock decrement and income entry commit together.
    """
    request = normalize_checkout(payload, require_customer=False)

    def _op():
        _require_active_owner(owner_id)
        products = _reserve_lines(owner_id, request, storefront=False)
        order = _build_order(
            owner_id,
            request,
            products,
            order_type=ORDER_TYPE_IMMEDIATE_SALE,
            status=STATUS_PAID,
        )
        touched = _settle(order, "product sale")
        db.session.commit()
        return order, touched

    order, touched = run_with_retry(_op)
    _announce_products(touched)
    current_app.logger.info("Manual sale %s recorded for owner %s (total=%s)", order.id, owner_id, order.total_cents)
    return order


def attach_proof(owner_id: str, order_id: str, proof_url: str) -> Order:
    """
    Record an uploaded proof of payment.

    Moves the order to PROOF_UPLOADED while its stock is still untaken;
    later uploads only replace the reference. Emits order_updated with the prior
    is_proof_uploaded value so the confirmation handler fires on the
    false -> true edge only.
    """
    if not proof_url:
        raise ValidationError("proof_url is required")

    def _op():
        order = _get_order(owner_id, order_id, lock=True)
        before = {"is_proof_uploaded": order.is_proof_uploaded, "status": order.status}
        order.proof_url = proof_url
        order.is_proof_uploaded = True
        order.proof_uploaded_at = utcnow()
        if order.stock_applied_at is None and order.status != STATUS_PAID:
            order.status = STATUS_PROOF_UPLOADED
        db.session.commit()
        return order, before

    order, before = run_with_retry(_op)
    order_updated.send(order, before=before)
    return order


def confirm_payment(owner_id: str, order_id: str) -> tuple[Order, bool]:
    """
    Mark the order PAID and take its stock, as one transaction.

    Returns (order, applied). applied is False when stock was already taken
    for this order (duplicate event, immediate sale), in which case nothing
    changes.
    """
    def _op():
        order = _get_order(owner_id, order_id, lock=True)
        if order.stock_applied_at is not None:
            return order, False, []

        touched = _settle(order, "order payment")
        db.session.commit()
        return order, True, touched

    order, applied, touched = run_with_retry(_op)
    if applied:
        current_app.logger.info("Payment confirmed for order %s; stock decremented", order.id)
        _announce_products(touched)
    else:
        current_app.logger.info("Order %s already confirmed; stock left unchanged", order.id)
    return order, applied


def set_status(owner_id: str, order_id: str, status: str) -> Order:
    """
    Owner's manual override between PAID and WAITING_FOR_PAYMENT.

    Marking PAID an order whose stock was never taken settles it like
    confirm_payment() in the same transaction. Every other toggle leaves
    stock and finance alone.
    """
    code = normalize_status(status)
    if code not in MANUAL_STATUSES:
        raise ValidationError("status must be PAID or WAITING_FOR_PAYMENT")

    def _op():
        order = _get_order(owner_id, order_id, lock=True)
        before = {"is_proof_uploaded": order.is_proof_uploaded, "status": order.status}
        touched = []
        if code == STATUS_PAID and order.stock_applied_at is None:
            touched = _settle(order, "order payment")
        else:
            order.status = code
            if code == STATUS_PAID and order.paid_at is None:
                order.paid_at = utcnow()
        db.session.commit()
        return order, before, touched

    order, before, touched = run_with_retry(_op)
    if touched:
        current_app.logger.info("Order %s marked paid by owner; stock decremented", order.id)
        _announce_products(touched)
    order_updated.send(order, before=before)
    return order


def normalize_status(status: str | None) -> str:
    """Accept a status code or its display label ("Waiting for Payment")."""
    labels = {label.lower(): code for code, label in STATUS_LABELS.items()}
    value = (status or "").strip()
    return labels.get(value.lower(), value.upper())


def get_order(owner_id: str, order_id: str) -> Order:
    return _get_order(owner_id, order_id)


def list_orders(owner_id: str, *, status: str | None = None, limit: int = 200) -> list[Order]:
    query = db.session.query(Order).filter(Order.owner_id == owner_id)
    if status:
        query = query.filter(Order.status == normalize_status(status))
    return query.order_by(Order.created_at.desc()).limit(limit).all()


def reconcile_pending_payments(owner_id: str | None = None) -> list[str]:
    """
    Confirm orders whose proof is in but whose stock was never applied
    (e.g. the confirmation handler failed). Returns the confirmed order ids.
    """
    query = db.session.query(Order).filter(
        Order.is_proof_uploaded.is_(True),
        Order.stock_applied_at.is_(None),
        Order.order_type == ORDER_TYPE_PENDING_PAYMENT,
    )
    if owner_id:
        query = query.filter(Order.owner_id == owner_id)

    confirmed = []
    for order_owner_id, order_id in [(o.owner_id, o.id) for o in query.all()]:
        _, applied = confirm_payment(order_owner_id, order_id)
        if applied:
            confirmed.append(order_id)
    return confirmed
