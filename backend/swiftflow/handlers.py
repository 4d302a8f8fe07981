# Overview: Reactive handlers subscribed to change notifications (signals.py).

"""
Each handler reacts to one committed write and is safe to run again for the
same write: mirror publishes overwrite the public row with the current
private state, and payment confirmation is keyed on Order.stock_applied_at.

Handlers log and swallow their own failures; the write that emitted the
event has already committed and its caller must not see mirror or
confirmation errors.
"""

from flask import current_app

from .signals import owner_written, product_written, product_deleted, order_updated
from .services import mirror_service, order_service
from .services.mirror_service import MirrorWriteError


def mirror_owner(owner, **kwargs):
    try:
        mirror_service.publish_owner(owner)
    except MirrorWriteError:
        current_app.logger.exception("Public profile for owner %s is stale", owner.id)


def mirror_product(product, **kwargs):
    try:
        mirror_service.publish_product(product)
    except MirrorWriteError:
        current_app.logger.exception("Public product %s is stale", product.id)


def unmirror_product(product_id, **kwargs):
    try:
        mirror_service.remove_product(product_id)
    except MirrorWriteError:
        current_app.logger.exception("Public product %s could not be removed", product_id)


def confirm_on_proof_uploaded(order, before=None, **kwargs):
    """Fires only when is_proof_uploaded goes from false to true."""
    before = before or {}
    if before.get("is_proof_uploaded") or not order.is_proof_uploaded:
        return
    try:
        order_service.confirm_payment(order.owner_id, order.id)
    except Exception:
        current_app.logger.exception(
            "Payment confirmation failed for order %s; run `flask orders reconcile` to retry",
            order.id,
        )


def register_handlers(app) -> None:
    # blinker keys receivers by identity, so repeated create_app() calls do not double-subscribe
    owner_written.connect(mirror_owner)
    product_written.connect(mirror_product)
    product_deleted.connect(unmirror_product)
    order_updated.connect(confirm_on_proof_uploaded)
