# Overview: Pytest coverage for the order lifecycle and its stock/finance effects.

"""
Order Lifecycle Tests

- Checkout orders only check stock; stock leaves at payment confirmation.
- Short stock rejects the whole order and writes nothing.
- Confirmation is idempotent under a redelivered event.
- Manual sales are PAID with stock and income applied at creation.
- Marking an unsettled order PAID settles it once; other toggles move nothing.
"""

import pytest

from swiftflow.extensions import db
from swiftflow.models import FinanceEntry, Order, Product
from swiftflow.models.orders import (
    ORDER_TYPE_IMMEDIATE_SALE,
    ORDER_TYPE_PENDING_PAYMENT,
    STATUS_PAID,
    STATUS_PROOF_UPLOADED,
    STATUS_WAITING_FOR_PAYMENT,
)
from swiftflow.services import order_service, product_service
from swiftflow.services.auth_service import PermissionDeniedError
from swiftflow.services.stock_service import InsufficientStockError
from swiftflow.validation import NotFoundError, ValidationError
from conftest import make_product


def checkout_payload(product_id, quantity, **extra):
    payload = {
        "customer": {"name": "Lerato", "phone": "0821234567"},
        "items": [{"product_id": product_id, "quantity": quantity}],
    }
    payload.update(extra)
    return payload


def income_entries(owner_id):
    return db.session.query(FinanceEntry).filter_by(owner_id=owner_id).all()


class TestCheckoutOrders:
    """Storefront checkout (PENDING_PAYMENT orders)."""

    def test_checkout_leaves_stock_until_proof(self, db_session, owner_a, product_a):
        """Stock 5, order 3 at R100: total R300, stock untouched, then 2 after proof."""
        order = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 3))

        assert order.order_type == ORDER_TYPE_PENDING_PAYMENT
        assert order.status == STATUS_WAITING_FOR_PAYMENT
        assert order.total_cents == 30000
        assert db.session.get(Product, product_a.id).stock == 5

        order_service.attach_proof(owner_a.id, order.id, "/uploads/proofs/p.png")

        order = db.session.get(Order, order.id)
        assert order.status == STATUS_PAID
        assert order.stock_applied_at is not None
        assert db.session.get(Product, product_a.id).stock == 2

    def test_insufficient_stock_writes_nothing(self, db_session, owner_a):
        product = make_product(db_session, owner_a, stock=2)

        with pytest.raises(InsufficientStockError) as exc_info:
            order_service.create_checkout_order(owner_a.id, checkout_payload(product.id, 5))

        assert exc_info.value.details["available"] == 2
        assert exc_info.value.details["requested_quantity"] == 5
        assert db.session.get(Product, product.id).stock == 2
        assert db.session.query(Order).count() == 0

    def test_quantities_are_summed_per_product(self, db_session, owner_a, product_a):
        """Two lines of 3 for the same product exceed a stock of 5."""
        payload = {
            "customer": {"name": "Lerato", "phone": "0821234567"},
            "items": [
                {"product_id": product_a.id, "quantity": 3},
                {"product_id": product_a.id, "quantity": 3},
            ],
        }
        with pytest.raises(InsufficientStockError):
            order_service.create_checkout_order(owner_a.id, payload)

    def test_missing_customer_fields_are_listed(self, db_session, owner_a, product_a):
        payload = {"items": [{"product_id": product_a.id, "quantity": 1}]}
        with pytest.raises(ValidationError) as exc_info:
            order_service.create_checkout_order(owner_a.id, payload)
        assert exc_info.value.details["fields"] == ["customer_name", "customer_phone"]

    def test_foreign_product_is_rejected(self, db_session, owner_a, owner_b):
        foreign = make_product(db_session, owner_b, name="Runner")
        with pytest.raises(ValidationError):
            order_service.create_checkout_order(owner_a.id, checkout_payload(foreign.id, 1))
        assert db.session.get(Product, foreign.id).stock == 5

    def test_hidden_product_cannot_be_ordered(self, db_session, owner_a):
        hidden = make_product(db_session, owner_a, is_visible=False)
        with pytest.raises(ValidationError):
            order_service.create_checkout_order(owner_a.id, checkout_payload(hidden.id, 1))

    def test_size_must_match_product_sizes(self, db_session, owner_a):
        sized = make_product(db_session, owner_a, sizes=["S", "M"])
        with pytest.raises(ValidationError):
            order_service.create_checkout_order(owner_a.id, checkout_payload(sized.id, 1))

        payload = checkout_payload(sized.id, 1)
        payload["items"][0]["size"] = "m"
        order = order_service.create_checkout_order(owner_a.id, payload)
        assert order.lines[0].size == "M"

    def test_line_snapshots_survive_price_change(self, db_session, owner_a, product_a):
        order = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 2))

        product_service.update_product(owner_a.id, product_a.id, {"price_cents": 99900, "name": "Renamed"})

        order = db.session.get(Order, order.id)
        assert order.total_cents == 20000
        assert order.lines[0].unit_price_cents == 10000
        assert order.lines[0].product_name == "Linen Shirt"
        assert order.total_cents == sum(line.line_total_cents for line in order.lines)

    def test_unknown_store_is_not_found(self, db_session, product_a):
        with pytest.raises(NotFoundError):
            order_service.create_checkout_order("missing-owner", checkout_payload(product_a.id, 1))


class TestPaymentConfirmation:
    """Proof upload and confirm_payment idempotency."""

    def test_confirm_twice_decrements_once(self, db_session, owner_a, product_a):
        order = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 3))

        _, first = order_service.confirm_payment(owner_a.id, order.id)
        _, second = order_service.confirm_payment(owner_a.id, order.id)

        assert first is True
        assert second is False
        assert db.session.get(Product, product_a.id).stock == 2
        entries = income_entries(owner_a.id)
        assert len(entries) == 1
        assert entries[0].amount_cents == 30000

    def test_reupload_after_paid_changes_nothing_but_reference(self, db_session, owner_a, product_a):
        order = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 1))
        order_service.attach_proof(owner_a.id, order.id, "/uploads/proofs/first.png")
        order_service.attach_proof(owner_a.id, order.id, "/uploads/proofs/second.png")

        order = db.session.get(Order, order.id)
        assert order.status == STATUS_PAID
        assert order.proof_url == "/uploads/proofs/second.png"
        assert db.session.get(Product, product_a.id).stock == 4
        assert len(income_entries(owner_a.id)) == 1

    def test_stock_floors_at_zero_when_sold_out_meanwhile(self, db_session, owner_a, product_a):
        first = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 4))
        second = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 4))

        order_service.confirm_payment(owner_a.id, first.id)
        order_service.confirm_payment(owner_a.id, second.id)

        assert db.session.get(Product, product_a.id).stock == 0

    def test_other_owner_cannot_attach_proof(self, db_session, owner_a, owner_b, product_a):
        order = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 1))
        with pytest.raises(PermissionDeniedError):
            order_service.attach_proof(owner_b.id, order.id, "/uploads/proofs/x.png")

    def test_reconcile_confirms_stranded_orders(self, db_session, owner_a, product_a):
        order = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 2))
        # Simulate a proof whose confirmation handler never ran
        stranded = db.session.get(Order, order.id)
        stranded.is_proof_uploaded = True
        stranded.status = STATUS_PROOF_UPLOADED
        db.session.commit()

        confirmed = order_service.reconcile_pending_payments()

        assert confirmed == [order.id]
        assert db.session.get(Product, product_a.id).stock == 3
        assert order_service.reconcile_pending_payments() == []


class TestManualOrders:
    """Owner-entered sales (IMMEDIATE_SALE orders)."""

    def test_manual_order_is_paid_with_stock_and_income(self, db_session, owner_a, product_a):
        order = order_service.create_manual_order(
            owner_a.id, {"items": [{"product_id": product_a.id, "quantity": 2}]}
        )

        assert order.order_type == ORDER_TYPE_IMMEDIATE_SALE
        assert order.status == STATUS_PAID
        assert order.customer_name == order_service.WALK_IN_CUSTOMER
        assert db.session.get(Product, product_a.id).stock == 3
        entries = income_entries(owner_a.id)
        assert [(e.amount_cents, e.source) for e in entries] == [(20000, "product sale")]

    def test_confirm_on_manual_order_is_a_no_op(self, db_session, owner_a, product_a):
        order = order_service.create_manual_order(
            owner_a.id, {"items": [{"product_id": product_a.id, "quantity": 1}]}
        )
        _, applied = order_service.confirm_payment(owner_a.id, order.id)
        assert applied is False
        assert db.session.get(Product, product_a.id).stock == 4

    def test_manual_order_respects_stock(self, db_session, owner_a, product_a):
        with pytest.raises(InsufficientStockError):
            order_service.create_manual_order(
                owner_a.id, {"items": [{"product_id": product_a.id, "quantity": 6}]}
            )
        assert db.session.get(Product, product_a.id).stock == 5


class TestStatusToggle:
    """Owner's manual PAID <-> WAITING override."""

    def test_marking_unsettled_order_paid_takes_stock_once(self, db_session, owner_a, product_a):
        order = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 3))

        order = order_service.set_status(owner_a.id, order.id, "Paid")
        assert order.status == STATUS_PAID
        assert order.stock_applied_at is not None
        assert db.session.get(Product, product_a.id).stock == 2
        entries = income_entries(owner_a.id)
        assert [e.amount_cents for e in entries] == [30000]

        order_service.set_status(owner_a.id, order.id, "Waiting for Payment")
        order = order_service.set_status(owner_a.id, order.id, STATUS_PAID)
        assert order.status == STATUS_PAID
        assert db.session.get(Product, product_a.id).stock == 2
        assert len(income_entries(owner_a.id)) == 1

    def test_proof_after_owner_marked_paid_does_not_take_stock_again(self, db_session, owner_a, product_a):
        order = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 2))
        order_service.set_status(owner_a.id, order.id, STATUS_PAID)

        order_service.attach_proof(owner_a.id, order.id, "/uploads/proofs/late.png")

        order = db.session.get(Order, order.id)
        assert order.status == STATUS_PAID
        assert db.session.get(Product, product_a.id).stock == 3
        assert len(income_entries(owner_a.id)) == 1

    def test_toggle_back_to_waiting_keeps_stock_and_income(self, db_session, owner_a, product_a):
        order = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 1))
        order_service.attach_proof(owner_a.id, order.id, "/uploads/proofs/p.png")

        order = order_service.set_status(owner_a.id, order.id, "Waiting for Payment")

        assert order.status == STATUS_WAITING_FOR_PAYMENT
        assert db.session.get(Product, product_a.id).stock == 4
        assert len(income_entries(owner_a.id)) == 1

    def test_reupload_after_settlement_keeps_owner_status(self, db_session, owner_a, product_a):
        order = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 1))
        order_service.attach_proof(owner_a.id, order.id, "/uploads/proofs/first.png")
        order_service.set_status(owner_a.id, order.id, STATUS_WAITING_FOR_PAYMENT)

        order_service.attach_proof(owner_a.id, order.id, "/uploads/proofs/second.png")

        order = db.session.get(Order, order.id)
        assert order.status == STATUS_WAITING_FOR_PAYMENT
        assert order.proof_url == "/uploads/proofs/second.png"
        assert db.session.get(Product, product_a.id).stock == 4
        assert len(income_entries(owner_a.id)) == 1

    def test_toggle_rejects_other_statuses(self, db_session, owner_a, product_a):
        order = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 1))
        with pytest.raises(ValidationError):
            order_service.set_status(owner_a.id, order.id, STATUS_PROOF_UPLOADED)

    def test_list_orders_is_scoped_to_owner(self, db_session, owner_a, owner_b, product_a):
        order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 1))

        assert len(order_service.list_orders(owner_a.id)) == 1
        assert order_service.list_orders(owner_b.id) == []
        assert order_service.list_orders(owner_a.id, status=STATUS_PAID) == []

    def test_list_orders_accepts_display_labels(self, db_session, owner_a, product_a):
        order = order_service.create_checkout_order(owner_a.id, checkout_payload(product_a.id, 1))

        assert [o.id for o in order_service.list_orders(owner_a.id, status="Waiting for Payment")] == [order.id]
        assert [o.id for o in order_service.list_orders(owner_a.id, status="waiting_for_payment")] == [order.id]
