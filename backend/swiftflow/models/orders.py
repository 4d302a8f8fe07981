from __future__ import annotations

from ..extensions import db
from swiftflow.time_utils import to_utc_z, utcnow
from .ids import new_id


ORDER_TYPE_PENDING_PAYMENT = "PENDING_PAYMENT"
ORDER_TYPE_IMMEDIATE_SALE = "IMMEDIATE_SALE"

STATUS_WAITING_FOR_PAYMENT = "WAITING_FOR_PAYMENT"
STATUS_PROOF_UPLOADED = "PROOF_UPLOADED"
STATUS_PAID = "PAID"

STATUS_LABELS = {
    STATUS_WAITING_FOR_PAYMENT: "Waiting for Payment",
    STATUS_PROOF_UPLOADED: "Proof Uploaded",
    STATUS_PAID: "Paid",
}

FINANCE_INCOME = "income"


class Order(db.Model):
    """
    Customer order against one owner's store.

    Lifecycle:
    - PENDING_PAYMENT orders: WAITING_FOR_PAYMENT -> PROOF_UPLOADED -> PAID.
      Stock leaves the shelf when payment is confirmed.
    - IMMEDIATE_SALE orders (owner-entered) are born PAID and take stock
      in the same transaction that creates them.

    stock_applied_at is set exactly once, in the transaction that decrements
    stock for every line; it is the idempotency key for payment confirmation.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_owner_status_created", "owner_id", "status", "created_at"),
        db.Index("ix_orders_owner_created", "owner_id", "created_at"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    owner_id = db.Column(db.String(32), db.ForeignKey("owners.id"), nullable=False, index=True)

    order_type = db.Column(db.String(32), nullable=False, default=ORDER_TYPE_PENDING_PAYMENT)
    status = db.Column(db.String(32), nullable=False, default=STATUS_WAITING_FOR_PAYMENT, index=True)

    customer_name = db.Column(db.String(120), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=True)

    # Frozen at creation: sum of line totals
    total_cents = db.Column(db.Integer, nullable=False)

    proof_url = db.Column(db.String(512), nullable=True)
    is_proof_uploaded = db.Column(db.Boolean, nullable=False, default=False)
    proof_uploaded_at = db.Column(db.DateTime(timezone=True), nullable=True)

    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    stock_applied_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship("Owner", backref=db.backref("orders", lazy=True))
    lines = db.relationship(
        "OrderLine",
        backref="order",
        lazy=True,
        order_by="OrderLine.line_number",
        cascade="all, delete-orphan",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order id={self.id} owner_id={self.owner_id} status={self.status}>"

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "owner_id": self.owner_id,
            "order_type": self.order_type,
            "status": self.status,
            "status_label": STATUS_LABELS.get(self.status, self.status),
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "total_cents": self.total_cents,
            "proof_url": self.proof_url,
            "is_proof_uploaded": self.is_proof_uploaded,
            "proof_uploaded_at": to_utc_z(self.proof_uploaded_at),
            "paid_at": to_utc_z(self.paid_at),
            "stock_applied": self.stock_applied_at is not None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_lines:
            data["items"] = [line.to_dict() for line in self.lines]
        return data


class OrderLine(db.Model):
    """Line item; name and unit price are snapshots taken at order creation."""
    __tablename__ = "order_lines"
    __table_args__ = (
        db.UniqueConstraint("order_id", "line_number", name="uq_order_lines_order_line"),
        db.CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(32), db.ForeignKey("orders.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.String(32), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    size = db.Column(db.String(8), nullable=True)
    line_total_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "line_number": self.line_number,
            "product_id": self.product_id,
            "name": self.product_name,
            "unit_price_cents": self.unit_price_cents,
            "quantity": self.quantity,
            "size": self.size,
            "line_total_cents": self.line_total_cents,
        }


class FinanceEntry(db.Model):
    """Append-only income record; feeds the revenue figure of digests."""
    __tablename__ = "finance_entries"
    __table_args__ = (
        db.Index("ix_finance_entries_owner_occurred", "owner_id", "occurred_at"),
        db.UniqueConstraint("order_id", "entry_type", name="uq_finance_entries_order_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(32), db.ForeignKey("owners.id"), nullable=False, index=True)
    order_id = db.Column(db.String(32), db.ForeignKey("orders.id"), nullable=True, index=True)

    entry_type = db.Column(db.String(16), nullable=False, default=FINANCE_INCOME)
    source = db.Column(db.String(64), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "order_id": self.order_id,
            "type": self.entry_type,
            "source": self.source,
            "amount_cents": self.amount_cents,
            "occurred_at": to_utc_z(self.occurred_at),
        }
