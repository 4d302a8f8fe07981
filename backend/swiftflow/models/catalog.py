from __future__ import annotations

from ..extensions import db
from swiftflow.time_utils import to_utc_z, utcnow
from .ids import new_id


class Product(db.Model):
    """
    Owner-private product. `stock` here is authoritative; the PublicProduct
    with the same id is a best-effort mirror that may briefly lag.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_owner_name", "owner_id", "name"),
        db.Index("ix_products_owner_visible", "owner_id", "is_visible"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_products_price_non_negative"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    owner_id = db.Column(db.String(32), db.ForeignKey("owners.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(64), nullable=True)

    # Authoritative storage in cents (clients only format for display)
    price_cents = db.Column(db.Integer, nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)

    sizes = db.Column(db.JSON, nullable=True)
    # [{"url": ..., "kind": "image" | "video"}]
    media = db.Column(db.JSON, nullable=False, default=list)

    is_visible = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship("Owner", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} owner_id={self.owner_id} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "price_cents": self.price_cents,
            "stock": self.stock,
            "sizes": list(self.sizes or []),
            "media": list(self.media or []),
            "is_visible": self.is_visible,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
