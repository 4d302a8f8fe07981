from __future__ import annotations

from ..extensions import db
from swiftflow.time_utils import to_utc_z, utcnow


class PublicOwner(db.Model):
    """
    World-readable storefront profile, keyed by the owner id.

    Written only by the mirror service. Carries the bank-transfer payload
    because checkout shows payment instructions; has_bank is a convenience
    flag derived from the same payload.
    """
    __tablename__ = "public_owners"

    id = db.Column(db.String(32), primary_key=True)

    display_name = db.Column(db.String(120), nullable=True)
    business_type = db.Column(db.String(64), nullable=True)
    bio = db.Column(db.Text, nullable=True)
    logo_url = db.Column(db.String(512), nullable=True)
    brand_color = db.Column(db.String(16), nullable=True)

    has_bank = db.Column(db.Boolean, nullable=False, default=False)
    bank_details = db.Column(db.JSON, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.id,
            "display_name": self.display_name or "",
            "business_type": self.business_type or "",
            "bio": self.bio or "",
            "logo_url": self.logo_url or "",
            "brand_color": self.brand_color,
            "has_bank": self.has_bank,
            "bank_details": self.bank_details if self.has_bank else None,
            "updated_at": to_utc_z(self.updated_at),
        }


class PublicProduct(db.Model):
    """World-readable product copy; same id as the private Product."""
    __tablename__ = "public_products"
    __table_args__ = (
        db.Index("ix_public_products_owner_visible", "owner_id", "is_visible"),
    )

    id = db.Column(db.String(32), primary_key=True)
    owner_id = db.Column(db.String(32), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    is_low_stock = db.Column(db.Boolean, nullable=False, default=False)
    category = db.Column(db.String(64), nullable=True)
    sizes = db.Column(db.JSON, nullable=True)
    media = db.Column(db.JSON, nullable=False, default=list)
    is_visible = db.Column(db.Boolean, nullable=False, default=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "price_cents": self.price_cents,
            "stock": self.stock,
            "in_stock": self.stock > 0,
            "is_low_stock": self.is_low_stock,
            "category": self.category,
            "sizes": list(self.sizes or []),
            "media": list(self.media or []),
            "updated_at": to_utc_z(self.updated_at),
        }
