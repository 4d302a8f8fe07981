from __future__ import annotations

from ..extensions import db
from swiftflow.time_utils import to_utc_z, utcnow
from .ids import new_id


SETUP_BUSINESS_INFO = "BUSINESS_INFO"
SETUP_BANK_INFO = "BANK_INFO"
SETUP_DONE = "DONE"

REPORT_FREQUENCIES = ("daily", "weekly", "off")

BANK_FIELDS = (
    "bank_name",
    "account_holder",
    "account_number",
    "branch_code",
    "swift_code",
    "payment_email",
)


class Owner(db.Model):
    """
    A registered entrepreneur operating one storefront.

    Holds the private profile, bank-transfer details and digest preferences.
    Public visitors never read this table; they read PublicOwner, which the
    mirror keeps in step after every committed write.
    """
    __tablename__ = "owners"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # Business info (setup step 1)
    display_name = db.Column(db.String(120), nullable=True)
    business_type = db.Column(db.String(64), nullable=True)
    bio = db.Column(db.Text, nullable=True)
    logo_url = db.Column(db.String(512), nullable=True)
    brand_color = db.Column(db.String(16), nullable=False, default="#6b7280")

    # Bank-transfer details (setup step 2)
    bank_name = db.Column(db.String(120), nullable=True)
    account_holder = db.Column(db.String(120), nullable=True)
    account_number = db.Column(db.String(64), nullable=True)
    branch_code = db.Column(db.String(32), nullable=True)
    swift_code = db.Column(db.String(32), nullable=True)
    payment_email = db.Column(db.String(255), nullable=True)

    setup_step = db.Column(db.String(16), nullable=False, default=SETUP_BUSINESS_INFO)
    is_registered = db.Column(db.Boolean, nullable=False, default=False)

    # Digest preferences
    email_reports_enabled = db.Column(db.Boolean, nullable=False, default=False)
    email_report_recipient = db.Column(db.String(255), nullable=True)
    email_report_frequency = db.Column(db.String(16), nullable=False, default="weekly")

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Owner id={self.id} email={self.email!r}>"

    def bank_details(self) -> dict:
        return {field: (getattr(self, field) or "").strip() for field in BANK_FIELDS}

    def has_bank_details(self) -> bool:
        return any(self.bank_details().values())

    def email_settings(self) -> dict:
        return {
            "enabled": bool(self.email_reports_enabled),
            "recipient": self.email_report_recipient or "",
            "frequency": self.email_report_frequency or "weekly",
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
            "business_type": self.business_type,
            "bio": self.bio,
            "logo_url": self.logo_url,
            "brand_color": self.brand_color,
            "bank_details": self.bank_details(),
            "has_bank": self.has_bank_details(),
            "setup_step": self.setup_step,
            "is_registered": self.is_registered,
            "email_settings": self.email_settings(),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class SessionToken(db.Model):
    """
    Bearer token issued at login.

    Tokens are stored hashed (SHA-256); the plaintext only ever leaves the
    server once, in the login response.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_owner_active", "owner_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(32), db.ForeignKey("owners.id"), nullable=False, index=True)

    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    owner = db.relationship("Owner", backref=db.backref("sessions", lazy=True))
