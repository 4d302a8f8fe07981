# Overview: Service-layer operations for reporting; digests, scheduled email runs and dashboard figures.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from flask import current_app, render_template
from sqlalchemy import func

from ..extensions import db
from ..models import FinanceEntry, Order, Owner, Product
from ..models.orders import FINANCE_INCOME, STATUS_PAID
from swiftflow.time_utils import format_cents, local_midnight_utc, to_utc_z, utcnow
from .email_service import ReportDeliveryError, SendGridClient
from .stock_service import low_stock_products
"""
Digest rules

- Window: local midnight (REPORT_TIMEZONE) of today minus 1 day (daily) or
  7 days (weekly). Everything with a timestamp >= window start counts.
- order_count: orders created in the window, whatever their status.
- total_revenue: sum of "income" finance entries in the window.
- low_stock: every product with stock <= LOW_STOCK_THRESHOLD.
- One owner's failure is logged and recorded; the run moves on.
"""


REPORT_FREQUENCY_DAYS = {"daily": 1, "weekly": 7}


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


@dataclass
class Digest:
    owner_id: str
    store_name: str
    frequency: str
    window_start: datetime
    order_count: int
    total_revenue_cents: int
    low_stock: list[str]
    currency_symbol: str = "R"

    @property
    def total_revenue(self) -> str:
        return format_cents(self.total_revenue_cents)

    def to_dict(self) -> dict:
        return {
            "owner_id": self.owner_id,
            "store_name": self.store_name,
            "frequency": self.frequency,
            "window_start": to_utc_z(self.window_start),
            "order_count": self.order_count,
            "total_revenue_cents": self.total_revenue_cents,
            "total_revenue": self.total_revenue,
            "low_stock": list(self.low_stock),
        }


@dataclass
class ReportRunSummary:
    frequency: str
    started_at: datetime
    sent: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "frequency": self.frequency,
            "started_at": to_utc_z(self.started_at),
            "sent": list(self.sent),
            "skipped": list(self.skipped),
            "failed": dict(self.failed),
        }


def _check_frequency(frequency: str) -> str:
    frequency = (frequency or "").strip().lower()
    if frequency not in REPORT_FREQUENCY_DAYS:
        raise ReportError("frequency must be daily or weekly")
    return frequency


def window_start(frequency: str, now: datetime | None = None) -> datetime:
    frequency = _check_frequency(frequency)
    tz_name = current_app.config.get("REPORT_TIMEZONE", "UTC")
    return local_midnight_utc(now or utcnow(), tz_name, days_back=REPORT_FREQUENCY_DAYS[frequency])


def _low_stock_names(owner_id: str) -> list[str]:
    threshold = int(current_app.config.get("LOW_STOCK_THRESHOLD", 3))
    return [product.name or "Unnamed item" for product in low_stock_products(owner_id, threshold)]


def _order_count(owner_id: str, since: datetime) -> int:
    return int(
        db.session.query(func.count(Order.id))
        .filter(Order.owner_id == owner_id, Order.created_at >= since)
        .scalar()
        or 0
    )


def _income_cents(owner_id: str, since: datetime) -> int:
    return int(
        db.session.query(func.coalesce(func.sum(FinanceEntry.amount_cents), 0))
        .filter(
            FinanceEntry.owner_id == owner_id,
            FinanceEntry.entry_type == FINANCE_INCOME,
            FinanceEntry.occurred_at >= since,
        )
        .scalar()
        or 0
    )


def build_digest(owner: Owner, frequency: str, now: datetime | None = None) -> Digest:
    start = window_start(frequency, now)
    return Digest(
        owner_id=owner.id,
        store_name=owner.display_name or "",
        frequency=_check_frequency(frequency),
        window_start=start,
        order_count=_order_count(owner.id, start),
        total_revenue_cents=_income_cents(owner.id, start),
        low_stock=_low_stock_names(owner.id),
        currency_symbol=current_app.config.get("CURRENCY_SYMBOL", "R"),
    )


def render_digest_html(digest: Digest) -> str:
    return render_template("email/report_digest.html", digest=digest)


def digest_subject(frequency: str) -> str:
    return f"SwiftFlow {frequency.capitalize()} Report"


def resolve_recipient(owner: Owner) -> str:
    return (owner.email_report_recipient or owner.email or "").strip()


def wants_report(owner: Owner, frequency: str) -> bool:
    return bool(owner.email_reports_enabled) and owner.email_report_frequency == frequency


def send_owner_report(owner: Owner, frequency: str, client: SendGridClient, now: datetime | None = None) -> Digest:
    recipient = resolve_recipient(owner)
    if not recipient:
        raise ReportDeliveryError(f"Owner {owner.id} has no recipient address")
    digest = build_digest(owner, frequency, now)
    client.send(to=recipient, subject=digest_subject(digest.frequency), html=render_digest_html(digest))
    return digest


def send_reports(
    frequency: str,
    *,
    email_client: SendGridClient | None = None,
    now: datetime | None = None,
) -> ReportRunSummary:
    """
    Scheduled entry point (daily 09:00 / Mondays 09:00 in REPORT_TIMEZONE).

    A missing API key fails the whole run up front; after that every owner is
    isolated from the others.
    """
    frequency = _check_frequency(frequency)
    summary = ReportRunSummary(frequency=frequency, started_at=utcnow())

    owns_client = email_client is None
    client = email_client or SendGridClient.from_config()
    try:
        owners = (
            db.session.query(Owner)
            .filter(Owner.is_active.is_(True))
            .order_by(Owner.created_at.asc())
            .all()
        )
        for owner in owners:
            if not wants_report(owner, frequency):
                summary.skipped.append(owner.id)
                continue
            try:
                digest = send_owner_report(owner, frequency, client, now)
            except ReportDeliveryError as exc:
                current_app.logger.error("%s digest for owner %s not delivered: %s", frequency, owner.id, exc)
                summary.failed[owner.id] = str(exc)
            except Exception as exc:
                db.session.rollback()
                current_app.logger.exception("%s digest for owner %s failed", frequency, owner.id)
                summary.failed[owner.id] = exc.__class__.__name__
            else:
                current_app.logger.info(
                    "Sent %s digest to owner %s (orders=%s revenue=%s low_stock=%s)",
                    frequency, owner.id, digest.order_count, digest.total_revenue, len(digest.low_stock),
                )
                summary.sent.append(owner.id)
    finally:
        if owns_client:
            client.close()

    current_app.logger.info(
        "%s report run complete: sent=%s skipped=%s failed=%s",
        frequency, len(summary.sent), len(summary.skipped), len(summary.failed),
    )
    return summary


def dashboard_summary(owner_id: str, now: datetime | None = None) -> dict:
    """Today's figures for the owner dashboard (today = since local midnight)."""
    tz_name = current_app.config.get("REPORT_TIMEZONE", "UTC")
    today = local_midnight_utc(now or utcnow(), tz_name, days_back=0)

    awaiting = int(
        db.session.query(func.count(Order.id))
        .filter(Order.owner_id == owner_id, Order.status != STATUS_PAID)
        .scalar()
        or 0
    )
    product_count = int(
        db.session.query(func.count(Product.id)).filter(Product.owner_id == owner_id).scalar() or 0
    )
    revenue = _income_cents(owner_id, today)

    return {
        "since": to_utc_z(today),
        "orders_today": _order_count(owner_id, today),
        "revenue_today_cents": revenue,
        "revenue_today": format_cents(revenue),
        "awaiting_payment": awaiting,
        "product_count": product_count,
        "low_stock": _low_stock_names(owner_id),
        "low_stock_threshold": int(current_app.config.get("LOW_STOCK_THRESHOLD", 3)),
    }
