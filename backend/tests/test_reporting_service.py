# Overview: Pytest coverage for digest windows, digest contents and the scheduled send run.

"""
Reporting Tests

Clock: Monday 2026-10-19 07:00 UTC (09:00 in Africa/Johannesburg, the weekly
cron slot). The weekly window therefore opens at 2026-10-12 00:00 SAST,
which is 2026-10-11 22:00 UTC.
"""

import json
from datetime import datetime

import httpx
import pytest

from swiftflow.extensions import db
from swiftflow.models import FinanceEntry, Order
from swiftflow.models.orders import STATUS_PAID
from swiftflow.services import reporting_service
from swiftflow.services.email_service import ReportDeliveryError, SendGridClient
from swiftflow.services.reporting_service import ReportError
from conftest import make_owner, make_product


NOW = datetime(2026, 10, 19, 7, 0)
IN_WINDOW = datetime(2026, 10, 15, 10, 0)
BEFORE_WINDOW = datetime(2026, 10, 11, 21, 0)


def add_paid_order(owner, amount_cents, at):
    order = Order(
        owner_id=owner.id,
        customer_name="Lerato",
        total_cents=amount_cents,
        status=STATUS_PAID,
        created_at=at,
        paid_at=at,
    )
    db.session.add(order)
    db.session.flush()
    db.session.add(FinanceEntry(
        owner_id=owner.id,
        order_id=order.id,
        source="order payment",
        amount_cents=amount_cents,
        occurred_at=at,
    ))
    db.session.commit()
    return order


def enable_reports(owner, frequency="weekly", recipient=None):
    owner.email_reports_enabled = True
    owner.email_report_frequency = frequency
    owner.email_report_recipient = recipient
    db.session.commit()


def sent_to(request):
    return json.loads(request.content)["personalizations"][0]["to"][0]["email"]


class TestWindow:
    def test_weekly_window_starts_at_local_midnight(self, db_session):
        assert reporting_service.window_start("weekly", NOW) == datetime(2026, 10, 11, 22, 0)

    def test_daily_window_starts_yesterday(self, db_session):
        assert reporting_service.window_start("daily", NOW) == datetime(2026, 10, 17, 22, 0)

    def test_unknown_frequency(self, db_session):
        with pytest.raises(ReportError):
            reporting_service.window_start("monthly", NOW)


class TestDigest:
    def test_weekly_digest_counts_orders_revenue_and_low_stock(self, db_session, owner_a):
        """4 qualifying orders totaling R450.00 and one product at stock 2."""
        for amount in (10000, 15000, 12500, 7500):
            add_paid_order(owner_a, amount, IN_WINDOW)
        add_paid_order(owner_a, 99900, BEFORE_WINDOW)
        make_product(db_session, owner_a, name="Denim Jacket", stock=2)
        make_product(db_session, owner_a, name="Linen Shirt", stock=10)

        digest = reporting_service.build_digest(owner_a, "weekly", NOW)

        assert digest.order_count == 4
        assert digest.total_revenue_cents == 45000
        assert digest.total_revenue == "450.00"
        assert digest.low_stock == ["Denim Jacket"]

        html = reporting_service.render_digest_html(digest)
        assert "R450.00" in html
        assert "Denim Jacket" in html

    def test_healthy_stock_message(self, db_session, owner_a):
        make_product(db_session, owner_a, stock=10)
        digest = reporting_service.build_digest(owner_a, "daily", NOW)
        assert digest.low_stock == []
        assert "All stock levels are healthy" in reporting_service.render_digest_html(digest)

    def test_digest_is_scoped_to_owner(self, db_session, owner_a, owner_b):
        add_paid_order(owner_b, 5000, IN_WINDOW)
        digest = reporting_service.build_digest(owner_a, "weekly", NOW)
        assert digest.order_count == 0
        assert digest.total_revenue_cents == 0

    def test_subject(self):
        assert reporting_service.digest_subject("weekly") == "SwiftFlow Weekly Report"
        assert reporting_service.digest_subject("daily") == "SwiftFlow Daily Report"


class TestSendReports:
    def test_disabled_owner_is_skipped(self, db_session, owner_a, owner_b, email_client, sent_emails):
        enable_reports(owner_a, recipient="reports@thandi.example")

        summary = reporting_service.send_reports("weekly", email_client=email_client, now=NOW)

        assert summary.sent == [owner_a.id]
        assert owner_b.id in summary.skipped
        assert summary.failed == {}
        assert len(sent_emails) == 1
        body = json.loads(sent_emails[0].content)
        assert sent_to(sent_emails[0]) == "reports@thandi.example"
        assert body["subject"] == "SwiftFlow Weekly Report"
        assert body["from"]["email"] == "no-reply@swiftflow.world"

    def test_frequency_mismatch_is_skipped(self, db_session, owner_a, email_client, sent_emails):
        enable_reports(owner_a, frequency="daily")

        summary = reporting_service.send_reports("weekly", email_client=email_client, now=NOW)

        assert summary.skipped == [owner_a.id]
        assert sent_emails == []

    def test_recipient_falls_back_to_account_email(self, db_session, owner_a, email_client, sent_emails):
        enable_reports(owner_a, recipient=None)

        reporting_service.send_reports("weekly", email_client=email_client, now=NOW)

        assert sent_to(sent_emails[0]) == "thandi@example.com"

    def test_one_failed_delivery_does_not_stop_the_run(self, db_session, owner_a, owner_b):
        enable_reports(owner_a)
        enable_reports(owner_b)
        delivered = []

        def handler(request):
            if sent_to(request) == "thandi@example.com":
                return httpx.Response(500, text="provider error")
            delivered.append(sent_to(request))
            return httpx.Response(202)

        with SendGridClient("key", transport=httpx.MockTransport(handler)) as client:
            summary = reporting_service.send_reports("weekly", email_client=client, now=NOW)

        assert summary.sent == [owner_b.id]
        assert list(summary.failed) == [owner_a.id]
        assert delivered == ["sipho@example.com"]

    def test_missing_api_key_fails_the_run(self, app, db_session, owner_a, monkeypatch):
        enable_reports(owner_a)
        monkeypatch.setitem(app.config, "SENDGRID_API_KEY", None)

        with pytest.raises(ReportDeliveryError):
            reporting_service.send_reports("weekly", now=NOW)


class TestDashboard:
    def test_dashboard_counts_today(self, db_session, owner_a):
        add_paid_order(owner_a, 20000, datetime(2026, 10, 19, 6, 0))
        add_paid_order(owner_a, 10000, datetime(2026, 10, 18, 6, 0))
        make_product(db_session, owner_a, name="Beanie", stock=1)

        summary = reporting_service.dashboard_summary(owner_a.id, now=NOW)

        assert summary["orders_today"] == 1
        assert summary["revenue_today_cents"] == 20000
        assert summary["low_stock"] == ["Beanie"]
        assert summary["product_count"] == 1
