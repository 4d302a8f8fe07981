# Overview: Flask CLI command groups for bootstrap, scheduled jobs and maintenance.

# backend/swiftflow/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent). Prefer `flask db upgrade` in production.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Scheduled digests (cron, REPORT_TIMEZONE):
# - python -m flask reports send --frequency daily     (every day 09:00)
# - python -m flask reports send --frequency weekly    (Mondays 09:00)
# - python -m flask reports preview --owner-id <id> --frequency weekly
#   Print the digest HTML for one owner without sending.
#
# Public mirror:
# - python -m flask mirror rebuild
#   Re-publish every owner and product to the public tables, drop orphans.
#
# Orders:
# - python -m flask orders reconcile [--owner-id <id>]
#   Confirm orders whose proof was uploaded but whose payment confirmation failed.

import sys

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Owner
from .services import mirror_service, order_service, reporting_service
from .services.email_service import ReportDeliveryError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema is in place")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    click.echo("START Creating tables...")
    db.create_all()
    click.echo("PASS Database reset complete")


@click.group('reports')
def reports_group():
    """Owner digest emails."""


@reports_group.command('send')
@click.option('--frequency', type=click.Choice(['daily', 'weekly']), required=True)
@with_appcontext
def send_reports(frequency):
    """Send the digest to every owner subscribed at this frequency."""
    try:
        summary = reporting_service.send_reports(frequency)
    except ReportDeliveryError as e:
        click.echo(f"FAIL {e}", err=True)
        sys.exit(1)

    click.echo(
        f"PASS {frequency} reports: sent={len(summary.sent)} "
        f"skipped={len(summary.skipped)} failed={len(summary.failed)}"
    )
    for owner_id, reason in summary.failed.items():
        click.echo(f"  FAIL {owner_id}: {reason}", err=True)


@reports_group.command('preview')
@click.option('--owner-id', required=True)
@click.option('--frequency', type=click.Choice(['daily', 'weekly']), default='weekly', show_default=True)
@with_appcontext
def preview_report(owner_id, frequency):
    """Render one owner's digest to stdout."""
    owner = db.session.get(Owner, owner_id)
    if not owner:
        click.echo(f"FAIL Owner {owner_id} not found", err=True)
        sys.exit(1)

    digest = reporting_service.build_digest(owner, frequency)
    click.echo(f"To: {reporting_service.resolve_recipient(owner)}")
    click.echo(f"Subject: {reporting_service.digest_subject(frequency)}")
    click.echo("")
    click.echo(reporting_service.render_digest_html(digest))


@click.group('mirror')
def mirror_group():
    """Public read-model maintenance."""


@mirror_group.command('rebuild')
@with_appcontext
def rebuild_mirror():
    counts = mirror_service.rebuild_all()
    click.echo(
        f"PASS Mirror rebuilt: owners={counts['owners']} products={counts['products']} "
        f"removed={counts['removed']} failed={counts['failed']}"
    )
    if counts["failed"]:
        sys.exit(1)


@click.group('orders')
def orders_group():
    """Order maintenance."""


@orders_group.command('reconcile')
@click.option('--owner-id', default=None, help='Limit to one owner')
@with_appcontext
def reconcile_orders(owner_id):
    confirmed = order_service.reconcile_pending_payments(owner_id)
    click.echo(f"PASS Confirmed {len(confirmed)} order(s)")
    for order_id in confirmed:
        click.echo(f"  {order_id}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(reports_group)
    app.cli.add_command(mirror_group)
    app.cli.add_command(orders_group)
