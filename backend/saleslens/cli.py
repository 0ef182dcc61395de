# Overview: Flask CLI command groups for bootstrap and ledger inspection.

# backend/saleslens/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (non-destructive).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Sales inspection:
# - python -m flask sales metrics --user-id u-123
#   Print dashboard metrics and weekly cash flow for a user.
# - python -m flask sales audit-reversals --user-id u-123
#   Check reversals against the ledger (orphans, duplicates, unmarked rows).

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .services.dashboard_service import load_dashboard
from .services.ledger_service import StoreError, audit_reversals
from .services.reconciliation_service import ReconciliationInconsistency


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("OK Database tables created")


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

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("OK Database reset complete")


@click.group('sales')
def sales_group():
    """Sales ledger inspection commands."""


@sales_group.command('metrics')
@click.option('--user-id', required=True, help='User whose ledger to read')
@with_appcontext
def metrics(user_id):
    """Print dashboard metrics and cash flow as JSON."""
    try:
        dashboard = load_dashboard(user_id)
    except (StoreError, ReconciliationInconsistency) as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(dashboard, indent=2))


@sales_group.command('audit-reversals')
@click.option('--user-id', required=True, help='User whose reversals to audit')
@with_appcontext
def audit_reversals_command(user_id):
    """Check every reversal of a user against the purchase ledger."""
    try:
        report = audit_reversals(user_id)
    except ReconciliationInconsistency as e:
        click.echo(f"ERROR {e}", err=True)
        click.echo(json.dumps(e.details, indent=2, default=str), err=True)
        raise SystemExit(1)
    except StoreError as e:
        raise click.ClickException(str(e))

    click.echo(f"Sales:     {report['sales']}")
    click.echo(f"Reversals: {report['reversals']}")
    if report["reversed_but_unmarked"]:
        ids = ", ".join(str(i) for i in report["reversed_but_unmarked"])
        click.echo(f"WARN Reversed sales whose row was not zeroed: {ids}")
        raise SystemExit(1)
    click.echo("OK Reversal ledger is consistent")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(sales_group)
