# Overview: Flask CLI command groups for bootstrap, inspection, imports and resets.

# backend/shopbill/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to shopbill (PowerShell: $env:FLASK_APP="shopbill").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create tables if missing and make sure the permanent super admin exists.
# - python -m flask system stats
#   Row counts per table.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system wipe --yes [--include-customers]
#   Delete bills (and optionally customers); catalog, stock and users stay.
# - python -m flask system reset-all --yes
#   Delete everything except super_admin accounts.
#
# Products:
# - python -m flask products import products.csv
#   Import a CSV/XLSX file; all rows or none are inserted.
# - python -m flask products low-stock [--threshold 10]
#   List products at or below the threshold (negative = over-sold).

import click
from flask import current_app
from flask.cli import with_appcontext

from .engine import get_engine
from .errors import ShopBillError
from .extensions import db
from .services import import_service, maintenance_service, user_service
from .money import from_cents


def _super_admin_defaults() -> dict:
    return {
        "username": current_app.config["DEFAULT_SUPER_ADMIN_USERNAME"],
        "phone": current_app.config["DEFAULT_SUPER_ADMIN_PHONE"],
        "pin": current_app.config["DEFAULT_SUPER_ADMIN_PIN"],
    }


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Idempotent bootstrap: tables plus the permanent super admin.

    SECURITY: Change the default PIN immediately on a real device!
    """
    click.echo("START Initializing shop database...")
    db.create_all()
    user = user_service.ensure_super_admin(db.session, **_super_admin_defaults())
    click.echo(f"PASS Super admin: {user.username} (ID: {user.id})")


@system_group.command('stats')
@with_appcontext
def stats():
    """Row counts per table."""
    for table, count in maintenance_service.database_stats(db.session).items():
        click.echo(f"{table:<12} {count}")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('wipe')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@click.option('--include-customers', is_flag=True, help='Also delete customers')
@with_appcontext
def wipe_data(yes, include_customers):
    """Clear sales history while keeping catalog, stock and users."""
    if not yes:
        click.confirm("WARN This will DELETE all bills. Are you sure?", abort=True)
    deleted = maintenance_service.reset_transactional_data(db.session, include_customers=include_customers)
    for table, count in deleted.items():
        click.echo(f"DELETE {table}: {count}")
    click.echo("PASS Wipe complete.")


@system_group.command('reset-all')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_all(yes):
    """Delete all data except super_admin accounts."""
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA except super admins. Are you sure?", abort=True)
    deleted = maintenance_service.reset_all(db.session, super_admin=_super_admin_defaults())
    for table, count in deleted.items():
        click.echo(f"DELETE {table}: {count}")
    click.echo("PASS Reset complete.")


@click.group('products')
def products_group():
    """Catalog import and inspection."""


@products_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_products(path):
    """Import products from a CSV or XLSX file (all rows or none)."""
    try:
        with open(path, "rb") as stream:
            rows = import_service.read_rows(stream, path)
        products = get_engine().catalog.bulk_insert(import_service.rows_to_payloads(rows))
    except ShopBillError as e:
        raise click.ClickException(f"{e} {e.details or ''}".strip())
    click.echo(f"PASS Imported {len(products)} products.")


@products_group.command('low-stock')
@click.option('--threshold', type=int, default=None, help='Defaults to LOW_STOCK_THRESHOLD')
@with_appcontext
def low_stock(threshold):
    """List products at or below the threshold."""
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    products = get_engine().reports.low_stock(threshold)
    if not products:
        click.echo("No products at or below threshold.")
        return
    for p in products:
        flag = " OVERSOLD" if p.stock < 0 else ""
        click.echo(f"{p.id:>5} {p.product_code or '-':<8} {p.name_en:<30} {p.stock:>6} {p.unit} @ {from_cents(p.price_cents)}{flag}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(products_group)
