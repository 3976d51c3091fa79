# Overview: Flask CLI command groups for database bootstrap and stock/planning inspection.

# backend/brewplan/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent; migrations are preferred in production).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Inspection:
# - python -m flask inventory positions [--shortfall-only]
#   On hand / allocated / available / on order / projected per item.
# - python -m flask planning materials
#   Ingredient needs of planned batches and the resulting shortfall.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services.inventory_service import PositionCalculator
from .services.planning_service import MaterialsPlanner


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    click.echo("BUILD  Creating missing tables...")
    db.create_all()
    click.echo("PASS Database initialized.")


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

    click.echo("PASS Database reset complete.")


@click.group('inventory')
def inventory_group():
    """Inventory inspection commands."""


@inventory_group.command('positions')
@click.option('--shortfall-only', is_flag=True, help='Only items with negative available stock')
@with_appcontext
def list_positions(shortfall_only):
    """List the stock position of every active inventory item."""
    rows = PositionCalculator(db.session).get_position_all()
    if shortfall_only:
        rows = [r for r in rows if r["quantity_available"] < 0]

    if not rows:
        click.echo("No inventory items found.")
        return

    click.echo("\n" + "="*104)
    click.echo(
        f"{'ID':<5} {'Item':<30} {'Unit':<6} {'On hand':>10} {'Allocated':>10} "
        f"{'Available':>10} {'On order':>10} {'Projected':>10}"
    )
    click.echo("="*104)

    for row in rows:
        click.echo(
            f"{row['id']:<5} {row['name'][:30]:<30} {row['unit']:<6} "
            f"{row['quantity_on_hand']:>10.2f} {row['quantity_allocated']:>10.2f} "
            f"{row['quantity_available']:>10.2f} {row['quantity_on_order']:>10.2f} "
            f"{row['quantity_projected']:>10.2f}"
        )

    click.echo("="*104 + "\n")


@click.group('planning')
def planning_group():
    """Production planning commands."""


@planning_group.command('materials')
@with_appcontext
def materials_requirements():
    """Ingredient requirements of planned batches, flagging shortfalls."""
    rows = MaterialsPlanner(db.session).get_materials_requirements()

    if not rows:
        click.echo("No planned batches need ingredients.")
        return

    click.echo("\n" + "="*92)
    click.echo(
        f"{'Item':<30} {'Unit':<6} {'Needed':>10} {'Available':>10} "
        f"{'On order':>10} {'Shortfall':>10}  Status"
    )
    click.echo("="*92)

    for row in rows:
        status = "SHORT" if row["shortfall"] > 0 else "OK"
        click.echo(
            f"{row['inventory_item_name'][:30]:<30} {row['unit']:<6} "
            f"{row['quantity_needed']:>10.2f} {row['quantity_available']:>10.2f} "
            f"{row['quantity_on_order']:>10.2f} {row['shortfall']:>10.2f}  {status}"
        )

    click.echo("="*92 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(inventory_group)
    app.cli.add_command(planning_group)
