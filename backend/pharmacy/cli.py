# Overview: Flask CLI command groups for bootstrap, sales and maintenance.

# backend/pharmacy/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to pharmacy (PowerShell: $env:FLASK_APP="pharmacy").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (no-op for tables that already exist).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed
#   Load the sample medicines, customers and sales (skipped if medicines exist).
#
# Sales:
# - python -m flask sales add --medicine-id 2 --customer-id 1 --quantity 19
#   Record a sale through the admission check.
# - python -m flask sales refund 2
#   Refund a sale and restock its quantity.
#
# Medicines:
# - python -m flask medicines availability 2
#   Print current stock (0 for unknown medicines).
#
# Maintenance:
# - python -m flask maintenance cleanup-expired
#   Purge expired medicines with their sales, alerts and audit entries.

from datetime import date

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Medicine
from .services import customer_service, inventory_service, maintenance_service, sales_service
from .services.errors import PharmacyError


SAMPLE_MEDICINES = [
    # name, quantity, price_cents, expiry_date
    ("Aspirin", 100, 599, date(2030, 12, 31)),
    ("Amoxicillin", 23, 1250, date(2030, 6, 30)),
    ("Paracetamol", 200, 375, date(2031, 3, 15)),
    ("Ibuprofen", 15, 999, date(2023, 1, 1)),  # already expired: sale rejected, purged by cleanup
]

SAMPLE_CUSTOMERS = [
    ("Abebe Bekele", "0997586356"),
    ("Shimelis Sileshi", "0946825462"),
    ("Tsehay Berhan", "0943885462"),
    ("Abeba Desalegn", "0936257684"),
]

SAMPLE_SALES = [
    # medicine index, customer index, quantity (indexes into the lists above)
    (0, 0, 5),
    (1, 1, 8),
    (2, 3, 10),
    (3, 2, 1),
    (1, 0, 9),
]


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Database schema created")


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
    click.echo("BUILD Creating all tables...")
    db.create_all()
    click.echo("PASS Database reset complete")


@system_group.command('seed')
@with_appcontext
def seed():
    """Load sample medicines, customers and sales."""
    if db.session.query(Medicine).count():
        click.echo("WARN Medicines already exist, skipping seed.")
        return

    medicines = [
        inventory_service.add_medicine(name=name, quantity=qty, price_cents=price, expiry_date=expiry)
        for name, qty, price, expiry in SAMPLE_MEDICINES
    ]
    medicine_ids = [m.id for m in medicines]
    click.echo(f"PASS Created {len(medicine_ids)} medicines")

    customer_ids = [
        customer_service.add_customer(name=name, contact=contact).id
        for name, contact in SAMPLE_CUSTOMERS
    ]
    click.echo(f"PASS Created {len(customer_ids)} customers")

    for med_index, cust_index, qty in SAMPLE_SALES:
        try:
            sale = sales_service.add_sale(medicine_ids[med_index], customer_ids[cust_index], qty)
            click.echo(f"PASS Sale {sale.id}: medicine {sale.medicine_id} x{qty} to customer {sale.customer_id}")
        except PharmacyError as e:
            click.echo(f"FAIL Sale of medicine {medicine_ids[med_index]} x{qty} rejected: {e}")


@click.group('sales')
def sales_group():
    """Sale commands."""


@sales_group.command('add')
@click.option('--medicine-id', type=int, required=True, help='Medicine ID')
@click.option('--customer-id', type=int, required=True, help='Customer ID')
@click.option('--quantity', type=int, required=True, help='Units sold')
@with_appcontext
def add_sale_cli(medicine_id, customer_id, quantity):
    """Record a sale."""
    try:
        sale = sales_service.add_sale(medicine_id, customer_id, quantity)
    except PharmacyError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Sale {sale.id} recorded; {inventory_service.check_availability(medicine_id)} units left")


@sales_group.command('refund')
@click.argument('sale_id', type=int)
@with_appcontext
def refund_sale_cli(sale_id):
    """Refund a sale."""
    try:
        snapshot = sales_service.refund_sale(sale_id)
    except PharmacyError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Sale {sale_id} refunded; {snapshot.quantity} units of medicine {snapshot.medicine_id} restocked")


@click.group('medicines')
def medicines_group():
    """Medicine commands."""


@medicines_group.command('availability')
@click.argument('medicine_id', type=int)
@with_appcontext
def availability_cli(medicine_id):
    """Print current stock of a medicine."""
    click.echo(str(inventory_service.check_availability(medicine_id)))


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-expired')
@with_appcontext
def cleanup_expired_cli():
    """Purge expired medicines and their dependent records."""
    try:
        purged = maintenance_service.cleanup_expired()
    except PharmacyError as e:
        raise click.ClickException(f"Cleanup rolled back: {e}")
    click.echo(f"Purged {purged} expired medicines.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(sales_group)
    app.cli.add_command(medicines_group)
    app.cli.add_command(maintenance_group)
