# Overview: Flask CLI command groups for bootstrap, inspection, and demo data.

# backend/storepos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default admin, manager and cashier users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --name "Front Desk" --email desk@storepos.local --password "Password123!" --role CASHIER
#   Create a user (prompts if options are omitted).
#
# Demo data:
# - python -m flask catalog seed-demo
#   Demo categories and products with opening stock; skips SKUs that already exist.

import click
from flask.cli import with_appcontext

from .errors import ConflictError, ValidationError
from .extensions import db
from .models import Category, Product, User
from .models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_MANAGER, ROLES
from .services.auth_service import create_user
from .services.catalog_service import create_category, create_product


DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = [
    ("Administrator", "admin@storepos.local", ROLE_ADMIN),
    ("Store Manager", "manager@storepos.local", ROLE_MANAGER),
    ("Cashier", "cashier@storepos.local", ROLE_CASHIER),
]

DEMO_CATEGORIES = [
    # name, color, sort order
    ("Drinks", "#1890ff", 1),
    ("Food", "#52c41a", 2),
    ("Snacks", "#faad14", 3),
    ("Household", "#f5222d", 4),
]

DEMO_PRODUCTS = [
    # name, sku, price, cost, category, opening stock
    ("Mineral Water 600ml", "DRK001", 20, 10, "Drinks", 100),
    ("Green Tea 500ml", "DRK002", 25, 12, "Drinks", 80),
    ("Black Coffee 250ml", "DRK003", 35, 15, "Drinks", 60),
    ("Salmon Rice Ball", "FD001", 40, 20, "Food", 30),
    ("Sandwich", "FD002", 55, 25, "Food", 25),
    ("Instant Noodles", "SN001", 30, 12, "Snacks", 50),
    ("Potato Chips", "SN002", 45, 18, "Snacks", 40),
    ("Wet Wipes", "DLY001", 35, 15, "Household", 20),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables and the default users.

    Creates:
    - Users: admin@storepos.local, manager@storepos.local, cashier@storepos.local
    - All passwords default to: "Password123!"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing StorePOS...")
    db.create_all()

    for name, email, role in DEFAULT_USERS:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue
        create_user(name=name, email=email, password=DEFAULT_PASSWORD, role=role)
        click.echo(f"PASS Created user: {email} with role '{role}'")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for _, email, _ in DEFAULT_USERS:
        click.echo(f"   {email:<26} / {DEFAULT_PASSWORD}")


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


@click.group('users')
def users_group():
    """User inspection and creation commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<30} {'Role':<10} {'Active'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.name:<20} {user.email:<30} {user.role:<10} {active_str}")

    click.echo("="*80 + "\n")


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLES), default=ROLE_CASHIER, show_default=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """Create a user account."""
    try:
        user = create_user(name=name, email=email, password=password, role=role)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


@click.group('catalog')
def catalog_group():
    """Catalog demo data commands."""


@catalog_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Create demo categories and products with opening stock (IN movements)."""
    categories = {}
    for name, color, sort_order in DEMO_CATEGORIES:
        category = db.session.query(Category).filter_by(name=name).first()
        if category is None:
            category = create_category({"name": name, "color": color, "sortOrder": sort_order})
            click.echo(f"PASS Created category: {name}")
        categories[name] = category

    created = 0
    for name, sku, price, cost, category_name, stock in DEMO_PRODUCTS:
        if db.session.query(Product).filter_by(sku=sku).first():
            click.echo(f"WARN  SKU '{sku}' already exists, skipping...")
            continue
        create_product({
            "name": name,
            "sku": sku,
            "price": price,
            "cost": cost,
            "categoryId": categories[category_name].id,
            "initialStock": stock,
        })
        created += 1

    click.echo(f"PASS Created {created} demo products")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)
