# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/bakery_pos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to bakery_pos (PowerShell: $env:FLASK_APP="bakery_pos").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default staff accounts.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Staff accounts:
# - python -m flask users list
# - python -m flask users create --email thu@binhminh.local --full-name "Thu" --role cashier
#
# Catalog:
# - python -m flask catalog seed
#   Insert the starter menu when the products table is empty.
#
# Debt ledger:
# - python -m flask debts audit [--fix]
#   Compare each customer's cached balance with its ledger sum.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --older-than-days 30

import click
from flask.cli import with_appcontext

from .datastore import get_store
from .extensions import db
from .models import Product, Profile, UserAccount
from .models.auth import VALID_ROLES
from .permissions import get_permissions_for_role
from .services import debt_service, session_service
from .services.auth_service import PasswordValidationError, create_account

DEFAULT_PASSWORD = "BinhMinh2024"

DEFAULT_ACCOUNTS = (
    ("admin@binhminh.local", "Quản lý", "admin"),
    ("cashier@binhminh.local", "Thu ngân", "cashier"),
    ("baker@binhminh.local", "Thợ bánh", "baker"),
    ("sales@binhminh.local", "Nhân viên Sales", "sales"),
)

STARTER_MENU = (
    # name, category, price, wholesale_price, stock (None = unlimited)
    ("Bánh mì thịt", "Bánh mì", 20000, 17000, 50),
    ("Bánh mì trứng", "Bánh mì", 15000, 12000, 50),
    ("Bánh mì không", "Bánh mì", 5000, 4000, 200),
    ("Bánh bao nhân thịt", "Bánh bao", 18000, 15000, 40),
    ("Bánh bao chay", "Bánh bao", 12000, 10000, 30),
    ("Bánh bông lan", "Bánh ngọt", 25000, 21000, 20),
    ("Bánh su kem", "Bánh ngọt", 8000, 6500, 60),
    ("Chà bông", "Thực phẩm", 45000, 40000, 15),
    ("Cà phê sữa", "Đồ uống", 20000, None, None),
    ("Trà tắc", "Đồ uống", 10000, None, None),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--password', default=DEFAULT_PASSWORD, help='Password for the default accounts')
@with_appcontext
def init_system(password):
    """
    Create tables and the default staff accounts (admin, cashier, baker, sales).

    Safe to re-run: existing accounts are skipped.
    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing bakery POS...")
    db.create_all()
    click.echo("PASS Tables ready")

    for email, full_name, role in DEFAULT_ACCOUNTS:
        if db.session.query(UserAccount).filter_by(email=email).first():
            click.echo(f"WARN  Account '{email}' already exists, skipping...")
            continue
        try:
            create_account(email, password, full_name=full_name, role=role)
        except (PasswordValidationError, ValueError) as e:
            db.session.rollback()
            click.echo(f"FAIL Could not create '{email}': {e}")
            continue
        click.echo(f"PASS Created {role}: {email}")

    click.echo("\nDONE Default credentials (CHANGE IN PRODUCTION!):")
    for email, _, role in DEFAULT_ACCOUNTS:
        click.echo(f"   {role:<8} -> {email} / {password}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DANGER: Drop all tables and recreate schema."""
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    click.echo("BUILD  Creating all tables...")
    db.create_all()
    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


# =============================================================================
# STAFF ACCOUNTS
# =============================================================================

@click.group('users')
def users_group():
    """Staff account inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    accounts = db.session.query(UserAccount).order_by(UserAccount.id.asc()).all()
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo(f"{'ID':<5} {'Email':<32} {'Name':<24} {'Role':<8} {'Active'}")
    for account in accounts:
        profile = db.session.get(Profile, account.id)
        name = profile.full_name if profile else "(no profile)"
        role = profile.role if profile else "-"
        click.echo(f"{account.id:<5} {account.email:<32} {name:<24} {role:<8} {'Yes' if account.is_active else 'No'}")


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--full-name', prompt=True, help='Name shown on orders and shifts')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(VALID_ROLES), prompt=True, help='Role')
@with_appcontext
def create_user_cli(email, full_name, password, role):
    """
    Create a staff account and its profile.

    Password must be 8+ chars with at least one letter and one digit.
    """
    try:
        account = create_account(email, password, full_name=full_name, role=role)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e}")
        return
    except ValueError as e:
        click.echo(f"FAIL Failed to create account: {e}")
        return

    click.echo(f"PASS Created account {account.id}: {account.email} ({role})")
    click.echo(f"     Permissions: {', '.join(sorted(get_permissions_for_role(role)))}")


# =============================================================================
# CATALOG
# =============================================================================

@click.group('catalog')
def catalog_group():
    """Product catalog commands."""


@catalog_group.command('seed')
@with_appcontext
def seed_catalog():
    """Insert the starter menu (only when there are no products yet)."""
    if db.session.query(Product).count():
        click.echo("WARN  Products already exist, skipping seed")
        return

    for name, category, price, wholesale_price, stock in STARTER_MENU:
        db.session.add(Product(
            name=name,
            category=category,
            price=price,
            wholesale_price=wholesale_price,
            stock=stock,
        ))
    db.session.commit()
    click.echo(f"PASS Seeded {len(STARTER_MENU)} products")


# =============================================================================
# DEBT LEDGER
# =============================================================================

@click.group('debts')
def debts_group():
    """Debt ledger inspection and repair."""


@debts_group.command('audit')
@click.option('--fix', is_flag=True, help='Rewrite drifted balances from the ledger sum')
@with_appcontext
def audit_debts(fix):
    """
    Compare each customer's stored balance with the sum of its ledger.

    The ledger is the source of truth; --fix rewrites the cached balance and
    its status to match.
    """
    store = get_store()
    customers = debt_service.list_customers(store)
    drifted = 0
    for customer in customers:
        audit = debt_service.audit_balance(store, customer.id)
        if audit.ok:
            continue
        drifted += 1
        click.echo(
            f"DRIFT {customer.id:<5} {customer.name:<24} "
            f"stored={audit.stored_balance} ledger={audit.ledger_balance} drift={audit.drift}"
        )
        if fix:
            store.update("customer_debts", {"id": customer.id}, {
                "amount": audit.ledger_balance,
                "status": debt_service.next_status(customer.status, audit.ledger_balance),
            })
            click.echo("      FIXED")

    click.echo(f"PASS Audited {len(customers)} customers, {drifted} drifted")


# =============================================================================
# MAINTENANCE
# =============================================================================

@click.group('maintenance')
def maintenance_group():
    """Housekeeping commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--older-than-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions(older_than_days):
    """Delete expired or revoked session tokens."""
    deleted = session_service.cleanup_expired_sessions(older_than_days=older_than_days)
    click.echo(f"PASS Deleted {deleted} sessions")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(debts_group)
    app.cli.add_command(maintenance_group)
