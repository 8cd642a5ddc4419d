# Overview: Flask CLI command groups for bootstrap and admin accounts.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create all tables (idempotent). Prefer `flask db upgrade` once migrations are in use.
#
# Admin accounts:
# - python -m flask admins create --name "Owner" --email owner@redastore.lk --password "Password123" --role OWNER
#   Create an admin account (prompts if options are omitted).
# - python -m flask admins list
#   List admin accounts.

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import StorefrontError
from .models import Admin
from .models.auth import ROLES
from .services.auth_service import create_admin


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all database tables that do not exist yet."""
    click.echo("START Initializing storefront database...")
    db.create_all()
    click.echo(f"PASS Tables ready: {', '.join(sorted(db.metadata.tables))}")


@click.group('admins')
def admins_group():
    """Admin account commands."""


@admins_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@with_appcontext
def create_admin_cli(name, email, password, role):
    """
    Create a new admin account.

    Password must be at least 8 characters with a letter and a digit.
    """
    try:
        admin = create_admin(name=name, email=email, password=password, role=role)
    except StorefrontError as e:
        click.echo(f"FAIL {e.message}")
        raise SystemExit(1)

    click.echo(f"PASS Created admin {admin.email} (ID: {admin.id}, Role: {admin.role})")


@admins_group.command('list')
@with_appcontext
def list_admins():
    """List all admin accounts."""
    admins = db.session.query(Admin).order_by(Admin.id.asc()).all()

    if not admins:
        click.echo("No admins found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Role'}")
    click.echo("="*80)

    for admin in admins:
        click.echo(f"{admin.id:<5} {admin.name:<25} {admin.email:<35} {admin.role}")

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(admins_group)
