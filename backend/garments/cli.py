# Overview: Flask CLI command groups for bootstrap and user administration.

# backend/garments/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (use "flask db upgrade" for migrated deployments).
#
# User inspection/bootstrap:
# - python -m flask users list [--role manager]
#   List users with role and status.
# - python -m flask users create --email admin@garments.local --role admin --status verified
#   Create a user, or update role/status if the email already exists.
# - python -m flask users set-role someone@x.com manager
#   Change a user's role.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.users import VALID_ROLES, VALID_USER_STATUSES
from .repositories import get_repositories


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@click.option('--role', type=click.Choice(VALID_ROLES), default=None, help='Filter by role')
@with_appcontext
def list_users_cli(role):
    users = get_repositories().users.query(role=role).all()
    if not users:
        click.echo("No users found")
        return
    for user in users:
        click.echo(f"{user.id:>5}  {user.email:<40} {user.role:<8} {user.status}")


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--role', type=click.Choice(VALID_ROLES), default='buyer', show_default=True)
@click.option('--status', type=click.Choice(VALID_USER_STATUSES), default='verified', show_default=True)
@click.option('--name', 'display_name', default=None, help='Display name')
@with_appcontext
def create_user_cli(email, role, status, display_name):
    """
    Create a user, or update role/status of an existing one.

    Useful for bootstrapping the first admin, since role changes over the
    API already require an admin.
    """
    repos = get_repositories()
    email = email.strip().lower()

    user = repos.users.get_by_email(email)
    if user:
        user.role = role
        user.status = status
        repos.commit()
        click.echo(f"WARN  User '{email}' already exists; role={role} status={status} applied")
        return

    user = User(email=email, role=role, status=status, display_name=display_name)
    repos.users.add(user)
    repos.commit()
    click.echo(f"PASS Created user: {email} with role '{role}' ({status})")


@users_group.command('set-role')
@click.argument('email')
@click.argument('role', type=click.Choice(VALID_ROLES))
@with_appcontext
def set_role_cli(email, role):
    repos = get_repositories()
    user = repos.users.get_by_email(email)
    if not user:
        click.echo(f"FAIL User '{email}' not found")
        raise SystemExit(1)

    user.role = role
    repos.commit()
    click.echo(f"PASS {user.email} is now '{role}'")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
