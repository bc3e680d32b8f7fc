# Overview: Flask CLI command groups for bootstrap, inspection, and device sync.

# backend/ndizi/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Account inspection/bootstrap:
# - python -m flask users list
#   List all accounts with their last push time.
# - python -m flask users create --email owner@shop.in --password secret --store-name "Corner Shop" --owner-name "A. Owner"
#   Create an account (prompts if options are omitted).
#
# Device sync (uses SYNC_API_URL and LOCAL_DB_PATH):
# - python -m flask device login --email owner@shop.in --password secret
#   Sign in and keep the account in the local store.
# - python -m flask device push|pull|sync --email owner@shop.in [--store-id ...]
#   Push local records, pull cloud changes, or both.
# - python -m flask device alerts
#   Print low-stock and expiry alerts from the local store.

import click
from flask import current_app
from flask.cli import with_appcontext

from .client import alerts as alert_ops
from .client.local_store import LocalStore
from .client.sync import SyncClient, SyncError
from .extensions import db
from .models import User
from .services.auth_service import register_user
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create every table that does not exist yet."""
    db.create_all()
    click.echo("PASS Database schema ready")


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
    db.create_all()
    click.echo("PASS Schema recreated")


@click.group('users')
def users_group():
    """Account inspection and bootstrap."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all accounts."""
    users = db.session.query(User).order_by(User.created_at.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<38} {'Email':<30} {'Plan':<8} {'Last push'}")
    click.echo("="*100)

    for user in users:
        last_sync = user.to_dict()["lastSyncAt"] or "never"
        click.echo(f"{user.id:<38} {user.email:<30} {user.plan:<8} {last_sync}")


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--store-name', prompt=True)
@click.option('--owner-name', prompt=True)
@with_appcontext
def create_user_command(email, password, store_name, owner_name):
    """Create an account."""
    try:
        user = register_user(
            email=email,
            password=password,
            store_name=store_name,
            owner_name=owner_name,
        )
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user {user.email} (ID: {user.id})")


@click.group('device')
def device_group():
    """Run the device sync client against SYNC_API_URL."""


def _device_client() -> SyncClient:
    store = LocalStore(current_app.config["LOCAL_DB_PATH"])
    store.init()
    return SyncClient(store, api_url=current_app.config["SYNC_API_URL"])


def _local_user(client: SyncClient, email: str) -> dict:
    user = client.store.get_user(email)
    if user is None:
        click.echo(f"FAIL No local account for {email}; run 'flask device login' first")
        raise SystemExit(1)
    return user


def _report(result) -> None:
    prefix = "PASS" if result.success else "FAIL"
    click.echo(f"{prefix} {result.message}")
    if not result.success:
        raise SystemExit(1)


@device_group.command('login')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True)
@with_appcontext
def device_login(email, password):
    client = _device_client()
    try:
        user = client.login(email, password)
    except SyncError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    finally:
        client.close()
        client.store.close()
    click.echo(f"PASS Signed in as {user['email']}")


@device_group.command('push')
@click.option('--email', required=True)
@click.option('--store-id', default=None)
@with_appcontext
def device_push(email, store_id):
    client = _device_client()
    try:
        _report(client.push(_local_user(client, email), store_id))
    finally:
        client.close()
        client.store.close()


@device_group.command('pull')
@click.option('--email', required=True)
@click.option('--store-id', default=None)
@with_appcontext
def device_pull(email, store_id):
    client = _device_client()
    try:
        _report(client.pull(_local_user(client, email), store_id))
    finally:
        client.close()
        client.store.close()


@device_group.command('sync')
@click.option('--email', required=True)
@click.option('--store-id', default=None)
@with_appcontext
def device_sync(email, store_id):
    client = _device_client()
    try:
        _report(client.bidirectional_sync(_local_user(client, email), store_id))
    finally:
        client.close()
        client.store.close()


@device_group.command('alerts')
@with_appcontext
def device_alerts():
    """Print stock alerts for the local inventory."""
    store = LocalStore(current_app.config["LOCAL_DB_PATH"])
    store.init()
    try:
        alerts = alert_ops.build_alerts(store.get_products())
    finally:
        store.close()

    if not alerts:
        click.echo("No alerts.")
        return
    for alert in alerts:
        click.echo(f"{alert.priority.upper():<7} {alert.type:<10} {alert.message}")
    summary = alert_ops.summarize_alerts(alerts)
    click.echo(f"\n{summary['totalAlerts']} alerts ({summary['highPriority']} high priority)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(device_group)
