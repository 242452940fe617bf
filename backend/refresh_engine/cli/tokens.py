"""Flask CLI commands for refresh-token maintenance."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from refresh_engine.core.engine import get_session_service

LOGGER = logging.getLogger(__name__)


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh-token maintenance commands."""


@tokens_cli.command("cleanup")
@with_appcontext
def cleanup_command() -> None:
    """Delete refresh-token records whose expiry has passed."""
    removed = get_session_service().cleanup_expired()
    click.echo(f"Deleted {removed} expired refresh token(s).")


@tokens_cli.command("revoke-user")
@click.argument("user_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@with_appcontext
def revoke_user_command(user_id: str, yes: bool) -> None:
    """Revoke every refresh token of USER_ID (signs out all devices)."""
    if not yes:
        click.confirm(f"Revoke all sessions of user {user_id}?", abort=True)
    get_session_service().revoker.revoke_all_for_user(user_id)
    LOGGER.info("Sessions revoked from CLI", extra={"user_id": user_id})
    click.echo(f"Revoked all sessions of user {user_id}.")
