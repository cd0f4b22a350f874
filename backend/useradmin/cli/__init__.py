"""Command-line interface: the ``useradmin`` console script and Flask CLI commands."""

from __future__ import annotations

import signal
import sys
import threading
from types import FrameType

import click
from flask import Flask, current_app
from flask.cli import with_appcontext

from useradmin.core.extensions import db
from useradmin.core.logger import get_logger

LOGGER = get_logger("cli")


def _create_schema(app: Flask, *, drop: bool) -> None:
    with app.app_context():
        if drop:
            db.drop_all()
        db.create_all()
    LOGGER.info("schema.created drop=%s", drop)


def _ensure_non_production(app: Flask) -> None:
    """Abort destructive commands when running in production."""
    if not app.debug and not app.testing:
        raise click.UsageError("--drop is restricted to non-production environments.")


@click.command("init-db")
@click.option("--drop", is_flag=True, help="Drop existing tables first (non-production only).")
@with_appcontext
def init_db_command(drop: bool) -> None:
    """Create every table known to the models (``flask init-db``)."""
    app = current_app._get_current_object()  # type: ignore[attr-defined]
    if drop:
        _ensure_non_production(app)
    _create_schema(app, drop=drop)
    click.echo("Database schema ready.")


def init_app(app: Flask) -> None:
    """Register application-specific commands on the Flask CLI.

    Parameters
    ----------
    app:
        Flask application instance whose CLI registry receives ``init-db``.
    """
    app.cli.add_command(init_db_command)


# --------------------------------------------------------------------------- #
# Console script
# --------------------------------------------------------------------------- #


@click.group()
def main() -> None:
    """User identity administration backend."""


@main.command("serve")
@click.option("--host", default=None, help="Override HTTP_HOST.")
@click.option("--port", type=int, default=None, help="Override HTTP_PORT.")
def serve_command(host: str | None, port: int | None) -> None:
    """Run the HTTP listener until SIGINT/SIGTERM."""
    from useradmin.server import Server

    stop_event = threading.Event()

    def _stop(signum: int, _frame: FrameType | None) -> None:
        LOGGER.info("signal.received signum=%s", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    server = Server(stop_event=stop_event)
    if host is not None:
        server.http.host = host
    if port is not None:
        server.http.port = port

    report = server.run()
    if not report.ok:
        click.echo(f"Runnables failed: {', '.join(sorted(report.failures))}", err=True)
        sys.exit(1)


@main.command("init-db")
@click.option("--drop", is_flag=True, help="Drop existing tables first (non-production only).")
def init_db_standalone(drop: bool) -> None:
    """Create every table known to the models."""
    from useradmin.factory import create_app

    app = create_app()
    if drop:
        _ensure_non_production(app)
    _create_schema(app, drop=drop)
    click.echo("Database schema ready.")
