"""
pubsync CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer

from pubsync import __version__
from pubsync.cli import changes, push, status

app = typer.Typer(
    name="pubsync",
    help="Publish a git-tracked content tree and mirror it to remotes",
    no_args_is_help=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for all commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"pubsync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    pubsync - keep published content in step with a git repository.

    Common Workflows:
        pubsync changes             # What changed since the last publish
        pubsync push                # Push and record the published revision
        pubsync status              # Show publish state
    """
    setup_logging(debug)
    ctx.obj = {"debug": debug}


app.command(name="changes")(changes.changes)
app.command(name="push")(push.push)
app.command(name="status")(status.status)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
