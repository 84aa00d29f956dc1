"""
pubsync CLI - Show publish state and effective configuration.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from pubsync.core.config import load_config
from pubsync.core.config.env import load_layered_env
from pubsync.core.publish import PublishStateStore

console = Console()


def status(
    project_dir: Path = typer.Option(
        Path("."),
        "--project-dir",
        "-C",
        help="Repository root",
    ),
) -> None:
    """
    Show the last published revision and the publish settings in effect.
    """
    load_layered_env(project_dir=project_dir)
    config = load_config(project_dir)
    state = PublishStateStore(project_dir).load()

    table = Table(title="Publish Status", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    if state.last_revision:
        table.add_row("Last revision", state.last_revision[:12])
    else:
        table.add_row("Last revision", "[dim]Never published[/dim]")

    if state.last_published_at:
        table.add_row("Last published", state.last_published_at.strftime("%Y-%m-%d %H:%M:%S"))

    if config.publish.all_branches:
        table.add_row("Target", "all branches, all remotes")
    else:
        table.add_row("Target", f"{config.publish.remote}/{config.publish.branch}")

    table.add_row("Content suffix", config.content.suffix)
    table.add_row("Renames", config.content.rename_policy.value)

    console.print(table)
