"""
pubsync CLI - Show content files to publish or retract.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from pubsync.cli.errors import (
    ExitCode,
    print_error,
    print_no_base_revision_error,
    print_not_a_repository_error,
)
from pubsync.core.changeset import ChangeSetResolver
from pubsync.core.config import load_config
from pubsync.core.config.env import load_layered_env
from pubsync.core.errors import RepositoryInvalidError, ResolutionError
from pubsync.core.executor import CommandExecutor
from pubsync.core.publish import PublishStateStore

console = Console()


def changes(
    base: str | None = typer.Argument(
        None,
        help="Base revision (defaults to the last published revision)",
    ),
    project_dir: Path = typer.Option(
        Path("."),
        "--project-dir",
        "-C",
        help="Repository root",
    ),
    relative: bool = typer.Option(
        False,
        "--relative",
        help="Show paths relative to the repository root",
    ),
) -> None:
    """
    Show content files changed between BASE and HEAD.

    Examples:
        pubsync changes              # Since the last successful push
        pubsync changes v1.2         # Since a tag
        pubsync changes HEAD~3 -C site
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env(project_dir=project_dir)
    config = load_config(project_dir)

    if base is None:
        base = PublishStateStore(project_dir).load().last_revision
        if base is None:
            print_no_base_revision_error()
            raise typer.Exit(ExitCode.USER_ERROR)

    resolver = ChangeSetResolver(
        CommandExecutor(config.git.binary, timeout=config.git.command_timeout),
        suffix=config.content.suffix,
        rename_policy=config.content.rename_policy,
    )

    try:
        change_set = resolver.resolve(project_dir, base)
    except ResolutionError as e:
        if isinstance(e.__cause__, RepositoryInvalidError):
            print_not_a_repository_error(str(project_dir))
            raise typer.Exit(ExitCode.USER_ERROR)
        print_error(str(e), solution="git log --oneline  # check the revision exists")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if change_set.is_empty:
        console.print(f"[blue]{change_set.summary()}[/blue]")
        return

    root = project_dir.resolve()
    table = Table(title=f"Content changes since {base}")
    table.add_column("Action", style="cyan")
    table.add_column("Path")

    for path in change_set.to_publish:
        table.add_row("[green]publish[/green]", str(path.relative_to(root) if relative else path))
    for path in change_set.to_retract:
        table.add_row("[red]retract[/red]", str(path.relative_to(root) if relative else path))

    console.print(table)
    console.print(f"[dim]{change_set.summary()}[/dim]")
