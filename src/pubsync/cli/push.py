"""
pubsync CLI - Push local branches to remotes and report the outcome.
"""

from pathlib import Path

import typer
from rich.console import Console

from pubsync.cli.errors import ExitCode, print_error, print_not_a_repository_error
from pubsync.core.config import load_config
from pubsync.core.config.env import load_layered_env
from pubsync.core.errors import CommandFailedError, RepositoryInvalidError
from pubsync.core.executor import CommandExecutor
from pubsync.core.publish import (
    PublishMonitor,
    PublishStateStore,
    PublishTarget,
)

console = Console()


def push(
    remote: str | None = typer.Option(
        None,
        "--remote",
        "-r",
        help="Remote to push to (default from config)",
    ),
    branch: str | None = typer.Option(
        None,
        "--branch",
        "-b",
        help="Branch to push (default from config)",
    ),
    all_branches: bool = typer.Option(
        False,
        "--all",
        help="Push every local branch to every configured remote",
    ),
    project_dir: Path = typer.Option(
        Path("."),
        "--project-dir",
        "-C",
        help="Repository root",
    ),
) -> None:
    """
    Push to the configured remote and report success or the git diagnostic.

    Examples:
        pubsync push                        # Configured branch to configured remote
        pubsync push -r mirror -b drafts    # Explicit target
        pubsync push --all                  # Everything, everywhere
    """
    load_layered_env(project_dir=project_dir)
    config = load_config(project_dir)
    executor = CommandExecutor(config.git.binary, timeout=config.git.command_timeout)

    if all_branches or (config.publish.all_branches and not (remote or branch)):
        target = PublishTarget.all_branches()
    else:
        target = PublishTarget.single_branch(
            branch or config.publish.branch,
            remote=remote or config.publish.remote,
        )

    monitor = PublishMonitor(executor)

    try:
        job = monitor.start_publish(project_dir, target)
    except RepositoryInvalidError:
        print_not_a_repository_error(str(project_dir))
        raise typer.Exit(ExitCode.USER_ERROR)
    except CommandFailedError as e:
        print_error(f"Could not start push: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    try:
        with console.status(f"[blue]Pushing {target.describe()}...[/blue]"):
            outcome = monitor.await_outcome(job, timeout=config.publish.timeout_seconds)
    except KeyboardInterrupt:
        job.cancel()
        console.print("[yellow]Push interrupted[/yellow]")
        raise typer.Exit(ExitCode.SIGINT)

    if not outcome.is_terminal:
        outcome = job.cancel()

    if not outcome.succeeded:
        print_error(
            f"Push of {target.describe()} failed",
            reason=outcome.reason,
            solution="check the remote and branch state, then retry",
        )
        output = job.output.strip()
        if output:
            console.print(output, style="dim", markup=False, highlight=False)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]✓[/green] Pushed {target.describe()}")

    # The pushed branch need not be the one checked out
    published_ref = target.branch or "HEAD"
    try:
        revision = executor.run_sync(
            project_dir, ["rev-parse", "--verify", f"{published_ref}^{{commit}}"]
        ).strip()
    except CommandFailedError as e:
        console.print(f"[yellow]⚠[/yellow]  Could not record published revision: {e}")
        return

    store = PublishStateStore(project_dir)
    state = store.load()
    state.mark_published(revision, remote=target.remote, branch=target.branch)
    store.save(state)
