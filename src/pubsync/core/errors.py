"""
Error taxonomy for pubsync.

Command-level failures come from the executor; resolution and publish
errors wrap them with the context of the operation that failed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pubsync.core.publish.models import PublishOutcome


class PubsyncError(Exception):
    """Base exception for all pubsync errors."""


class CommandFailedError(PubsyncError):
    """A version-control command exited abnormally."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        stderr: str = "",
        exit_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.stderr = stderr
        self.exit_code = exit_code


class RepositoryInvalidError(CommandFailedError):
    """The working directory is not a recognizable repository root."""


class ResolutionError(PubsyncError):
    """Retrieving the diff for a change set failed."""

    def __init__(self, message: str, base_revision: str) -> None:
        super().__init__(message)
        self.base_revision = base_revision


class PublishFailure(PubsyncError):
    """A publish job reached a failed terminal outcome."""

    def __init__(self, outcome: PublishOutcome, output: str = "") -> None:
        super().__init__(f"Publish failed: {outcome.reason}")
        self.outcome = outcome
        self.output = output


class PublishPendingError(PubsyncError):
    """Publish job state was read before the job finished."""
