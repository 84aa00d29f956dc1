"""
Data models for publish jobs.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pubsync.core.errors import PublishFailure


class PublishMode(str, Enum):
    """Which branches a publish pushes."""

    SINGLE_BRANCH = "single_branch"
    ALL_BRANCHES = "all_branches"


class OutcomeStatus(str, Enum):
    """Lifecycle status of a publish job."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


class PublishTarget(BaseModel):
    """
    Where a publish job pushes to.

    Example:
        >>> PublishTarget.single_branch("main", remote="origin")
        >>> PublishTarget.all_branches()
    """

    model_config = ConfigDict(frozen=True)

    mode: PublishMode
    remote: str | None = Field(default=None, description="Remote name (single-branch mode)")
    branch: str | None = Field(default=None, description="Branch name (single-branch mode)")

    @model_validator(mode="after")
    def _check_names(self) -> PublishTarget:
        if self.mode is PublishMode.SINGLE_BRANCH and not (self.remote and self.branch):
            raise ValueError("single-branch publish requires both remote and branch")
        return self

    @classmethod
    def single_branch(cls, branch: str, remote: str = "origin") -> PublishTarget:
        return cls(mode=PublishMode.SINGLE_BRANCH, remote=remote, branch=branch)

    @classmethod
    def all_branches(cls) -> PublishTarget:
        return cls(mode=PublishMode.ALL_BRANCHES)

    def describe(self) -> str:
        if self.mode is PublishMode.ALL_BRANCHES:
            return "all branches to all remotes"
        return f"{self.branch} to {self.remote}"


class PublishOutcome(BaseModel):
    """Outcome of a publish job: pending, or a terminal success/failure."""

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus = OutcomeStatus.PENDING
    reason: str | None = Field(default=None, description="Diagnostic for failures")
    exit_code: int | None = Field(default=None, description="Process exit status, if known")

    @classmethod
    def pending(cls) -> PublishOutcome:
        return cls()

    @classmethod
    def success(cls, exit_code: int | None = 0) -> PublishOutcome:
        return cls(status=OutcomeStatus.SUCCESS, exit_code=exit_code)

    @classmethod
    def failure(cls, reason: str, exit_code: int | None = None) -> PublishOutcome:
        return cls(status=OutcomeStatus.FAILURE, reason=reason, exit_code=exit_code)

    @property
    def is_terminal(self) -> bool:
        return self.status is not OutcomeStatus.PENDING

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def raise_for_failure(self, output: str = "") -> None:
        """Raise PublishFailure if this outcome is a failure."""
        if self.status is OutcomeStatus.FAILURE:
            raise PublishFailure(self, output)

    def summary(self) -> str:
        if self.status is OutcomeStatus.PENDING:
            return "publish pending"
        if self.succeeded:
            return "publish succeeded"
        return f"publish failed: {self.reason}"
