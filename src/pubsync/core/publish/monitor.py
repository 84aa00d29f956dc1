"""
Publish monitor: runs one `git push` and infers its outcome from the stream.

The push output arrives in chunks that are not aligned with lines or words,
so every chunk is appended to a cumulative buffer and the failure pattern is
searched over the buffer, re-scanning a small overlap before the new text so
a token split across chunks is still found.

Outcome rules:
- failure token seen before exit -> FAILURE(line containing the token), eagerly
- exit 0, no failure token -> SUCCESS
- non-zero exit, no failure token -> FAILURE("non-zero exit, no diagnostic captured")
"""

from __future__ import annotations

import logging
import re
import shlex
import threading
from pathlib import Path

from pubsync.core.errors import PublishPendingError
from pubsync.core.executor import CommandExecutor, StreamingCommand
from pubsync.core.publish.models import (
    OutcomeStatus,
    PublishMode,
    PublishOutcome,
    PublishTarget,
)

logger = logging.getLogger(__name__)

FAILURE_TOKENS = ("fatal", "error")
FAILURE_PATTERN = re.compile("|".join(re.escape(token) for token in FAILURE_TOKENS))

# Characters of already-scanned text that could begin a token completed by new text.
SCAN_OVERLAP = max(len(token) for token in FAILURE_TOKENS) - 1

NO_DIAGNOSTIC_REASON = "non-zero exit, no diagnostic captured"
CANCELLED_REASON = "cancelled"

# Keep git from prompting for credentials and from translating its messages.
DEFAULT_PUSH_ENV = {
    "GIT_TERMINAL_PROMPT": "0",
    "LC_ALL": "C",
}


def _line_around(buffer: str, start: int, end: int) -> str:
    """The line of `buffer` containing the span [start, end)."""
    line_start = max(buffer.rfind("\n", 0, start), buffer.rfind("\r", 0, start)) + 1
    line_end = len(buffer)
    for sep in ("\n", "\r"):
        pos = buffer.find(sep, end)
        if pos != -1:
            line_end = min(line_end, pos)
    return buffer[line_start:line_end].strip()


class PublishJob:
    """
    One in-flight publish attempt.

    The job owns its output buffer and its outcome slot. `feed` and
    `process_exited` are called by the streaming command's reader thread;
    callers observe the job through `poll`, `wait` and, once terminal,
    `output`.

    The outcome moves from PENDING to a terminal state at most once; after
    that, further output is ignored.
    """

    def __init__(
        self,
        repo_dir: Path,
        target: PublishTarget,
        command: StreamingCommand | None = None,
    ) -> None:
        self.repo_dir = repo_dir
        self.target = target
        self.command = command
        self._buffer = ""
        self._scanned = 0
        self._outcome = PublishOutcome.pending()
        self._exit_code: int | None = None
        self._lock = threading.Lock()
        self._done = threading.Event()

    def __repr__(self) -> str:
        return (
            f"PublishJob(repo_dir='{self.repo_dir}', target={self.target.describe()!r}, "
            f"status={self._outcome.status.value})"
        )

    # ------------------------------------------------------------------
    # Stream callbacks
    # ------------------------------------------------------------------

    def feed(self, chunk: str) -> None:
        """Append an output chunk and check the buffer for a failure token."""
        with self._lock:
            if self._outcome.is_terminal:
                return

            self._buffer += chunk
            scan_from = max(0, self._scanned - SCAN_OVERLAP)
            self._scanned = len(self._buffer)

            match = FAILURE_PATTERN.search(self._buffer, scan_from)
            if match is None:
                return

            reason = _line_around(self._buffer, match.start(), match.end())
            self._finish(PublishOutcome.failure(reason or match.group(0)))

    def process_exited(self, exit_code: int) -> None:
        """Record process exit and settle the outcome if still pending."""
        with self._lock:
            self._exit_code = exit_code
            if self._outcome.is_terminal:
                return

            if exit_code == 0:
                self._finish(PublishOutcome.success(exit_code))
            else:
                self._finish(PublishOutcome.failure(NO_DIAGNOSTIC_REASON, exit_code=exit_code))

    def _finish(self, outcome: PublishOutcome) -> None:
        # Caller holds self._lock.
        self._outcome = outcome
        self._done.set()

        if outcome.succeeded:
            logger.info("Published %s from %s", self.target.describe(), self.repo_dir)
        else:
            logger.warning("Publish of %s failed: %s", self.target.describe(), outcome.reason)

    # ------------------------------------------------------------------
    # Caller API
    # ------------------------------------------------------------------

    def poll(self) -> PublishOutcome:
        """Current outcome, without blocking."""
        with self._lock:
            return self._outcome

    def wait(self, timeout: float | None = None) -> PublishOutcome:
        """Block until the outcome is terminal or `timeout` elapses."""
        self._done.wait(timeout)
        return self.poll()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def exit_code(self) -> int | None:
        """Process exit status, once the process has exited."""
        with self._lock:
            return self._exit_code

    @property
    def output(self) -> str:
        """
        Accumulated output, available once the job is terminal.

        Raises:
            PublishPendingError: If the job has not finished.
        """
        with self._lock:
            if self._outcome.status is OutcomeStatus.PENDING:
                raise PublishPendingError("Publish output is not available while the job is pending")
            return self._buffer

    def cancel(self) -> PublishOutcome:
        """
        Abandon the job: mark it cancelled and stop the process.

        Has no effect on the outcome if the job already finished.
        """
        with self._lock:
            if not self._outcome.is_terminal:
                self._finish(PublishOutcome.failure(CANCELLED_REASON))
            outcome = self._outcome

        if self.command is not None:
            self.command.terminate()
        return outcome


class PublishMonitor:
    """
    Starts publish jobs and exposes their outcomes.

    At most one job should be active per repository; serializing access is
    the caller's responsibility.

    Example:
        >>> monitor = PublishMonitor()
        >>> job = monitor.start_publish(Path("site"), PublishTarget.single_branch("main"))
        >>> outcome = monitor.await_outcome(job)
        >>> if not outcome.succeeded:
        ...     print(job.output)
    """

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        self.executor = executor or CommandExecutor()
        self.env = dict(DEFAULT_PUSH_ENV) if env is None else env

    def build_command(self, target: PublishTarget) -> list[str]:
        """Argv for the push selected by `target`."""
        if target.mode is PublishMode.ALL_BRANCHES:
            git = shlex.quote(self.executor.git_binary)
            return ["sh", "-c", f"{git} remote | xargs -L1 {git} push --all"]

        if target.remote is None or target.branch is None:
            raise ValueError(f"Incomplete single-branch target: {target!r}")
        return self.executor.git_argv(["push", "--set-upstream", target.remote, target.branch])

    def start_publish(self, repo_dir: Path, target: PublishTarget) -> PublishJob:
        """
        Launch a publish job and return immediately.

        Raises:
            RepositoryInvalidError: If `repo_dir` does not exist.
            CommandFailedError: If the push process cannot be spawned.
        """
        repo_dir = repo_dir.resolve()
        argv = self.build_command(target)

        command = self.executor.spawn(repo_dir, argv, env=self.env)
        job = PublishJob(repo_dir, target, command)
        command.add_output_listener(job.feed)
        command.add_exit_listener(job.process_exited)

        logger.info("Publishing %s from %s", target.describe(), repo_dir)
        command.start()
        return job

    def await_outcome(self, job: PublishJob, timeout: float | None = None) -> PublishOutcome:
        """
        Wait for a job's outcome.

        Returns the terminal outcome, or the PENDING outcome if `timeout`
        elapsed first.
        """
        return job.wait(timeout)

    def publish(
        self,
        repo_dir: Path,
        target: PublishTarget,
        timeout: float | None = None,
    ) -> PublishOutcome:
        """
        Run a publish to completion.

        A job still pending after `timeout` seconds is cancelled.
        """
        job = self.start_publish(repo_dir, target)
        outcome = self.await_outcome(job, timeout)
        if not outcome.is_terminal:
            logger.warning("Publish of %s timed out after %ss", target.describe(), timeout)
            outcome = job.cancel()
        return outcome
