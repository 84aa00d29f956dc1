"""
Command execution for version-control operations.

Two modes are provided:

- `CommandExecutor.run_sync` runs a git command to completion and returns
  its captured stdout.
- `CommandExecutor.spawn` returns a `StreamingCommand` whose merged
  stdout/stderr is pushed to listeners as decoded text chunks while the
  process runs, followed by a single exit notification.

Chunk boundaries follow whatever the pipe delivers; they are not aligned
to lines.
"""

from __future__ import annotations

import codecs
import logging
import os
import signal
import subprocess
import sys
import threading
from pathlib import Path
from typing import Callable

from pubsync.core.errors import CommandFailedError, RepositoryInvalidError

logger = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == "win32"
IS_UNIX = not IS_WINDOWS

OutputListener = Callable[[str], None]
ExitListener = Callable[[int], None]


class StreamingCommand:
    """
    A subprocess whose output is delivered incrementally.

    Listeners must be attached before `start()`. Output listeners are called
    from a single reader thread, in the order the process produced the data;
    exit listeners are called once, after the last output chunk.

    Example:
        >>> cmd = executor.spawn(Path("."), ["git", "push", "origin", "main"])
        >>> cmd.add_output_listener(print)
        >>> cmd.add_exit_listener(lambda code: print("exit", code))
        >>> cmd.start()
        >>> cmd.wait()
    """

    READ_SIZE = 4096

    def __init__(
        self,
        argv: list[str],
        cwd: Path,
        env: dict[str, str] | None = None,
    ) -> None:
        self.argv = argv
        self.cwd = cwd
        self._env = env
        self._output_listeners: list[OutputListener] = []
        self._exit_listeners: list[ExitListener] = []
        self._process: subprocess.Popen[bytes] | None = None
        self._reader: threading.Thread | None = None
        self._exit_code: int | None = None

    @property
    def pid(self) -> int | None:
        """PID of the running process, or None before start."""
        return self._process.pid if self._process is not None else None

    @property
    def exit_code(self) -> int | None:
        """Exit status once the process has finished and output is drained."""
        return self._exit_code

    def add_output_listener(self, listener: OutputListener) -> None:
        self._output_listeners.append(listener)

    def add_exit_listener(self, listener: ExitListener) -> None:
        self._exit_listeners.append(listener)

    def start(self) -> None:
        """
        Launch the process and begin pumping its output.

        Raises:
            RepositoryInvalidError: If the working directory does not exist.
            CommandFailedError: If the process cannot be spawned.
            RuntimeError: If the command was already started.
        """
        if self._process is not None:
            raise RuntimeError(f"Command already started: {' '.join(self.argv)}")

        if not self.cwd.is_dir():
            raise RepositoryInvalidError(
                f"Working directory does not exist: {self.cwd}",
                command=self.argv,
            )

        process_env = None
        if self._env is not None:
            process_env = os.environ.copy()
            process_env.update(self._env)

        logger.debug("Spawning streaming command: %s", " ".join(self.argv))

        try:
            self._process = subprocess.Popen(
                self.argv,
                cwd=self.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=process_env,
                start_new_session=IS_UNIX,
            )
        except FileNotFoundError as e:
            raise CommandFailedError(
                f"{self.argv[0]} not found in PATH",
                command=self.argv,
            ) from e
        except OSError as e:
            raise CommandFailedError(
                f"Failed to spawn {' '.join(self.argv)}: {e}",
                command=self.argv,
            ) from e

        self._reader = threading.Thread(
            target=self._pump,
            name=f"stream-{self._process.pid}",
            daemon=True,
        )
        self._reader.start()

    def _pump(self) -> None:
        process = self._process
        if process is None or process.stdout is None:
            return

        # Incremental decoding keeps multibyte characters intact across reads.
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        stream = process.stdout
        try:
            while True:
                data = stream.read1(self.READ_SIZE)
                if not data:
                    break
                text = decoder.decode(data)
                if text:
                    self._emit_output(text)

            tail = decoder.decode(b"", final=True)
            if tail:
                self._emit_output(tail)
        finally:
            stream.close()
            self._exit_code = process.wait()
            logger.debug("Command exited with %d: %s", self._exit_code, " ".join(self.argv))
            for listener in self._exit_listeners:
                try:
                    listener(self._exit_code)
                except Exception:
                    logger.exception("Exit listener failed for %s", " ".join(self.argv))

    def _emit_output(self, chunk: str) -> None:
        for listener in self._output_listeners:
            try:
                listener(chunk)
            except Exception:
                logger.exception("Output listener failed for %s", " ".join(self.argv))

    def is_running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def wait(self, timeout: float | None = None) -> int | None:
        """
        Wait until the process has exited and all output was delivered.

        Returns:
            The exit code, or None if the timeout elapsed first.
        """
        if self._reader is None:
            return self._exit_code
        self._reader.join(timeout)
        if self._reader.is_alive():
            return None
        return self._exit_code

    def terminate(self, grace_period: float = 2.0) -> None:
        """
        Stop the process, escalating from SIGTERM to SIGKILL.

        The whole process group is signalled on Unix so that children of a
        shell pipeline are stopped as well.
        """
        process = self._process
        if process is None or process.poll() is not None:
            return

        logger.debug("Terminating process %d", process.pid)
        self._signal(process, signal.SIGTERM)
        try:
            process.wait(timeout=grace_period)
            return
        except subprocess.TimeoutExpired:
            logger.debug("Process %d did not terminate gracefully, force killing", process.pid)

        self._signal(process, signal.SIGKILL if IS_UNIX else signal.SIGTERM)
        try:
            process.wait(timeout=grace_period)
        except subprocess.TimeoutExpired:
            logger.warning("Process %d could not be killed", process.pid)

    @staticmethod
    def _signal(process: subprocess.Popen[bytes], sig: int) -> None:
        try:
            if IS_UNIX:
                os.killpg(os.getpgid(process.pid), sig)
            elif sig == signal.SIGTERM:
                process.terminate()
            else:
                process.kill()
        except (ProcessLookupError, OSError) as e:
            # Process may have already terminated
            logger.debug("Signal %d to process %d failed: %s", sig, process.pid, e)


class CommandExecutor:
    """
    Runs git commands in a given working directory.

    Example:
        >>> executor = CommandExecutor()
        >>> head = executor.run_sync(Path("."), ["rev-parse", "HEAD"]).strip()
    """

    def __init__(self, git_binary: str = "git", timeout: float = 60.0) -> None:
        self.git_binary = git_binary
        self.timeout = timeout

    def git_argv(self, args: list[str]) -> list[str]:
        """Full argv for a git subcommand."""
        return [self.git_binary] + args

    def run_sync(
        self,
        cwd: Path,
        args: list[str],
        *,
        input_data: str | None = None,
    ) -> str:
        """
        Run a git command to completion and return its complete stdout.

        Args:
            cwd: Working directory (the repository).
            args: Git command arguments (without the "git" prefix).
            input_data: Optional stdin data.

        Returns:
            Captured stdout, unmodified.

        Raises:
            RepositoryInvalidError: If `cwd` is missing or not inside a repository.
            CommandFailedError: On non-zero exit, timeout, or missing git binary.
        """
        cmd = self.git_argv(args)

        if not cwd.is_dir():
            raise RepositoryInvalidError(f"Not a directory: {cwd}", command=cmd)

        logger.debug("Running git command: %s", " ".join(cmd))

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                input=input_data,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandFailedError(f"Git command timed out: {' '.join(cmd)}", command=cmd) from e
        except FileNotFoundError as e:
            raise CommandFailedError(f"{self.git_binary} not found in PATH", command=cmd) from e

        if result.returncode != 0:
            stderr = result.stderr.strip() if result.stderr else ""
            if "not a git repository" in stderr.lower():
                raise RepositoryInvalidError(
                    f"Not a git repository: {cwd}",
                    command=cmd,
                    stderr=stderr,
                    exit_code=result.returncode,
                )
            raise CommandFailedError(
                f"Git command failed: {' '.join(cmd)}",
                command=cmd,
                stderr=stderr,
                exit_code=result.returncode,
            )

        return result.stdout or ""

    def spawn(
        self,
        cwd: Path,
        argv: list[str],
        env: dict[str, str] | None = None,
    ) -> StreamingCommand:
        """
        Prepare a streaming command; call `start()` after attaching listeners.

        Args:
            cwd: Working directory, fixed for the lifetime of the process.
            argv: Full argv (not prefixed with git).
            env: Extra environment variables merged over os.environ.
        """
        return StreamingCommand(argv, cwd, env=env)
