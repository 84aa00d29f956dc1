"""
Change set resolution from `git diff --name-status` output.

Each added or modified content file is scheduled for publishing, each
deleted one for retraction. Only paths ending in the content suffix
(compared case-insensitively) are kept; everything else is dropped.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pubsync.core.changeset.models import (
    ChangeSet,
    DiffRecord,
    DiffStatus,
    RenamePolicy,
)
from pubsync.core.errors import (
    CommandFailedError,
    RepositoryInvalidError,
    ResolutionError,
)
from pubsync.core.executor import CommandExecutor

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_SUFFIX = ".org"

# R100<TAB>old<TAB>new / C075<TAB>src<TAB>dst
_TWO_PATH_PATTERN = re.compile(r"^([RC])\d*\t([^\t]*)\t(.*)$")


def content_line_pattern(suffix: str) -> re.Pattern[str]:
    """
    Pattern for A/M/D records whose path carries the content suffix.

    The status letter is matched exactly; only the suffix is
    case-insensitive.
    """
    return re.compile(rf"^(A|M|D)\t(.*(?i:{re.escape(suffix)}))$")


def parse_diff_line(line: str) -> DiffRecord | None:
    """
    Parse one line of name-status output into a DiffRecord.

    Returns None for lines that have no recognizable shape.
    """
    if match := _TWO_PATH_PATTERN.match(line):
        code, old_path, new_path = match.groups()
        return DiffRecord(status=DiffStatus.from_code(code), path=new_path, old_path=old_path)

    code, sep, path = line.partition("\t")
    if not sep or not code or not path:
        return None
    return DiffRecord(status=DiffStatus.from_code(code), path=path)


class ChangeSetResolver:
    """
    Classifies content files touched between a base revision and HEAD.

    Example:
        >>> resolver = ChangeSetResolver(CommandExecutor(), suffix=".org")
        >>> change_set = resolver.resolve(Path("site"), "v1.0")
        >>> change_set.to_publish
        [PosixPath('/abs/site/posts/a.org')]
    """

    HEAD = "HEAD"

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        suffix: str = DEFAULT_CONTENT_SUFFIX,
        rename_policy: RenamePolicy = RenamePolicy.SPLIT,
    ) -> None:
        if not suffix:
            raise ValueError("Content suffix must not be empty")
        self.executor = executor or CommandExecutor()
        self.suffix = suffix
        self.rename_policy = rename_policy
        self._content_pattern = content_line_pattern(suffix)

    def is_content_path(self, path: str) -> bool:
        return path.lower().endswith(self.suffix.lower())

    def check_repository_root(self, repo_dir: Path) -> None:
        """
        Ensure `repo_dir` is the top level of its working tree.

        Diff paths are relative to the top level, so a subdirectory would
        yield paths that do not exist.

        Raises:
            RepositoryInvalidError: If `repo_dir` is not a working tree root.
        """
        output = self.executor.run_sync(repo_dir, ["rev-parse", "--show-toplevel"])
        toplevel = Path(output.strip()).resolve()
        if toplevel != repo_dir:
            raise RepositoryInvalidError(
                f"{repo_dir} is not a repository root (top level is {toplevel})",
                command=self.executor.git_argv(["rev-parse", "--show-toplevel"]),
            )

    def fetch_diff(self, repo_dir: Path, base_revision: str) -> str:
        """
        Raw name-status diff between `base_revision` and HEAD.

        Rename detection is requested explicitly so the output does not
        depend on the user's diff.renames setting.
        """
        return self.executor.run_sync(
            repo_dir,
            [
                "-c",
                "core.quotePath=false",
                "diff",
                "--name-status",
                "--find-renames",
                "--end-of-options",
                base_revision,
                self.HEAD,
            ],
        )

    def resolve(self, repo_dir: Path, base_revision: str) -> ChangeSet:
        """
        Compute the change set between `base_revision` and HEAD.

        Args:
            repo_dir: Repository root.
            base_revision: Any revision reachable for comparison.

        Returns:
            ChangeSet with absolute paths under the resolved `repo_dir`.

        Raises:
            ResolutionError: If the diff could not be retrieved, or `repo_dir`
                is not a repository root.
        """
        repo_dir = repo_dir.resolve()

        try:
            self.check_repository_root(repo_dir)
            diff_text = self.fetch_diff(repo_dir, base_revision)
        except CommandFailedError as e:
            logger.error("Failed to diff %s..%s in %s: %s", base_revision, self.HEAD, repo_dir, e)
            raise ResolutionError(
                f"Could not resolve changes since {base_revision}: {e.stderr or e}",
                base_revision=base_revision,
            ) from e

        return self.build_change_set(repo_dir, base_revision, diff_text)

    def build_change_set(self, repo_dir: Path, base_revision: str, diff_text: str) -> ChangeSet:
        """Classify raw name-status output into a ChangeSet."""
        to_publish: list[Path] = []
        to_retract: list[Path] = []

        for line in diff_text.splitlines():
            if not line:
                continue

            if match := self._content_pattern.match(line):
                code, path = match.groups()
                if code == "D":
                    to_retract.append(repo_dir / path)
                else:
                    to_publish.append(repo_dir / path)
                continue

            record = parse_diff_line(line)
            if record is None:
                logger.debug("Ignoring unparseable diff line: %r", line)
                continue

            if record.status in (DiffStatus.RENAMED, DiffStatus.COPIED):
                self._fold_two_path_record(repo_dir, record, to_publish, to_retract)

        logger.debug(
            "Resolved %d to publish, %d to retract since %s",
            len(to_publish),
            len(to_retract),
            base_revision,
        )

        return ChangeSet(
            base_revision=base_revision,
            head_revision=self.HEAD,
            to_publish=to_publish,
            to_retract=to_retract,
        )

    def _fold_two_path_record(
        self,
        repo_dir: Path,
        record: DiffRecord,
        to_publish: list[Path],
        to_retract: list[Path],
    ) -> None:
        if self.rename_policy is RenamePolicy.IGNORE:
            logger.debug("Dropping %s record for %s", record.status.name, record.path)
            return

        if (
            record.status is DiffStatus.RENAMED
            and record.old_path
            and self.is_content_path(record.old_path)
        ):
            to_retract.append(repo_dir / record.old_path)

        if self.is_content_path(record.path):
            to_publish.append(repo_dir / record.path)


def resolve_change_set(
    repo_dir: Path,
    base_revision: str,
    *,
    suffix: str = DEFAULT_CONTENT_SUFFIX,
    executor: CommandExecutor | None = None,
) -> ChangeSet:
    """Resolve a change set with a default resolver."""
    return ChangeSetResolver(executor, suffix=suffix).resolve(repo_dir, base_revision)
