"""
Change set resolution between two repository revisions.

Example:
    >>> from pubsync.core.changeset import resolve_change_set
    >>> cs = resolve_change_set(Path("site"), "abc123", suffix=".org")
    >>> cs.to_publish, cs.to_retract
"""

from pubsync.core.changeset.models import (
    ChangeSet,
    DiffRecord,
    DiffStatus,
    RenamePolicy,
)
from pubsync.core.changeset.resolver import (
    DEFAULT_CONTENT_SUFFIX,
    ChangeSetResolver,
    content_line_pattern,
    parse_diff_line,
    resolve_change_set,
)

__all__ = [
    "ChangeSet",
    "ChangeSetResolver",
    "DEFAULT_CONTENT_SUFFIX",
    "DiffRecord",
    "DiffStatus",
    "RenamePolicy",
    "content_line_pattern",
    "parse_diff_line",
    "resolve_change_set",
]
