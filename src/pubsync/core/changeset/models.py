"""
Data models for change set resolution.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class DiffStatus(str, Enum):
    """Status of one name-status diff record."""

    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"
    OTHER = "?"

    @classmethod
    def from_code(cls, code: str) -> DiffStatus:
        """Map a git status code (e.g. "M", "R100") to a DiffStatus."""
        try:
            return cls(code[:1])
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class DiffRecord:
    """One parsed line of `git diff --name-status` output."""

    status: DiffStatus
    path: str
    old_path: str | None = None


class RenamePolicy(str, Enum):
    """How rename and copy records are folded into a change set."""

    SPLIT = "split"
    """Rename = retract old path + publish new path; copy = publish new path."""

    IGNORE = "ignore"
    """Drop rename and copy records entirely (legacy behaviour)."""


class ChangeSet(BaseModel):
    """
    Content files to republish or retract between two revisions.

    Both lists hold absolute paths in the order the diff emitted them.

    Example:
        >>> cs = resolver.resolve(Path("site"), "abc123")
        >>> for path in cs.to_publish:
        ...     print("publish", path)
    """

    model_config = ConfigDict(frozen=True)

    base_revision: str = Field(description="Revision the diff starts from")
    head_revision: str = Field(default="HEAD", description="Revision the diff ends at")
    to_publish: list[Path] = Field(
        default_factory=list,
        description="Added or modified content files",
    )
    to_retract: list[Path] = Field(
        default_factory=list,
        description="Deleted content files",
    )

    @property
    def is_empty(self) -> bool:
        return not self.to_publish and not self.to_retract

    @property
    def total(self) -> int:
        return len(self.to_publish) + len(self.to_retract)

    def summary(self) -> str:
        """Generate a human-readable summary."""
        if self.is_empty:
            return f"No content changes since {self.base_revision}"
        return (
            f"{len(self.to_publish)} to publish, {len(self.to_retract)} to retract "
            f"since {self.base_revision}"
        )
