"""
Persistent publish state stored in `.pubsync/state.json`.

Records the revision that was last published successfully, so the next
change set can be computed from it.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PublishState(BaseModel):
    """
    Publish bookkeeping for one repository.

    Example:
        >>> state = PublishState(last_revision="abc123", remote="origin", branch="main")
        >>> state.model_dump_json(indent=2)
    """

    last_revision: str | None = Field(
        default=None,
        description="HEAD revision at the last successful publish",
    )

    last_published_at: datetime | None = Field(
        default=None,
        description="Timestamp of the last successful publish",
    )

    remote: str | None = Field(
        default=None,
        description="Remote of the last publish (None for all-branches mode)",
    )

    branch: str | None = Field(
        default=None,
        description="Branch of the last publish (None for all-branches mode)",
    )

    def mark_published(
        self,
        revision: str,
        remote: str | None = None,
        branch: str | None = None,
    ) -> None:
        """Update state after a successful publish."""
        self.last_revision = revision
        self.last_published_at = datetime.now()
        self.remote = remote
        self.branch = branch


class PublishStateStore:
    """Loads and atomically saves PublishState for a project directory."""

    STATE_FILE = ".pubsync/state.json"

    def __init__(self, project_dir: Path) -> None:
        self.project_dir = project_dir.resolve()

    @property
    def path(self) -> Path:
        return self.project_dir / self.STATE_FILE

    def load(self) -> PublishState:
        """Load state from disk, or return an empty state."""
        if self.path.exists():
            try:
                return PublishState.model_validate_json(self.path.read_text())
            except (json.JSONDecodeError, ValueError) as e:
                logger.warning("Failed to load publish state from %s: %s", self.path, e)
        return PublishState()

    def save(self, state: PublishState) -> None:
        """Save state atomically via a temp file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = self.path.with_suffix(".tmp")
        try:
            temp_path.write_text(state.model_dump_json(indent=2))
            temp_path.replace(self.path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

        logger.debug("Saved publish state to %s", self.path)
