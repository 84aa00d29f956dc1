"""
pubsync - Content publishing over git

Resolves which content files changed between revisions and pushes
local branches to remotes, judging the push from its streamed output.
"""

__version__ = "0.1.0"

# Re-export core API for convenience
from pubsync.core.changeset import ChangeSet, ChangeSetResolver, resolve_change_set
from pubsync.core.publish import PublishJob, PublishMonitor, PublishOutcome, PublishTarget

__all__ = [
    "ChangeSet",
    "ChangeSetResolver",
    "PublishJob",
    "PublishMonitor",
    "PublishOutcome",
    "PublishTarget",
    "resolve_change_set",
    "__version__",
]
