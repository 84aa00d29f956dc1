"""
Publishing local branch state to remotes.

A publish runs a single `git push` and classifies its streamed output.

Example:
    >>> from pubsync.core.publish import PublishMonitor, PublishTarget
    >>> monitor = PublishMonitor()
    >>> job = monitor.start_publish(Path("."), PublishTarget.single_branch("main"))
    >>> outcome = monitor.await_outcome(job)
    >>> outcome.succeeded
"""

from pubsync.core.publish.models import (
    OutcomeStatus,
    PublishMode,
    PublishOutcome,
    PublishTarget,
)
from pubsync.core.publish.monitor import (
    CANCELLED_REASON,
    FAILURE_PATTERN,
    NO_DIAGNOSTIC_REASON,
    PublishJob,
    PublishMonitor,
)
from pubsync.core.publish.state import PublishState, PublishStateStore

__all__ = [
    "CANCELLED_REASON",
    "FAILURE_PATTERN",
    "NO_DIAGNOSTIC_REASON",
    "OutcomeStatus",
    "PublishJob",
    "PublishMode",
    "PublishMonitor",
    "PublishOutcome",
    "PublishState",
    "PublishStateStore",
    "PublishTarget",
]
