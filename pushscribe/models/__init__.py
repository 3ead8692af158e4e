"""Shared models for the push summary pipeline."""

from .webhook_models import (
    GithubPerson,
    GithubRepository,
    GithubCommit,
    PushPayload,
    CommitRecord,
    WebhookRecord,
)

from .report_models import (
    AnalysisReport,
    TicketReference,
)

from .queue import (
    FileQueue,
    OutcomeStatus,
    QueueOutcome,
    QueueSummary,
    move_to,
    write_queue_item,
)

__all__ = [
    # Webhook models
    "GithubPerson",
    "GithubRepository",
    "GithubCommit",
    "PushPayload",
    "CommitRecord",
    "WebhookRecord",
    # Report models
    "AnalysisReport",
    "TicketReference",
    # Directory queue
    "FileQueue",
    "OutcomeStatus",
    "QueueOutcome",
    "QueueSummary",
    "move_to",
    "write_queue_item",
]
