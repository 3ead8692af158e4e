"""Pushscribe - AI push summaries posted to Jira.

This package provides a three-stage file-queue pipeline:

- pushscribe.ingest: GitHub webhook reception and queueing
- pushscribe.analysis: Prompt rendering and summarizer invocation
- pushscribe.publish: Markdown report parsing and Jira publishing
- pushscribe.models: Shared records and the directory queue
- pushscribe.common: Shared utilities (HMAC, logging, locking)
"""

__version__ = "1.0.0"

from . import common
from . import models

__all__ = [
    "common",
    "models",
]
