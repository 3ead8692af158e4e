"""Common utilities and shared functionality."""

from .hmac_utils import (
    compute_hmac,
    compute_hmac_sha256,
    verify_hmac_signature,
    verify_github_signature,
)

from .logging_utils import (
    setup_logging,
    log_server_message,
    log_webhook_request,
    log_error,
    append_log_line,
)

from .lock import LockGuard, DEFAULT_LOCK_TIMEOUT

__all__ = [
    # HMAC utilities
    "compute_hmac",
    "compute_hmac_sha256",
    "verify_hmac_signature",
    "verify_github_signature",
    # Logging utilities
    "setup_logging",
    "log_server_message",
    "log_webhook_request",
    "log_error",
    "append_log_line",
    # Locking
    "LockGuard",
    "DEFAULT_LOCK_TIMEOUT",
]
