"""HMAC utilities for webhook signature validation."""

import hmac
import hashlib
import logging
from typing import Optional

logger = logging.getLogger(__name__)

_ALGORITHMS = {
    "sha256": hashlib.sha256,
    "sha1": hashlib.sha1,
}


def compute_hmac(data: bytes, secret: str, algorithm: str = "sha256") -> str:
    """Compute an HMAC hex digest for given data and secret."""
    try:
        return hmac.new(
            secret.encode('utf-8'),
            data,
            _ALGORITHMS[algorithm]
        ).hexdigest()
    except Exception as e:
        logger.error(f"Error computing HMAC signature: {e}")
        raise


def compute_hmac_sha256(data: bytes, secret: str) -> str:
    """Compute HMAC-SHA256 signature for given data and secret."""
    return compute_hmac(data, secret, "sha256")


def verify_hmac_signature(data: bytes, signature_header: str, secret: str) -> bool:
    """Verify a "<algorithm>=<hexdigest>" signature header."""
    try:
        if not signature_header or "=" not in signature_header:
            logger.error("Invalid signature header format")
            return False

        algorithm, expected_signature = signature_header.split("=", 1)
        if algorithm not in _ALGORITHMS:
            logger.error(f"Unsupported signature algorithm: {algorithm}")
            return False

        computed_signature = compute_hmac(data, secret, algorithm)

        # Compare signatures (constant-time comparison)
        return hmac.compare_digest(computed_signature, expected_signature)

    except Exception as e:
        logger.error(f"Error verifying HMAC signature: {e}")
        return False


def verify_github_signature(
    data: bytes,
    secret: str,
    signature_256: Optional[str] = None,
    signature_1: Optional[str] = None,
) -> bool:
    """Verify GitHub's X-Hub-Signature-256 header, falling back to X-Hub-Signature."""
    if signature_256 and signature_256.startswith("sha256="):
        if verify_hmac_signature(data, signature_256, secret):
            return True

    if signature_1 and signature_1.startswith("sha1="):
        return verify_hmac_signature(data, signature_1, secret)

    return False
