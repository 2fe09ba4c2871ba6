"""LINE webhook signature validation."""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Line-Signature"


def compute_signature(body: bytes, secret: str) -> str:
    """Return the base64 HMAC-SHA256 digest of *body* keyed with *secret*."""
    digest = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def validate_signature(body: bytes, signature_value: str, secret: str) -> bool:
    """Check the ``X-Line-Signature`` header against the raw request body.

    Uses constant-time comparison.  An empty secret or signature is never valid.
    """
    if not signature_value or not secret:
        logger.warning("Signature check failed: missing signature or secret")
        return False

    expected = compute_signature(body, secret)
    valid = hmac.compare_digest(signature_value.encode(), expected.encode())
    if not valid:
        logger.warning("Signature check failed: signature mismatch")
    return valid
