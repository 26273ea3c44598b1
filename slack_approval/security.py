"""HMAC helpers for Slack request signatures and decision-token digests."""

from __future__ import annotations

import hmac
import time
from hashlib import sha256


SLACK_SIGNATURE_HEADER = "X-Slack-Signature"
SLACK_TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
VERSION = "v0"
DEFAULT_TOLERANCE = 60 * 5  # five minutes


def keyed_digest(secret: str, message: str) -> str:
    """Return the hex HMAC-SHA256 of *message* under *secret*."""

    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), sha256).hexdigest()


def digests_match(expected: str, candidate: str) -> bool:
    return hmac.compare_digest(
        expected.encode("utf-8", "surrogatepass"), candidate.encode("utf-8", "surrogatepass")
    )


def compute_signature(signing_secret: str, timestamp: str, body: str) -> str:
    """Return Slack-compatible signature for the provided payload."""

    return f"{VERSION}={keyed_digest(signing_secret, f'{VERSION}:{timestamp}:{body}')}"


def is_valid_slack_request(
    *, signing_secret: str, timestamp: str, body: str, signature: str, tolerance: int = DEFAULT_TOLERANCE
) -> bool:
    """Validate Slack signature and timestamp to guard against replay attacks."""

    if not timestamp or not signature:
        return False

    try:
        request_ts = int(timestamp)
    except (TypeError, ValueError):
        return False

    if abs(int(time.time()) - request_ts) > tolerance:
        return False

    return digests_match(compute_signature(signing_secret, timestamp, body), signature)
