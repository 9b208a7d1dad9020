"""HMAC signature verification for incoming HALM webhooks.

The sender signs the concatenation of the version, id and timestamp
headers followed by the compact JSON body, and sends the base64 digest
in a primary and a secondary header so keys can be rotated without
downtime.
"""

from __future__ import annotations

import base64
import hmac
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from halm_webhook_receiver.webhook import serialization
from halm_webhook_receiver.webhook.models import (
    PRIMARY_SIGNATURE_HEADER,
    SECONDARY_SIGNATURE_HEADER,
    SIGNED_HEADERS,
    HeaderValue,
    SharedSecretConfig,
    SignatureVerdict,
)

logger = logging.getLogger(__name__)


def parse_shared_secret(content: str) -> SharedSecretConfig | None:
    """Parse ``algorithm:key`` text, splitting on the first colon.

    Returns ``None`` when the content has no colon or no algorithm,
    which disables verification.
    """
    algorithm, sep, key = content.partition(":")
    algorithm = algorithm.strip()
    if not sep or not algorithm:
        return None
    return SharedSecretConfig(hash_algorithm=algorithm, secret_key=key.strip())


def load_shared_secret(path: Path) -> SharedSecretConfig | None:
    """Read the shared-secret file fresh; missing or unreadable means no secret."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Shared secret file %s not readable, skipping verification", path)
        return None
    return parse_shared_secret(content)


def serialize_body(body: Any) -> str:
    """Compact JSON form of *body*, as the sender serializes it before signing."""
    return serialization.dumps(body)


def _header_text(value: HeaderValue | None) -> str:
    # Senders concatenate an absent header as "undefined" and fold
    # repeated ones into a single ", "-separated value.
    if value is None:
        return "undefined"
    if isinstance(value, list):
        return ", ".join(value)
    return value


def build_signed_payload(headers: Mapping[str, HeaderValue], body: Any) -> str:
    """Concatenate version, id, timestamp and the serialized body, no separators."""
    parts = [_header_text(headers.get(name)) for name in SIGNED_HEADERS]
    parts.append(serialize_body(body))
    return "".join(parts)


def compute_signature(secret: SharedSecretConfig, payload: str) -> str:
    """Return the base64-encoded HMAC of *payload*.

    Raises
    ------
    ValueError
        If ``hashlib`` does not support the configured algorithm.
    TypeError
        If the algorithm is a variable-length digest such as SHAKE.
    """
    digest = hmac.new(
        secret.secret_key.encode("utf-8"),
        payload.encode("utf-8"),
        secret.hash_algorithm.lower(),
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def sign_webhook(headers: Mapping[str, HeaderValue], body: Any, secret: SharedSecretConfig) -> str:
    """Compute the signature a sender would put in the signature headers."""
    return compute_signature(secret, build_signed_payload(headers, body))


def check_signature(
    headers: Mapping[str, HeaderValue],
    body: Any,
    secret: SharedSecretConfig | None,
) -> SignatureVerdict:
    """Compare the computed digest with the primary, then the secondary header.

    The primary header wins when both match.
    """
    if secret is None:
        return SignatureVerdict.NOT_CHECKED

    try:
        expected = sign_webhook(headers, body, secret)
    except (ValueError, TypeError):
        logger.warning(
            "Unsupported hash algorithm %r in shared secret, skipping verification",
            secret.hash_algorithm,
        )
        return SignatureVerdict.NOT_CHECKED

    if _matches(expected, headers.get(PRIMARY_SIGNATURE_HEADER)):
        return SignatureVerdict.MATCHED_PRIMARY
    if _matches(expected, headers.get(SECONDARY_SIGNATURE_HEADER)):
        return SignatureVerdict.MATCHED_SECONDARY

    logger.debug("Signature verification failed")
    return SignatureVerdict.NO_MATCH


def _matches(expected: str, received: HeaderValue | None) -> bool:
    if received is None:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), _header_text(received).encode("utf-8"))
