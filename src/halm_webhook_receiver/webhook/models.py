"""Data shapes shared by the listener and the supervisor."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ── Recognised HALM headers (lowercase, as the HTTP layer delivers them) ──

VERSION_HEADER = "x-halm-webhook-version"
ID_HEADER = "x-halm-webhook-id"
TIMESTAMP_HEADER = "x-halm-webhook-timestamp"
PRIMARY_SIGNATURE_HEADER = "x-halm-webhook-signature-primary"
SECONDARY_SIGNATURE_HEADER = "x-halm-webhook-signature-secondary"

# Order matters: the signed payload is these values followed by the body.
SIGNED_HEADERS = (VERSION_HEADER, ID_HEADER, TIMESTAMP_HEADER)

HeaderValue = str | list[str]


class ReceivedWebhook(BaseModel):
    """One captured delivery: headers and body exactly as received."""

    model_config = ConfigDict(frozen=True)

    headers: dict[str, HeaderValue] = Field(default_factory=dict)
    body: Any = None


class SharedSecretConfig(BaseModel):
    """``algorithm:key`` pair read from the shared-secret file."""

    model_config = ConfigDict(frozen=True)

    hash_algorithm: str
    secret_key: str


class SignatureVerdict(str, enum.Enum):
    """Outcome of comparing the computed digest with the signature headers."""

    MATCHED_PRIMARY = "matched_primary"
    MATCHED_SECONDARY = "matched_secondary"
    NO_MATCH = "no_match"
    NOT_CHECKED = "not_checked"

    @property
    def message(self) -> str:
        """Human-readable sentence for the delivery log (empty when not checked)."""
        return _VERDICT_MESSAGES[self]


_VERDICT_MESSAGES = {
    SignatureVerdict.MATCHED_PRIMARY: "The calculated signature matched the primary signature",
    SignatureVerdict.MATCHED_SECONDARY: "The calculated signature matched the secondary signature",
    SignatureVerdict.NO_MATCH: (
        "The calculated signature did not match the primary or secondary signature"
    ),
    SignatureVerdict.NOT_CHECKED: "",
}
