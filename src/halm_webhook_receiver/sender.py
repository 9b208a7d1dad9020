"""Client that signs and delivers HALM webhooks, the receiver's counterpart.

Tests use it to produce deliveries the way the real sender does.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import httpx

from halm_webhook_receiver.webhook.models import (
    ID_HEADER,
    PRIMARY_SIGNATURE_HEADER,
    SECONDARY_SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    VERSION_HEADER,
    SharedSecretConfig,
)
from halm_webhook_receiver.webhook.signature import serialize_body, sign_webhook

logger = logging.getLogger(__name__)


class WebhookSender:
    """Thin wrapper around *httpx* for posting signed webhooks.

    Parameters
    ----------
    url:
        Receiver endpoint, e.g. ``https://localhost:3000/``.
    secret:
        Primary shared secret.  When ``None`` no signature headers are sent.
    secondary_secret:
        Optional second secret for the secondary signature header.
    verify:
        TLS verification; off by default for self-signed test certificates.
    transport:
        Optional custom httpx transport (used by tests).
    """

    def __init__(
        self,
        url: str,
        *,
        secret: SharedSecretConfig | None = None,
        secondary_secret: SharedSecretConfig | None = None,
        version: str = "1",
        verify: bool = False,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url
        self._secret = secret
        self._secondary_secret = secondary_secret
        self._version = version
        self._client = httpx.Client(
            verify=verify,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def build_headers(
        self,
        body: Any,
        *,
        webhook_id: str | None = None,
        timestamp: str | None = None,
    ) -> dict[str, str]:
        """Return the ``x-halm-*`` headers for *body*, signed when a secret is set."""
        headers = {
            VERSION_HEADER: self._version,
            ID_HEADER: webhook_id or str(uuid.uuid4()),
            TIMESTAMP_HEADER: timestamp or str(int(time.time())),
        }
        if self._secret is not None:
            headers[PRIMARY_SIGNATURE_HEADER] = sign_webhook(headers, body, self._secret)
        if self._secondary_secret is not None:
            headers[SECONDARY_SIGNATURE_HEADER] = sign_webhook(headers, body, self._secondary_secret)
        return headers

    def send(
        self,
        body: Any,
        *,
        webhook_id: str | None = None,
        timestamp: str | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """POST *body* as compact JSON and return the response.

        The status code is not checked; asserting on it is the caller's job.
        """
        headers = self.build_headers(body, webhook_id=webhook_id, timestamp=timestamp)
        headers["Content-Type"] = "application/json"
        headers.update(extra_headers or {})

        logger.debug("POST %s id=%s", self._url, headers[ID_HEADER])
        return self._client.post(
            self._url,
            content=serialize_body(body).encode("utf-8"),
            headers=headers,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> WebhookSender:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
