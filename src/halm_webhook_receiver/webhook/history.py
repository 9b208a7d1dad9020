"""In-memory, insertion-ordered record of received webhooks.

Usage
-----
    history = WebhookHistory()
    history.append(webhook)
    received = history.snapshot()
    history.clear()
"""

from __future__ import annotations

import threading

from halm_webhook_receiver.webhook.models import ReceivedWebhook


class WebhookHistory:
    """Thread-safe, unbounded list of :class:`ReceivedWebhook`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: list[ReceivedWebhook] = []

    def append(self, webhook: ReceivedWebhook) -> None:
        with self._lock:
            self._items.append(webhook)

    def clear(self) -> None:
        with self._lock:
            self._items = []

    def snapshot(self) -> list[ReceivedWebhook]:
        """Return a copy of the history in append order."""
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
