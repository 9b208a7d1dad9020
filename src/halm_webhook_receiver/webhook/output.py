"""Human-readable delivery records written to the console and/or a file."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from halm_webhook_receiver.webhook.models import ReceivedWebhook, SignatureVerdict

DELIVERY_LOGGER_NAME = "halm_webhook_receiver.deliveries"


class DeliveryLog:
    """Write one timestamped, pretty-printed record per delivery.

    Parameters
    ----------
    console_output:
        Write records to stdout.
    file_output:
        Write records to *output_file*, truncated when the log is created.
    output_file:
        Path of the record file.
    """

    def __init__(
        self,
        *,
        console_output: bool = False,
        file_output: bool = False,
        output_file: Path = Path("receivedWebhooks.txt"),
    ) -> None:
        self.console_output = console_output
        self.file_output = file_output
        self._logger = logging.getLogger(DELIVERY_LOGGER_NAME)
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False
        self._handlers: list[logging.Handler] = []

        if console_output:
            self._add_handler(logging.StreamHandler(sys.stdout))
        if file_output:
            # Truncated here only; append mode lets the handler reopen after
            # uvicorn's dictConfig closes it.
            Path(output_file).write_text("", encoding="utf-8")
            self._add_handler(logging.FileHandler(output_file, mode="a", encoding="utf-8"))

    @property
    def enabled(self) -> bool:
        return bool(self._handlers)

    def _add_handler(self, handler: logging.Handler) -> None:
        handler.setFormatter(logging.Formatter("%(message)s"))
        self._logger.addHandler(handler)
        self._handlers.append(handler)

    def record(self, webhook: ReceivedWebhook, verdict: SignatureVerdict) -> None:
        """Write *webhook* and, when it was checked, the verdict sentence."""
        if not self.enabled:
            return
        lines = [
            f"Webhook received at {_iso_now()}:",
            json.dumps(webhook.model_dump(mode="json"), indent=4, default=str),
        ]
        if verdict.message:
            lines.append(verdict.message)
        lines.append("")
        self._logger.info("\n".join(lines))

    def close(self) -> None:
        """Detach and close the handlers this log installed."""
        for handler in self._handlers:
            self._logger.removeHandler(handler)
            handler.close()
        self._handlers = []


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
