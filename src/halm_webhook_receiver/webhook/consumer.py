"""FastAPI-based HTTPS endpoint that receives HALM webhook deliveries."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request, Response, status
from fastapi.datastructures import Headers

from halm_webhook_receiver.webhook import serialization
from halm_webhook_receiver.webhook.history import WebhookHistory
from halm_webhook_receiver.webhook.models import HeaderValue, ReceivedWebhook, SignatureVerdict
from halm_webhook_receiver.webhook.output import DeliveryLog
from halm_webhook_receiver.webhook.signature import check_signature, load_shared_secret

logger = logging.getLogger(__name__)

WEBHOOKS_PATH = "/"

Relay = Callable[[dict[str, Any]], Any]


class ReceiverState:
    """Mutable state of one listener.

    ``status_code`` and ``history`` are changed by control messages while
    requests are being served; every other field is fixed at start.
    """

    def __init__(
        self,
        *,
        port: int = 3000,
        status_code: int = 200,
        shared_secret_file: Path = Path("sharedSecretKey.txt"),
        delivery_log: DeliveryLog | None = None,
    ) -> None:
        self.port = port
        self.status_code = status_code
        self.shared_secret_file = shared_secret_file
        self.delivery_log = delivery_log or DeliveryLog()
        self.history = WebhookHistory()

    @property
    def console_output(self) -> bool:
        return self.delivery_log.console_output

    @property
    def file_output(self) -> bool:
        return self.delivery_log.file_output


def capture_headers(headers: Headers) -> dict[str, HeaderValue]:
    """Copy request headers; repeated names become lists."""
    captured: dict[str, HeaderValue] = {}
    for name in headers.keys():
        if name in captured:
            continue
        values = headers.getlist(name)
        captured[name] = values if len(values) > 1 else values[0]
    return captured


def process_delivery(state: ReceiverState, webhook: ReceivedWebhook, relay: Relay) -> SignatureVerdict:
    """Record, verify, log and relay one delivery after the response went out."""
    state.history.append(webhook)

    secret = load_shared_secret(state.shared_secret_file)
    verdict = check_signature(webhook.headers, webhook.body, secret)

    state.delivery_log.record(webhook, verdict)
    relay(webhook.model_dump(mode="json"))
    return verdict


def create_listener_app(state: ReceiverState, relay: Relay) -> FastAPI:
    """Build and return a :class:`FastAPI` application for receiving webhooks.

    Parameters
    ----------
    state:
        Listener state holding the response status code and history.
    relay:
        Called with every received webhook as a plain dict; the listener
        process passes a :class:`ChannelPublisher` to the supervisor.
    """
    app = FastAPI(title="HALM Webhook Receiver")
    app.state.receiver = state

    @app.post(WEBHOOKS_PATH)
    async def receive_webhook(request: Request, background_tasks: BackgroundTasks) -> Response:
        """Answer immediately, then record and verify the delivery."""
        raw_body = await request.body()
        try:
            body: Any = serialization.loads(raw_body) if raw_body.strip() else {}
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid JSON body",
            )

        receiver: ReceiverState = request.app.state.receiver
        webhook = ReceivedWebhook(headers=capture_headers(request.headers), body=body)
        background_tasks.add_task(process_delivery, receiver, webhook, relay)
        return Response(status_code=receiver.status_code)

    return app
