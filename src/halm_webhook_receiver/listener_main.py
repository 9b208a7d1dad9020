"""Listener process entry-point.

The supervisor starts :func:`run_listener` in a child process with one
end of a duplex pipe.  The listener serves HTTPS with uvicorn, applies
control messages arriving on the pipe, and relays every received
webhook back over it.

Exit codes:
    0: stopped normally
    1: TLS material could not be read
"""

from __future__ import annotations

import logging
import sys
from multiprocessing.connection import Connection
from pathlib import Path

import uvicorn

from halm_webhook_receiver.config import Settings
from halm_webhook_receiver.messaging.control import start_control_consumer
from halm_webhook_receiver.messaging.publisher import ChannelPublisher
from halm_webhook_receiver.webhook.consumer import WEBHOOKS_PATH, ReceiverState, create_listener_app
from halm_webhook_receiver.webhook.output import DeliveryLog

logger = logging.getLogger(__name__)

WEBHOOKS_DOMAIN = "https://localhost"


class ListenerStartupError(RuntimeError):
    """The listener cannot come up, e.g. its TLS material is unreadable."""


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def check_tls_material(settings: Settings) -> None:
    """Make sure the key and certificate can be read before binding the port."""
    for label, path in (("key", settings.tls_keyfile), ("certificate", settings.tls_certfile)):
        try:
            Path(path).read_bytes()
        except OSError as exc:
            raise ListenerStartupError(f"Cannot read TLS {label} {path}: {exc}") from exc


def build_receiver_state(settings: Settings) -> ReceiverState:
    delivery_log = DeliveryLog(
        console_output=settings.console_output,
        file_output=settings.file_output,
        output_file=settings.output_file,
    )
    return ReceiverState(
        port=settings.port,
        status_code=settings.status_code,
        shared_secret_file=settings.shared_secret_file,
        delivery_log=delivery_log,
    )


def serve(settings: Settings, connection: Connection) -> None:
    """Serve webhooks until the process is killed."""
    if settings.tls_enabled:
        check_tls_material(settings)

    state = build_receiver_state(settings)
    start_control_consumer(connection, state)
    app = create_listener_app(state, ChannelPublisher(connection))

    if settings.console_output:
        scheme_host = WEBHOOKS_DOMAIN if settings.tls_enabled else "http://localhost"
        logger.info("Listening at %s%s on port %d", scheme_host, WEBHOOKS_PATH, settings.port)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        ssl_keyfile=str(settings.tls_keyfile) if settings.tls_enabled else None,
        ssl_certfile=str(settings.tls_certfile) if settings.tls_enabled else None,
        log_level="info" if settings.console_output else "warning",
    )


def run_listener(settings: Settings, connection: Connection) -> None:
    """Process target used by :class:`~halm_webhook_receiver.supervisor.WebhookReceiver`."""
    _setup_logging(settings.log_level)
    try:
        serve(settings, connection)
    except ListenerStartupError:
        logger.critical("Listener failed to start", exc_info=True)
        sys.exit(1)
