"""Supervisor side of the receiver: lifecycle and query API for tests.

Usage
-----
    from halm_webhook_receiver import WebhookReceiver

    receiver = WebhookReceiver()
    receiver.setup(port=3000, status=200)

    webhook = receiver.wait_for_new_webhooks(timeout=5)
    assert webhook is not None and webhook.body["event"] == "item.updated"

    receiver.change_status_code(500)
    receiver.clear_received_webhooks()
    receiver.stop_safe()

Control messages are fire-and-forget: the listener applies them shortly
after they are sent, and callers must not assume the new status code or
the cleared listener history are in effect immediately.
"""

from __future__ import annotations

import asyncio
import atexit
import logging
import multiprocessing
import sys
import threading
from concurrent.futures import Future, InvalidStateError
from concurrent.futures import TimeoutError as FutureTimeoutError
from multiprocessing.connection import Connection
from multiprocessing.process import BaseProcess
from typing import Any

from pydantic import ValidationError

from halm_webhook_receiver.config import Settings, get_settings
from halm_webhook_receiver.listener_main import run_listener
from halm_webhook_receiver.messaging.control import change_status_message, clear_hooks_message
from halm_webhook_receiver.messaging.publisher import ChannelPublisher
from halm_webhook_receiver.webhook.history import WebhookHistory
from halm_webhook_receiver.webhook.models import ReceivedWebhook

logger = logging.getLogger(__name__)

_mp = multiprocessing.get_context("spawn")


def _enable_console_logging() -> None:
    """Show this module's info records, on stdout when nothing else is configured."""
    logger.setLevel(logging.INFO)
    if not logger.hasHandlers():
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)


class WebhookReceiver:
    """Start a listener process and observe the webhooks it receives.

    Parameters
    ----------
    settings:
        Base settings for the listener.  Arguments given to :meth:`setup`
        override the matching fields.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self.console_output = False
        self.stopped = False
        self.server_process: Any = None
        self._history = WebhookHistory()
        self._connection: Connection | None = None
        self._publisher: ChannelPublisher | None = None
        self._event_thread: threading.Thread | None = None
        self._waiters: list[Future[ReceivedWebhook | None]] = []
        self._waiters_lock = threading.Lock()

    # ── Lifecycle ───────────────────────────────────────────────────

    def setup(
        self,
        port: int | None = None,
        status: int | None = None,
        console_output: bool | None = None,
        file_output: bool | None = None,
    ) -> Any:
        """Start the listener process and begin collecting relayed webhooks.

        Returns the process handle.  Calling it twice starts a second,
        independent listener; only the latest one is controlled.
        """
        overrides = {
            "port": port,
            "status_code": status,
            "console_output": console_output,
            "file_output": file_output,
        }
        settings = self._settings.model_copy(
            update={key: value for key, value in overrides.items() if value is not None}
        )
        self.console_output = settings.console_output
        if self.console_output:
            _enable_console_logging()

        connection, child_connection = _mp.Pipe(duplex=True)
        self.server_process = self._spawn(settings, child_connection)
        self._connection = connection
        self._publisher = ChannelPublisher(connection)
        self._event_thread = threading.Thread(
            target=self._consume_events,
            args=(connection,),
            name="webhook-events",
            daemon=True,
        )
        self._event_thread.start()

        atexit.register(self.stop_safe)
        return self.server_process

    def _spawn(self, settings: Settings, connection: Connection) -> BaseProcess:
        """Start :func:`run_listener` in a child process."""
        process = _mp.Process(
            target=run_listener,
            args=(settings, connection),
            name=f"webhook-listener-{settings.port}",
            daemon=True,
        )
        process.start()
        # Only the child keeps this end open, so its exit reaches us as EOF.
        connection.close()
        return process

    def stop(self) -> None:
        """Kill the listener, then exit the calling process."""
        if self.stopped:
            return
        self.stop_safe()
        sys.exit(0)

    def stop_safe(self) -> None:
        """Kill the listener and keep the calling process running."""
        if self.stopped:
            return
        if self.server_process is not None:
            self.server_process.kill()
            self.server_process.join(timeout=5)
        if self.console_output:
            logger.info("Server has stopped")
        self.stopped = True

        if self._event_thread is not None:
            self._event_thread.join(timeout=5)
        if self._connection is not None:
            self._connection.close()
        atexit.unregister(self.stop_safe)

    def __enter__(self) -> WebhookReceiver:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop_safe()

    # ── Control ─────────────────────────────────────────────────────

    def _require_publisher(self) -> ChannelPublisher:
        if self._publisher is None:
            raise RuntimeError("Receiver is not running, call setup() first")
        return self._publisher

    def clear_received_webhooks(self) -> None:
        """Clear the local history and tell the listener to clear its own."""
        self._require_publisher().publish(clear_hooks_message())
        self._history.clear()

    def change_status_code(self, status: int = 200) -> None:
        """Ask the listener to answer later deliveries with *status*."""
        self._require_publisher().publish(change_status_message(status))

    @property
    def received_webhooks(self) -> list[ReceivedWebhook]:
        """Snapshot of every webhook relayed since setup or the last clear."""
        return self._history.snapshot()

    # ── Waiting ─────────────────────────────────────────────────────

    def wait_for_new_webhooks(self, timeout: float | None = None) -> ReceivedWebhook | None:
        """Block until the next webhook arrives or *timeout* seconds pass.

        Returns ``None`` on timeout.  Defaults to ``settings.wait_timeout``.
        """
        if timeout is None:
            timeout = self._settings.wait_timeout
        future = self._add_waiter()
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            return None
        finally:
            self._discard_waiter(future)

    def wait_until_new_webhooks(self) -> ReceivedWebhook | None:
        """Block until the next webhook arrives, without a timeout.

        Returns ``None`` only if the listener goes away first.
        """
        future = self._add_waiter()
        try:
            return future.result()
        finally:
            self._discard_waiter(future)

    async def wait_for_new_webhooks_async(self, timeout: float | None = None) -> ReceivedWebhook | None:
        """Asyncio counterpart of :meth:`wait_for_new_webhooks`."""
        if timeout is None:
            timeout = self._settings.wait_timeout
        future = self._add_waiter()
        try:
            return await asyncio.wait_for(asyncio.wrap_future(future), timeout)
        except asyncio.TimeoutError:
            return None
        finally:
            self._discard_waiter(future)

    async def wait_until_new_webhooks_async(self) -> ReceivedWebhook | None:
        """Asyncio counterpart of :meth:`wait_until_new_webhooks`."""
        future = self._add_waiter()
        try:
            return await asyncio.wrap_future(future)
        finally:
            self._discard_waiter(future)

    def _add_waiter(self) -> Future[ReceivedWebhook | None]:
        self._require_publisher()
        future: Future[ReceivedWebhook | None] = Future()
        with self._waiters_lock:
            self._waiters.append(future)
        return future

    def _discard_waiter(self, future: Future[ReceivedWebhook | None]) -> None:
        with self._waiters_lock:
            if future in self._waiters:
                self._waiters.remove(future)

    def _resolve_waiters(self, webhook: ReceivedWebhook | None) -> None:
        with self._waiters_lock:
            waiters, self._waiters = self._waiters, []
        for future in waiters:
            try:
                future.set_result(webhook)
            except InvalidStateError:
                # Cancelled by an async waiter that timed out meanwhile.
                continue

    # ── Event channel ───────────────────────────────────────────────

    def _consume_events(self, connection: Connection) -> None:
        while True:
            try:
                message = connection.recv()
            except (EOFError, OSError):
                logger.debug("Event channel closed")
                break
            try:
                webhook = ReceivedWebhook.model_validate(message)
            except ValidationError:
                logger.warning("Ignoring malformed event from listener", exc_info=True)
                continue
            self._history.append(webhook)
            self._resolve_waiters(webhook)
        self._resolve_waiters(None)
