"""Control messages pushed from the supervisor to the listener.

Two message shapes travel over the pipe:

* ``{"clearHooks": True}`` empties the listener history.
* ``{"changeStatus": <int>}`` sets the status code of later responses.

Both are asynchronous; the supervisor never waits for them to apply.
"""

from __future__ import annotations

import logging
import threading
from multiprocessing.connection import Connection
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from halm_webhook_receiver.webhook.consumer import ReceiverState

logger = logging.getLogger(__name__)

CLEAR_HOOKS = "clearHooks"
CHANGE_STATUS = "changeStatus"


def clear_hooks_message() -> dict[str, Any]:
    return {CLEAR_HOOKS: True}


def change_status_message(status_code: int) -> dict[str, Any]:
    return {CHANGE_STATUS: int(status_code)}


def apply_control_message(state: ReceiverState, message: dict[str, Any]) -> None:
    """Apply one control message to the listener state; unknown keys are ignored."""
    if message.get(CLEAR_HOOKS):
        state.history.clear()
        logger.debug("History cleared")
    if message.get(CHANGE_STATUS):
        state.status_code = int(message[CHANGE_STATUS])
        logger.debug("Response status changed to %d", state.status_code)


def _pump(connection: Connection, state: ReceiverState) -> None:
    while True:
        try:
            message = connection.recv()
        except (EOFError, OSError):
            logger.debug("Control channel closed")
            return
        if isinstance(message, dict):
            apply_control_message(state, message)
        else:
            logger.warning("Ignoring malformed control message %r", message)


def start_control_consumer(connection: Connection, state: ReceiverState) -> threading.Thread:
    """Apply incoming control messages on a daemon thread until the pipe closes."""
    thread = threading.Thread(
        target=_pump,
        args=(connection, state),
        name="control-consumer",
        daemon=True,
    )
    thread.start()
    return thread
