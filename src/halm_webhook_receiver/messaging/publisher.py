"""Fire-and-forget publisher over a ``multiprocessing`` pipe end.

Both processes use it: the listener relays received webhooks to the
supervisor, and the supervisor pushes control messages to the listener.
No acknowledgement is ever sent back.
"""

from __future__ import annotations

import logging
import threading
from multiprocessing.connection import Connection
from typing import Any

logger = logging.getLogger(__name__)


class ChannelPublisher:
    """Sends picklable messages over one end of a duplex pipe."""

    def __init__(self, connection: Connection) -> None:
        self._connection = connection
        self._send_lock = threading.Lock()

    def publish(self, body: dict[str, Any]) -> bool:
        """Send *body*; return ``False`` when the channel is gone.

        A failed send is dropped, there is no retry.
        """
        try:
            with self._send_lock:
                self._connection.send(body)
        except (OSError, EOFError, ValueError):
            logger.debug("Channel closed, dropping message %s", list(body))
            return False
        return True

    def __call__(self, body: dict[str, Any]) -> bool:
        return self.publish(body)
