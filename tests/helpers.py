import base64
import hashlib
import hmac
import socket
import time


def reference_signature(key: str, payload: str, digestmod=hashlib.sha256) -> str:
    """Independent HMAC computation used to check the receiver's digest."""
    return base64.b64encode(hmac.new(key.encode(), payload.encode(), digestmod).digest()).decode()


def free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def wait_for(predicate, timeout=5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False
