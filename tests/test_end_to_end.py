"""Runs the real listener process over plain HTTP on a free port."""

import socket
import time

import pytest

from halm_webhook_receiver.config import Settings
from halm_webhook_receiver.sender import WebhookSender
from halm_webhook_receiver.supervisor import WebhookReceiver
from halm_webhook_receiver.webhook.models import SharedSecretConfig

from helpers import free_port


def _wait_for_port(port, timeout=30.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            with socket.create_connection(("127.0.0.1", port), timeout=0.5):
                return
        except OSError:
            time.sleep(0.1)
    pytest.fail(f"listener did not come up on port {port}")


@pytest.fixture
def running_receiver(tmp_path):
    (tmp_path / "sharedSecretKey.txt").write_text("sha256:secret", encoding="utf-8")
    settings = Settings(
        _env_file=None,
        host="127.0.0.1",
        tls_enabled=False,
        shared_secret_file=tmp_path / "sharedSecretKey.txt",
        output_file=tmp_path / "receivedWebhooks.txt",
        wait_timeout=10.0,
    )
    port = free_port()
    receiver = WebhookReceiver(settings)
    receiver.setup(port, 200, False, True)
    _wait_for_port(port)
    yield receiver, port, tmp_path
    receiver.stop_safe()


def test_delivery_round_trip(running_receiver):
    receiver, port, tmp_path = running_receiver
    secret = SharedSecretConfig(hash_algorithm="sha256", secret_key="secret")

    with WebhookSender(f"http://127.0.0.1:{port}/", secret=secret) as sender:
        assert sender.send({"event": "item.updated"}, webhook_id="1").status_code == 200
        webhook = receiver.wait_for_new_webhooks(10)

        assert webhook is not None
        assert webhook.body == {"event": "item.updated"}
        assert webhook.headers["x-halm-webhook-id"] == "1"
        assert len(receiver.received_webhooks) == 1

        record = (tmp_path / "receivedWebhooks.txt").read_text(encoding="utf-8")
        assert "matched the primary signature" in record

        receiver.change_status_code(404)
        deadline = time.monotonic() + 10
        status = None
        while time.monotonic() < deadline:
            status = sender.send({"event": "probe"}).status_code
            if status == 404:
                break
            time.sleep(0.05)
        assert status == 404

    process = receiver.server_process
    receiver.stop_safe()
    assert not process.is_alive()
