import pytest
from fastapi.testclient import TestClient

from halm_webhook_receiver.webhook.consumer import ReceiverState, create_listener_app
from halm_webhook_receiver.webhook.output import DeliveryLog


@pytest.fixture
def secret_file(tmp_path):
    path = tmp_path / "sharedSecretKey.txt"
    path.write_text("sha256:secret\n", encoding="utf-8")
    return path


@pytest.fixture
def state(secret_file):
    receiver_state = ReceiverState(port=3000, status_code=200, shared_secret_file=secret_file)
    yield receiver_state
    receiver_state.delivery_log.close()


@pytest.fixture
def relayed():
    return []


@pytest.fixture
def client(state, relayed):
    app = create_listener_app(state, relayed.append)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def file_log(tmp_path):
    log = DeliveryLog(file_output=True, output_file=tmp_path / "receivedWebhooks.txt")
    yield log
    log.close()
