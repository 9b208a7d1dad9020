import multiprocessing

from halm_webhook_receiver.messaging.control import (
    apply_control_message,
    change_status_message,
    clear_hooks_message,
    start_control_consumer,
)
from halm_webhook_receiver.messaging.publisher import ChannelPublisher
from halm_webhook_receiver.webhook.models import ReceivedWebhook

from helpers import wait_for


def test_control_message_shapes():
    assert clear_hooks_message() == {"clearHooks": True}
    assert change_status_message(404) == {"changeStatus": 404}


def test_unknown_control_keys_are_ignored(state):
    apply_control_message(state, {"somethingElse": 1})
    assert state.status_code == 200


def test_control_consumer_applies_messages(state):
    supervisor_end, listener_end = multiprocessing.Pipe()
    state.history.append(ReceivedWebhook(body={"a": 1}))

    thread = start_control_consumer(listener_end, state)
    publisher = ChannelPublisher(supervisor_end)
    assert publisher.publish(change_status_message(503))
    assert publisher.publish(clear_hooks_message())

    assert wait_for(lambda: state.status_code == 503 and len(state.history) == 0)

    supervisor_end.close()
    thread.join(timeout=5)
    assert not thread.is_alive()
    listener_end.close()


def test_publisher_drops_on_closed_channel():
    supervisor_end, listener_end = multiprocessing.Pipe()
    supervisor_end.close()

    assert ChannelPublisher(supervisor_end).publish(clear_hooks_message()) is False
    listener_end.close()
