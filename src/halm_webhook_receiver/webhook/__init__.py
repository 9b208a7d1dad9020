from halm_webhook_receiver.webhook.consumer import ReceiverState, create_listener_app
from halm_webhook_receiver.webhook.history import WebhookHistory

__all__ = ["ReceiverState", "WebhookHistory", "create_listener_app"]
