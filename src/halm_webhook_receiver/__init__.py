"""HTTPS webhook receiver for integration tests."""

from halm_webhook_receiver.supervisor import WebhookReceiver
from halm_webhook_receiver.webhook.models import ReceivedWebhook, SharedSecretConfig, SignatureVerdict

__all__ = ["ReceivedWebhook", "SharedSecretConfig", "SignatureVerdict", "WebhookReceiver"]
