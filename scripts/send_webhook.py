"""Send one signed webhook to a running receiver.

Usage:
    RECEIVER_URL=https://localhost:3000/ python scripts/send_webhook.py
"""

import os
import sys
from pathlib import Path

# Allow running from the repo root without installing the package
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from halm_webhook_receiver.sender import WebhookSender
from halm_webhook_receiver.webhook.signature import load_shared_secret

RECEIVER_URL = os.environ.get("RECEIVER_URL", "https://localhost:3000/")
SECRET_FILE = Path(os.environ.get("WEBHOOK_RECEIVER_SHARED_SECRET_FILE", "sharedSecretKey.txt"))

SAMPLE_BODY = {
    "event": "item.updated",
    "data": {"id": 42, "fields": {"name": "Smoke test item"}},
}


def main() -> None:
    secret = load_shared_secret(SECRET_FILE)
    if secret is None:
        print("No shared secret in", SECRET_FILE, "- sending unsigned")

    with WebhookSender(RECEIVER_URL, secret=secret) as sender:
        try:
            response = sender.send(SAMPLE_BODY)
        except Exception as exc:
            print("ERROR: Cannot reach receiver at", RECEIVER_URL, "-", exc)
            sys.exit(1)

    print(f"Receiver answered {response.status_code}")


if __name__ == "__main__":
    main()
