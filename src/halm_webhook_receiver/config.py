"""Centralised receiver settings loaded from environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Receiver settings populated from environment / .env file."""

    # HTTPS endpoint
    host: str = "0.0.0.0"
    port: int = 3000
    status_code: int = 200

    # TLS material, read once when the listener starts
    tls_enabled: bool = True
    tls_keyfile: Path = Path("key.pem")
    tls_certfile: Path = Path("cert.pem")

    # Shared secret, re-read on every delivery (format ``algorithm:key``)
    shared_secret_file: Path = Path("sharedSecretKey.txt")

    # Delivery records
    console_output: bool = False
    file_output: bool = False
    output_file: Path = Path("receivedWebhooks.txt")

    # Supervisor waits, in seconds
    wait_timeout: float = 120.0

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "WEBHOOK_RECEIVER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """Return a cached *Settings* instance."""
    return Settings()
