"""Command-line entry-point: run a receiver until interrupted.

Usage:
    halm-webhook-receiver [port] [status] [console_output] [file_output]
"""

from __future__ import annotations

import argparse
import logging
import threading

from halm_webhook_receiver.config import get_settings
from halm_webhook_receiver.supervisor import WebhookReceiver

logger = logging.getLogger(__name__)


def _flag(value: str) -> bool:
    return value.strip().lower() == "true"


def _setup_logging(level: str) -> None:
    """Configure root logger with a human-friendly format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="HTTPS receiver for HALM webhooks")
    parser.add_argument("port", nargs="?", type=int, default=settings.port)
    parser.add_argument("status", nargs="?", type=int, default=settings.status_code)
    parser.add_argument(
        "console_output", nargs="?", type=_flag, default=settings.console_output,
        help="'true' to print each webhook to the console",
    )
    parser.add_argument(
        "file_output", nargs="?", type=_flag, default=settings.file_output,
        help=f"'true' to write each webhook to {settings.output_file}",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry-point: start the listener and block until Ctrl-C."""
    args = build_parser().parse_args(argv)
    _setup_logging(get_settings().log_level)

    receiver = WebhookReceiver()
    receiver.setup(args.port, args.status, args.console_output, args.file_output)
    logger.info("Webhook receiver started on port %d", args.port)

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Shutting down…")
    finally:
        receiver.stop_safe()


if __name__ == "__main__":
    main()
