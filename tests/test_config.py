from pathlib import Path

from halm_webhook_receiver.config import Settings
from halm_webhook_receiver.startup import build_parser


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.port == 3000
    assert settings.status_code == 200
    assert settings.console_output is False
    assert settings.file_output is False
    assert settings.wait_timeout == 120.0
    assert settings.shared_secret_file == Path("sharedSecretKey.txt")


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("WEBHOOK_RECEIVER_PORT", "4443")
    monkeypatch.setenv("WEBHOOK_RECEIVER_CONSOLE_OUTPUT", "true")
    monkeypatch.setenv("WEBHOOK_RECEIVER_SHARED_SECRET_FILE", "/tmp/secret.txt")

    settings = Settings(_env_file=None)

    assert settings.port == 4443
    assert settings.console_output is True
    assert settings.shared_secret_file == Path("/tmp/secret.txt")


def test_positional_arguments():
    args = build_parser().parse_args(["4000", "404", "true", "false"])
    assert (args.port, args.status, args.console_output, args.file_output) == (4000, 404, True, False)


def test_positional_arguments_are_optional():
    args = build_parser().parse_args(["5000"])
    assert args.port == 5000
    assert args.status == 200
    assert args.console_output is False
    assert args.file_output is False
