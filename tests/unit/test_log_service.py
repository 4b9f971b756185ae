"""Unit tests for logging configuration."""

import logging
import sys

import pytest
from solders.keypair import Keypair

from solana_gateway.models.keys import encode_secret
from solana_gateway.services.log_service import (
    SecretRedactingFilter,
    SizeAndTimeRotatingHandler,
    configure_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_file_and_console(self, tmp_path):
        logger = configure_logging(log_dir=str(tmp_path / "logs"), log_file="gw.log")

        kinds = [type(h) for h in logger.handlers]
        assert SizeAndTimeRotatingHandler in kinds
        assert logging.StreamHandler in kinds
        assert (tmp_path / "logs").is_dir()

        logging.getLogger("solana_gateway.test").info("hello gateway")
        for handler in logger.handlers:
            handler.flush()
        assert "hello gateway" in (tmp_path / "logs" / "gw.log").read_text()

    def test_console_uses_stderr(self):
        logger = configure_logging(log_dir=None)

        assert len(logger.handlers) == 1
        assert logger.handlers[0].stream is sys.stderr

    def test_no_handlers(self):
        logger = configure_logging(log_dir=None, console=False)
        assert logger.handlers == []

    def test_level_by_name(self):
        logger = configure_logging(log_dir=None, level="debug")
        assert logger.level == logging.DEBUG

    def test_unknown_level_raises(self):
        with pytest.raises(ValueError, match="Unknown log level: loud"):
            configure_logging(log_dir=None, level="loud")


class TestSecretRedactingFilter:
    """Tests for SecretRedactingFilter."""

    def record(self, msg, *args):
        return logging.LogRecord("gw", logging.INFO, __file__, 1, msg, args or None, None)

    def test_masks_labelled_secret(self):
        secret = encode_secret(Keypair())
        record = self.record('request {"privateKey": "%s"}', secret)

        assert SecretRedactingFilter().filter(record) is True
        assert secret not in record.getMessage()
        assert '"privateKey": "[redacted]"' in record.getMessage()

    def test_keeps_signatures(self):
        signature = str(Keypair().sign_message(b"transfer"))
        record = self.record("Transfer %s submitted", signature)

        SecretRedactingFilter().filter(record)

        assert signature in record.getMessage()

    def test_file_never_contains_secret(self, tmp_path):
        secret = encode_secret(Keypair())
        configure_logging(log_dir=str(tmp_path), log_file="gw.log", console=False)

        logging.getLogger("solana_gateway.test").warning(f"bad private_key={secret}")
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = (tmp_path / "gw.log").read_text()
        assert "private_key=[redacted]" in text
        assert secret not in text


class TestSizeAndTimeRotatingHandler:
    """Tests for SizeAndTimeRotatingHandler."""

    def test_rolls_over_on_size(self, tmp_path):
        handler = SizeAndTimeRotatingHandler(
            filename=str(tmp_path / "gw.log"), max_bytes=64, backup_count=2, when="midnight"
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        record = logging.LogRecord("gw", logging.INFO, __file__, 1, "x" * 100, None, None)
        try:
            handler.emit(record)
            assert handler.shouldRollover(record) == 1
            handler.emit(record)
        finally:
            handler.close()

        assert len(list(tmp_path.glob("gw.log*"))) == 2

    def test_same_day_rollovers_keep_every_file(self, tmp_path):
        handler = SizeAndTimeRotatingHandler(
            filename=str(tmp_path / "gw.log"), max_bytes=64, backup_count=5, when="midnight"
        )
        record = logging.LogRecord("gw", logging.INFO, __file__, 1, "x" * 100, None, None)
        try:
            for _ in range(3):
                handler.emit(record)
        finally:
            handler.close()

        assert len(list(tmp_path.glob("gw.log*"))) == 3

    def test_negative_max_bytes_raises(self, tmp_path):
        with pytest.raises(ValueError, match="max_bytes must be non-negative"):
            SizeAndTimeRotatingHandler(filename=str(tmp_path / "gw.log"), max_bytes=-1)

    def test_no_rollover_below_size(self, tmp_path):
        handler = SizeAndTimeRotatingHandler(
            filename=str(tmp_path / "gw.log"), max_bytes=1024, when="midnight"
        )
        record = logging.LogRecord("gw", logging.INFO, __file__, 1, "short", None, None)
        try:
            handler.emit(record)
            assert handler.shouldRollover(record) == 0
        finally:
            handler.close()
