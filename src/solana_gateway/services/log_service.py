"""Logging setup for the gateway processes.

Both entry points log to stderr and, unless LOG_DIR is empty, to a file that
rolls over at midnight or once it grows past a size limit. stdout is never
used because the stdio tool server speaks its protocol there.
"""

import logging
import os
import re
import sys
import time
from logging.handlers import TimedRotatingFileHandler

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 7

# A base58 64-byte secret is 86-88 characters. Signatures have the same
# length, so only values that follow a key-like label are masked.
SECRET_PATTERN = re.compile(
    r"((?:private|secret)_?key[\"']?\s*[:=]\s*[\"']?)[1-9A-HJ-NP-Za-km-z]{64,90}",
    re.IGNORECASE,
)


class SecretRedactingFilter(logging.Filter):
    """Masks private key values that end up in a log message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = SECRET_PATTERN.sub(r"\1[redacted]", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class SizeAndTimeRotatingHandler(TimedRotatingFileHandler):
    """Rolls the file over at the timed boundary or once it reaches max_bytes."""

    def __init__(self, filename, max_bytes, backup_count=0, **kwargs):
        if max_bytes < 0:
            raise ValueError("max_bytes must be non-negative")
        self.max_bytes = max_bytes
        super().__init__(filename, backupCount=backup_count, **kwargs)

    def shouldRollover(self, record):
        return int(time.time()) >= self.rolloverAt or self._over_size()

    def rotation_filename(self, default_name):
        # Size rollovers on the same day share a date suffix; number them.
        name = super().rotation_filename(default_name)
        candidate, index = name, 1
        while os.path.exists(candidate):
            candidate = f"{name}.{index}"
            index += 1
        return candidate

    def _over_size(self) -> bool:
        if not self.max_bytes or self.stream is None:
            return False
        self.stream.seek(0, os.SEEK_END)
        return self.stream.tell() >= self.max_bytes


def _file_handler(path: str, max_bytes: int, backup_count: int) -> logging.Handler:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    return SizeAndTimeRotatingHandler(
        filename=path,
        when="midnight",
        interval=1,
        max_bytes=max_bytes,
        backup_count=backup_count,
        encoding="utf-8",
    )


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def configure_logging(
    log_dir: str | None = "logs",
    log_file: str = "solana-gateway.log",
    level: int | str = logging.INFO,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    console: bool = True,
) -> logging.Logger:
    """Replace the root logger's handlers with the gateway's.

    Args:
        log_dir: Directory for log files; None or "" disables file logging.
        log_file: Log file name inside log_dir.
        level: Logging level, as a number or a name such as "debug".
        max_bytes: File size that triggers a rollover; 0 disables it.
        backup_count: Number of rolled-over files to keep.
        console: Whether to also log to stderr.

    Returns:
        The configured root logger.
    """
    level = _resolve_level(level)
    formatter = logging.Formatter(LOG_FORMAT)
    redactor = SecretRedactingFilter()

    handlers: list[logging.Handler] = []
    if log_dir:
        handlers.append(_file_handler(os.path.join(log_dir, log_file), max_bytes, backup_count))
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(redactor)
        root.addHandler(handler)
    return root
