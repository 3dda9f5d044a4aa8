# nebchat/logging_config.py
from __future__ import annotations
import logging, logging.handlers, sys
from pathlib import Path
from datetime import datetime
from typing import Iterable, Optional
from .constants import DEFAULT_LOG_MAX_BYTES, DEFAULT_LOG_BACKUP_COUNT

REDACTED = "***"


class _ConsoleFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\x1b[36m",
        "INFO": "\x1b[32m",
        "WARNING": "\x1b[33m",
        "ERROR": "\x1b[31m",
        "CRITICAL": "\x1b[41m",
    }
    RESET = "\x1b[0m"

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        base = f"{stamp} {record.levelname.lower()} {record.name}: {record.getMessage()}"
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        color = self.COLORS.get(record.levelname, "")
        if color and sys.stderr.isatty():
            return f"{color}{base}{self.RESET}"
        return base


class RedactingFilter(logging.Filter):
    """Masks known secrets (API keys) in the rendered message before any handler sees it."""

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self.secrets = tuple(s for s in secrets if s)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self.secrets:
            masked = masked.replace(secret, REDACTED)
        if masked != message:
            record.msg, record.args = masked, None
        return True


def init_logging(log_file: Path, level: str = "INFO", *,
                 console_level: Optional[str] = None,
                 max_bytes: int = DEFAULT_LOG_MAX_BYTES, backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
                 also_console: bool = True, secrets: Iterable[str] = ()) -> Path:
    """
    Route everything at `level` to a rotating file and, optionally, the
    console (stderr) at `console_level`.

    The console defaults to WARNING or above, because stdout carries the
    completion text and chatter on the same terminal would interleave with it.
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_level = getattr(logging, level.upper(), logging.INFO)
    term_level = getattr(logging, (console_level or "WARNING").upper(), logging.WARNING)
    redact = RedactingFilter(secrets)

    root = logging.getLogger()
    # re-init replaces whatever an earlier call installed
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(min(file_level, term_level) if also_console else file_level)

    fh = logging.handlers.RotatingFileHandler(str(log_file), maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8", delay=True)
    fh.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s", "%Y-%m-%d %H:%M:%S"))
    fh.setLevel(file_level)
    fh.addFilter(redact)
    root.addHandler(fh)

    if also_console:
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(_ConsoleFormatter())
        ch.setLevel(term_level)
        ch.addFilter(redact)
        root.addHandler(ch)

    # httpx logs every request line at INFO
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(max(file_level, logging.WARNING))

    install_excepthook()
    return log_file


def install_excepthook():
    def _hook(exc_type, exc, tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc, tb)
            return
        logging.getLogger("uncaught").error("Uncaught exception", exc_info=(exc_type, exc, tb))
    sys.excepthook = _hook
