"""Logging system with Rich support and secret redaction."""

import logging
import sys
from urllib.parse import quote

from rich.console import Console
from rich.logging import RichHandler

from reposync.core.config.settings import LoggingSettings, get_settings

REDACTED = "***"

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that log full command lines and request URLs at DEBUG
QUIET_LOGGERS = ("git", "httpx", "httpcore")

# Global console instance
_console: Console | None = None
_loggers: dict[str, logging.Logger] = {}


class RedactingFormatter(logging.Formatter):
    """Formatter that masks every registered secret in the final text."""

    secrets: set[str] = set()

    @classmethod
    def add_secret(cls, secret: str) -> None:
        """Register a secret in raw and URL-encoded form."""
        if secret:
            cls.secrets.update({secret, quote(secret, safe="")})

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return text


def register_secret(secret: str) -> None:
    """Keep ``secret`` out of every log handler installed by setup_logging.

    Args:
        secret: Token or password; empty values are ignored.
    """
    RedactingFormatter.add_secret(secret)


def _console_handler(settings: LoggingSettings) -> logging.Handler:
    global _console

    if not settings.use_rich:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(RedactingFormatter(settings.format))
        return handler

    _console = Console(stderr=True)
    handler = RichHandler(
        console=_console,
        show_path=False,
        show_time=True,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(RedactingFormatter("%(message)s"))
    return handler


def _file_handler(settings: LoggingSettings) -> logging.Handler:
    settings.file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(settings.file, encoding="utf-8")
    handler.setLevel(settings.level)
    handler.setFormatter(RedactingFormatter(FILE_FORMAT))
    return handler


def setup_logging(settings: LoggingSettings | None = None) -> None:
    """Configure the root logger.

    Installs a Rich (or plain stderr) handler and an optional file handler,
    both masking registered secrets, and raises the noisy third-party
    loggers to WARNING.

    Args:
        settings: Logging settings. Uses global settings if not provided.
    """
    if settings is None:
        settings = get_settings().logging

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.level)
    root_logger.handlers.clear()

    root_logger.addHandler(_console_handler(settings))
    if settings.file:
        root_logger.addHandler(_file_handler(settings))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root_logger.level))


def get_logger(name: str) -> logging.Logger:
    """Get or create a logger by name.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance; logging is set up on first use.
    """
    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)
        if not logging.getLogger().handlers:
            setup_logging()

    return _loggers[name]


def get_console() -> Console:
    """Get the global Rich console instance."""
    global _console
    if _console is None:
        _console = Console(stderr=True)
    return _console
