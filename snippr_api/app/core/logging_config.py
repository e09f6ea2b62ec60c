"""
Logging configuration for the Snippr API.

``setup_logging`` configures the root logger with a console and an
optional file handler, once per process, so building several
applications (as the test-suite does) does not duplicate handlers.

Nothing in this project logs passwords, snippet bodies, keys or token
contents.  As a backstop every handler installed here carries a
``SecretRedactingFilter``, which masks bearer tokens and
``ENCRYPTION_KEY``/``SECRET_KEY`` assignments that third party loggers
might otherwise write out.
"""

import logging
import re
from pathlib import Path
from typing import Optional

REDACTED = "[REDACTED]"

_SECRET_PATTERNS = (
    # "Authorization: Bearer <token>" and friends.
    (re.compile(r"(?i)\b(bearer\s+)[^\s,;\"']+"), r"\1" + REDACTED),
    # Anything shaped like a signed token: header.payload.signature.
    (re.compile(r"\beyJ[\w-]*\.[\w-]+\.[\w-]+"), REDACTED),
    (re.compile(r"\b((?:ENCRYPTION_KEY|SECRET_KEY)\s*[=:]\s*)\S+"), r"\1" + REDACTED),
)


def redact_secrets(text: str) -> str:
    """Return ``text`` with tokens and key assignments masked."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Mask secrets in the formatted message before it is emitted."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure root logger.

    If no handlers are attached to the root logger, attach a console
    handler and optionally a file handler, both redacting secrets.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive.
    logfile : Optional[str]
        Path to a file to log messages to.  If omitted, no file
        handler is added.
    """
    logger = logging.getLogger()
    if logger.handlers:
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handlers = [logging.StreamHandler()]
    if logfile:
        handlers.append(logging.FileHandler(Path(logfile).resolve(), encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(SecretRedactingFilter())
        logger.addHandler(handler)
