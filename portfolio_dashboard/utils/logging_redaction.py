"""
Logging redaction helpers.
Redacts provider keys and admin tokens from log messages.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable


_PATTERNS: Iterable[tuple[re.Pattern, str]] = (
    # Finnhub key in query string: ?token=<key> / &token=<key>
    (re.compile(r"([?&]token=)([^&\s\"']+)"), r"\1[REDACTED]"),
    # Authorization: Bearer <token>
    (re.compile(r"(Bearer\s+)([A-Za-z0-9\-\._]+)"), r"\1[REDACTED]"),
    # Generic key/value pairs (api_key=..., admin_token: ...)
    (re.compile(r"(?i)(api[_-]?key|admin[_-]?token|password)\s*[:=]\s*([^\s,&]+)"), r"\1=[REDACTED]"),
    # Finnhub auth header
    (re.compile(r"(?i)(X-Finnhub-Token['\"]?\s*[:=]\s*['\"]?)([A-Za-z0-9]+)"), r"\1[REDACTED]"),
)


def redact_message(message: str) -> str:
    redacted = message
    for pattern, replacement in _PATTERNS:
        redacted = pattern.sub(replacement, redacted)
    return redacted


class RedactingFilter(logging.Filter):
    """Filter that redacts sensitive data from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
            redacted = redact_message(message)
            record.msg = redacted
            record.args = ()
        except Exception:
            # If redaction fails, allow log through unmodified
            pass
        return True


def install_redaction_filter() -> None:
    # Handler-level so records propagated from module loggers are covered too
    root = logging.getLogger()
    for handler in root.handlers:
        if any(isinstance(existing, RedactingFilter) for existing in handler.filters):
            continue
        handler.addFilter(RedactingFilter())
