"""Logging filters that scrub guest contact details and payment references."""

from __future__ import annotations

import logging
import re

_SENSITIVE_PATTERN = re.compile(
    r"(guest_phone\"?\s*[:=]\s*\"?[^\",\s}]+"
    r"|guest_email\"?\s*[:=]\s*\"?[^\",\s}]+"
    r"|payment_reference\"?\s*[:=]\s*\"?[^\",\s}]+"
    r"|[\w.+-]+@[\w-]+\.[\w.-]+"
    r"|(?<!\d)\+?\d{10,14}(?!\d))",
    re.IGNORECASE,
)


def redact(message: str) -> str:
    """Replace phone numbers, emails and payment references with a marker."""
    return _SENSITIVE_PATTERN.sub("**REDACTED**", message)


class SensitiveFilter(logging.Filter):
    """Replace sensitive tokens in log messages with a redaction marker."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        return True


__all__ = ["SensitiveFilter", "redact"]
