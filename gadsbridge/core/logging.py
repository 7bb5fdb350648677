"""GADS Bridge — Structured JSON Logging with secret redaction."""

import logging
import json
import random
import re
import string
import sys
import time
from datetime import datetime, timezone
from gadsbridge.config import settings

# Credentials that must never reach a log line
REDACTION_PATTERNS = [
    re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"(access[_-]?token[\"\s:=]+)([A-Za-z0-9\-._~+/]+)", re.IGNORECASE),
    re.compile(r"(refresh[_-]?token[\"\s:=]+)([A-Za-z0-9\-._~+/]+)", re.IGNORECASE),
    re.compile(r"(api[_-]?key[\"\s:=]+)([A-Za-z0-9\-._~+/]+)", re.IGNORECASE),
    re.compile(r"(client[_-]?secret[\"\s:=]+)([A-Za-z0-9\-._~+/]+)", re.IGNORECASE),
    re.compile(
        r"(developer[_-]?token[\"\s:=]+)([A-Za-z0-9\-._~+/]+)", re.IGNORECASE
    ),
]

EXTRA_FIELDS = (
    "request_id",
    "tool_name",
    "account_id",
    "endpoint",
    "duration_ms",
    "status_code",
)


def _redact_match(match: re.Match) -> str:
    if match.re.groups >= 2:
        return f"{match.group(1)}[REDACTED]"
    return "[REDACTED]"


def redact_secrets(text: str) -> str:
    """Mask OAuth tokens, API keys and client secrets in a string."""
    for pattern in REDACTION_PATTERNS:
        text = pattern.sub(_redact_match, text)
    return text


def generate_request_id() -> str:
    """Return a correlation id like ``req_1730000000000_k3j9x0a1b``."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


class JSONFormatter(logging.Formatter):
    """Produces structured JSON log lines for production observability."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        # Attach extra fields if present
        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)
        return redact_secrets(json.dumps(log_entry, default=str))


def get_logger(name: str) -> logging.Logger:
    """Return a named logger with structured JSON handler."""
    logger = logging.getLogger(f"gadsbridge.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger
