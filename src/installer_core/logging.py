from __future__ import annotations

import logging
import re
import sys
from typing import Any


_REDACT_PATTERN = re.compile(r"(?i)(authorization|token|api_key|password)=([^\s,;]+)")

LOG_LEVEL_CHOICES = ("debug", "info", "warning", "error")


class StructuredLogDefaultsFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        defaults: dict[str, Any] = {
            "step": "",
            "operation": "",
            "result": "",
            "duration_ms": 0,
            "error_class": "",
        }
        for key, value in defaults.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        try:
            message = record.getMessage()
        except Exception:
            return True
        lowered = message.lower()
        if any(secret_key in lowered for secret_key in ("authorization", "token", "api_key", "password")):
            record.msg = _REDACT_PATTERN.sub(r"\1=[redacted]", message)
            record.args = ()
        return True


def structured_formatter() -> logging.Formatter:
    return logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s: "
        "step=%(step)s operation=%(operation)s result=%(result)s "
        "duration_ms=%(duration_ms)s error_class=%(error_class)s %(message)s"
    )


def normalize_log_level(value: Any) -> str:
    level = str(value or "").strip().lower()
    if level == "warn":
        level = "warning"
    if level not in LOG_LEVEL_CHOICES:
        return ""
    return level


def configure_structured_logger(logger: logging.Logger, *, level: str) -> None:
    handler = logging.StreamHandler(sys.__stderr__)
    handler.addFilter(StructuredLogDefaultsFilter())
    handler.setFormatter(structured_formatter())
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, str(level or "info").upper(), logging.INFO))
    logger.propagate = False
