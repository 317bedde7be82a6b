"""Structured logging configuration for the DummySite Operator."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .utils.context import get_context_dict, get_correlation_id
from .utils.errors import sanitize_dict, sanitize_error_message


class JsonFormatter(logging.Formatter):
    """Render every record as one JSON document per line.

    Records emitted through ``log_resource_event`` carry their fields in
    ``record.structured``; any other record (kopf, kubernetes, urllib3) is
    wrapped with its level, logger name and message.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        structured = getattr(record, "structured", None)
        if isinstance(structured, dict):
            data.update(structured)
        else:
            data["message"] = sanitize_error_message(record.getMessage())
            corr_id = get_correlation_id()
            if corr_id:
                data["correlation_id"] = corr_id
        if record.exc_info:
            data["exc_info"] = sanitize_error_message(self.formatException(record.exc_info))
        return json.dumps(data, default=str)


def setup_structured_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
    )


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured resource event."""
    log_data = {
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
        "message": message,
    }
    log_data.update(sanitize_dict(get_context_dict(kwargs)))
    logger.log(level, message, extra={"structured": log_data})
