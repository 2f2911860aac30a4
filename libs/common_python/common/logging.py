"""Shared logging utilities.

Every service entrypoint calls `configure_logging(...)` once at startup so that:
- all services emit the same fields (timestamp, level, logger, service, request_id),
- logs are easy to correlate across requests via the `request_id` context variable,
- log level and format are configured in one place.

JSON output is the default because container log collectors parse it directly.
Plain text is available for local development (`json_logs=False`).
"""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="-")

_TEXT_FORMAT = "%(asctime)s %(levelname)s [%(service)s] [%(request_id)s] %(name)s: %(message)s"


class _ContextFilter(logging.Filter):
    """Attach the service name and the current request id to every record."""

    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service
        record.request_id = request_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """Render a log record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": getattr(record, "service", None),
            "request_id": getattr(record, "request_id", None),
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(service: str, level: str = "INFO", json_logs: bool = True) -> None:
    """Install a single stdout handler on the root logger.

    Calling this more than once replaces the previous handler, so app factories
    and tests can re-run it safely.

    Args:
        service: Name stamped on every record (e.g. "api").
        level: Root log level name.
        json_logs: Emit JSON lines when true, human-readable text otherwise.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if json_logs else logging.Formatter(_TEXT_FORMAT))
    handler.addFilter(_ContextFilter(service))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_common_logging", False):
            root.removeHandler(existing)
    handler._common_logging = True
    root.addHandler(handler)
    root.setLevel(level.upper())
