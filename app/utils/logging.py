"""
Logging configuration with optional JSON output and per-call context.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, MutableMapping, Tuple

from app.utils.ids import current_request_id

SERVICE_NAME = "kb-freelance-api"

# Extra fields copied into JSON log lines when present on the record
CONTEXT_FIELDS = (
    "request_id",
    "path",
    "status",
    "duration_ms",
    "tool",
    "operation",
    "command",
    "cwd",
    "exit_code",
    "output_format",
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
            "service": SERVICE_NAME,
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_obj[field] = getattr(record, field)

        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


class CallLogger(logging.LoggerAdapter):
    """
    Logger bound to one adapter call.
    Merges the bound context and the current request id into every record's extra.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        req_id = current_request_id.get()
        if req_id:
            extra.setdefault("request_id", req_id)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def call_logger(logger: logging.Logger, **context: Any) -> CallLogger:
    """Bind context such as tool/operation to a logger for one call."""
    return CallLogger(logger, context)


def configure_logging(level: int | str = logging.INFO, use_json: bool = False) -> None:
    """
    Configure root logging.
    Plain text by default; JSON lines when use_json is set (LOG_JSON=true).
    """
    handler = logging.StreamHandler(sys.stdout)

    if use_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )

    logging.basicConfig(
        level=level,
        handlers=[handler],
    )
