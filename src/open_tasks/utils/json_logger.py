"""
Logging setup for open-tasks: plain text or structured JSON lines.
"""

import json
import logging
import sys
import time
from typing import Any, Dict, Optional

# Record attributes lifted into the JSON payload when present
CONTEXT_FIELDS = ("ref_id", "token", "file_name", "workflow", "step_id")


class JsonFormatter(logging.Formatter):
    """Custom formatter that outputs logs as structured JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""

        payload = {
            "ts": int(time.time() * 1000),  # Unix timestamp in milliseconds
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "funcName": record.funcName,
            "lineno": record.lineno,
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        for attr in CONTEXT_FIELDS:
            value = getattr(record, attr, None)
            if value is not None:
                payload[attr] = value

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_json_logging(level: int = logging.INFO, stream=None) -> None:
    """Configure the root logger to use JSON formatting."""

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)


def configure_logging(level: str = "INFO", log_format: str = "text", stream=None) -> None:
    """Configure the root logger from config values."""
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    if log_format == "json":
        configure_json_logging(numeric_level, stream=stream)
        return

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
    )
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)


def create_workflow_logger(
    workflow_name: str, step_id: Optional[str] = None
) -> logging.LoggerAdapter:
    """Create a logger that tags every record with the workflow and step."""

    logger = logging.getLogger(f"workflow.{workflow_name}")

    class WorkflowAdapter(logging.LoggerAdapter):
        def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
            extra = dict(kwargs.get("extra") or {})
            extra.setdefault("workflow", workflow_name)
            if step_id is not None:
                extra.setdefault("step_id", step_id)
            kwargs["extra"] = extra
            return msg, kwargs

    return WorkflowAdapter(logger, {})


def log_with_context(
    logger: logging.Logger, level: int, message: str, **context: Any
) -> None:
    """Log a message with additional context fields."""

    logger.log(level, message, extra=context)
