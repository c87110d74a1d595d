"""Root logging setup for the worker.

JSON output carries the execution and step being processed, taken from
context variables the executor and interpreter set around each run and step.
"""

from __future__ import annotations

import contextvars
import logging
import sys

from pythonjsonlogger import jsonlogger

ctx_execution_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "execution_id", default=None
)
ctx_step_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("step_id", default=None)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"

_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "asyncio")


class ExecutionJsonFormatter(jsonlogger.JsonFormatter):
    """Adds ``execution_id`` / ``step_id`` to each record when they are set."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        for field, var in (("execution_id", ctx_execution_id), ("step_id", ctx_step_id)):
            value = var.get()
            if value:
                log_record[field] = value


def setup_logger(log_format: str = "text", log_level: str = "INFO") -> logging.Logger:
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    if log_format.lower() == "json":
        handler.setFormatter(
            ExecutionJsonFormatter(
                JSON_FIELDS, rename_fields={"levelname": "level", "asctime": "timestamp"}
            )
        )
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logging.getLogger("rpaworker")
