"""
Structured Logging

Every record is one JSON line with five fixed fields (ts, level, module,
action, msg) followed by free-form context. Set LOG_FORMAT=pretty for a
single-line human format during development.

LOKI QUERIES
============
# All errors
{project="testdesign"} | json | level="ERROR"

# Every generation attempt that needed a retry
{project="testdesign"} | json | module="llm.invoker" action="retry_start"

# Track a single design end-to-end
{project="testdesign"} | json | design_id="<uuid>"

# Provider failures while listing models
{project="testdesign"} | json | module="llm.registry" action="list_failed"

USAGE
=====
from testdesign.utils.logging import log, get_logger

MODULE = "design"
logger = get_logger()

log.info(logger, MODULE, "generate_start", "Generating test design",
         suite=suite_name, model=model_id)

The first four arguments are positional-only, so any context key is allowed.
A context key that shadows a fixed field is written as ``ctx_<key>``.

ACTION NAMING
=============
  *_start      beginning of an operation
  *_done       successful completion
  *_failed     error/failure
  *_skipped    intentionally skipped
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional

APP_LOGGER_NAME = "testdesign"
RESERVED_FIELDS = ("ts", "level", "module", "action", "msg")

# Noisy third-party loggers, capped at WARNING
QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "sqlalchemy",
    "asyncpg",
    "uvicorn.access",  # duplicates our own route logging
    "asyncio",
)


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def _merge_context(data: dict[str, Any], context: dict[str, Any]) -> dict[str, Any]:
    for key, value in context.items():
        if value is None:
            continue
        data[f"ctx_{key}" if key in RESERVED_FIELDS else key] = value
    return data


class StructuredFormatter(logging.Formatter):
    """JSON (or pretty) formatter for log shipping."""

    def __init__(self, pretty: bool = False):
        super().__init__()
        self.pretty = pretty

    def format(self, record: logging.LogRecord) -> str:
        structured = getattr(record, "_structured", False)
        data = {
            "ts": _timestamp(),
            "level": record.levelname,
            "module": record._module if structured else record.name,
            "action": record._action if structured else "log",
            "msg": record.getMessage(),
        }
        if structured:
            _merge_context(data, record._extra)

        if self.pretty:
            # Third-party records stay as their bare message
            return self._pretty(data) if structured else data["msg"]
        return json.dumps(data, default=str, separators=(",", ":"), ensure_ascii=False)

    @staticmethod
    def _pretty(data: dict) -> str:
        ts = data["ts"][11:23]  # HH:MM:SS.mmm
        mod = data["module"].upper()[:12].ljust(12)
        head = f"{ts} {data['level'][0]} [{mod}] {data['action']}: {data['msg']}"
        ctx = " ".join(f"{k}={v}" for k, v in data.items() if k not in RESERVED_FIELDS)
        return f"{head} | {ctx}" if ctx else head


class StructuredLogger:
    """Level methods taking (logger, module, action, msg, **context)."""

    def _log(
        self,
        logger: logging.Logger,
        level: int,
        module: str,
        action: str,
        msg: str,
        /,
        **context: Any,
    ) -> None:
        logger.log(level, msg, extra={
            "_structured": True,
            "_module": module,
            "_action": action,
            "_extra": context,
        })

    def debug(self, logger: logging.Logger, module: str, action: str, msg: str, /, **context: Any) -> None:
        self._log(logger, logging.DEBUG, module, action, msg, **context)

    def info(self, logger: logging.Logger, module: str, action: str, msg: str, /, **context: Any) -> None:
        self._log(logger, logging.INFO, module, action, msg, **context)

    def warning(self, logger: logging.Logger, module: str, action: str, msg: str, /, **context: Any) -> None:
        self._log(logger, logging.WARNING, module, action, msg, **context)

    def error(
        self,
        logger: logging.Logger,
        module: str,
        action: str,
        msg: str,
        /,
        error: Optional[str] = None,
        error_type: Optional[str] = None,
        **context: Any,
    ) -> None:
        self._log(
            logger, logging.ERROR, module, action, msg,
            error=error, error_type=error_type, **context,
        )


# Singleton instance, import this everywhere
log = StructuredLogger()


def get_logger() -> logging.Logger:
    """The shared application logger."""
    return logging.getLogger(APP_LOGGER_NAME)


def configure_logging() -> None:
    """Install the structured formatter on the root logger. Call once at startup.

    Reads LOG_FORMAT ("json" or "pretty") and LOG_LEVEL (default INFO).
    """
    pretty = os.environ.get("LOG_FORMAT", "json") == "pretty"
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter(pretty=pretty))
    logging.basicConfig(level=level, handlers=[handler], force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
