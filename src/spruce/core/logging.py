"""
Spruce Logging - structured logging for the connection layer.

Manifesto:
    A resource-lifecycle layer is only debuggable if you can see the
    lifecycle: which context opened, which module was built, which
    resource refused to close. Every core module logs through
    ``get_logger(__name__)`` with event-style messages and key/value
    fields, so the same calls render as colored console lines in
    development and as JSON documents in production.

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="spruce")
            │
            ▼
        structlog processor chain:
          1. TimeStamper (iso)                  [add_timestamp]
          2. merge_contextvars                  bind_context / LogContext
          3. add_log_level / add_logger_name
          4. _add_service_metadata              service.name
          5. _compact_sql                       one-line, length-capped SQL
          6. _elasticsearch_compatible          JSON only
          7. JSONRenderer | ConsoleRenderer

        logger = get_logger(__name__)
        logger.debug("batch_executed", sql=stmt.sql, rows=3)

Examples:
    >>> from spruce.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", service="billing")
    >>> logger = get_logger(__name__)
    >>> logger.debug("module_created", module="Accounts")

Guardrails:
    - Service name stored globally (set once at startup)
    - Auto-detects JSON vs console based on TTY
    - ECS-compatible field names for JSON output
    - SQL text is logged, bound parameter values never are

Tags:
    logging, structlog, observability, json-logging, spruce

Doc-Types:
    - API Reference
    - Configuration Documentation
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "spruce"
_SQL_MAX_LENGTH = 200


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Stamp every event with the configured service name."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _compact_sql(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Collapse whitespace in the ``sql`` field and cap its length."""
    sql = event_dict.get("sql")
    if isinstance(sql, str):
        sql = " ".join(sql.split())
        if _SQL_MAX_LENGTH and len(sql) > _SQL_MAX_LENGTH:
            sql = sql[:_SQL_MAX_LENGTH] + "..."
        event_dict["sql"] = sql
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename timestamp/level to their ECS field names."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "spruce",
    add_timestamp: bool = True,
    sql_max_length: int = 200,
) -> None:
    """Install the spruce processor chain as the global structlog config.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: True for JSON, False for console, None to pick JSON
            whenever stdout is not a terminal
        service: Value of ``service.name`` on every event
        add_timestamp: Prepend an ISO-8601 timestamp
        sql_max_length: Cap for logged SQL text; 0 disables the cap
    """
    global _SERVICE_NAME, _SQL_MAX_LENGTH
    _SERVICE_NAME = service
    _SQL_MAX_LENGTH = sql_max_length
    numeric_level = getattr(logging, level.upper())

    if json_format is None:
        json_format = not sys.stdout.isatty()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
        _compact_sql,
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors += [_elasticsearch_compatible, structlog.processors.format_exc_info]
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def configure_from_settings(settings: Any = None) -> None:
    """Configure logging from ``SpruceSettings`` (cached settings when omitted)."""
    from spruce.core.settings import get_settings

    settings = settings or get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        service=settings.service_name,
        sql_max_length=settings.log_sql_max_length,
    )


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger named ``name`` (pass ``__name__``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach key/values to every event logged from this context-var scope.

    Example:
        bind_context(unit_of_work="nightly-close")
        logger.info("context_opened")  # carries unit_of_work
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Detach previously bound keys."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Detach every bound key."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind keys for the duration of a ``with`` block.

    Example:
        with LogContext(unit_of_work="import", batch="2026-10"):
            with database.get_context() as ctx:
                ...
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
