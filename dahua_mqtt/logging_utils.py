"""
Structured Logging Utilities
=============================

Logging setup for the bridge: human-readable lines for a terminal,
JSON lines (python-json-logger) for log aggregation.

- trace_context: tags every log record emitted inside a camera's task
- setup_structured_logging: configures the root logger once, at startup
- ComponentLogger: LoggerAdapter that adds the 'component' field

Direct logger.info(msg, extra={...}) is preferred over helper wrappers.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Optional

# ============================================================================
# Trace Context
# ============================================================================

# ContextVar values are copied into each asyncio task, so a trace set while
# setting up one camera never leaks into another camera's task.
trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)


def get_trace_id() -> Optional[str]:
    """Return the trace_id of the current context, or None."""
    return trace_id_var.get()


def generate_trace_id(prefix: str = "trace") -> str:
    """
    Generate a new unique trace ID.

    Args:
        prefix: Prefix for the trace ID (e.g. "cam", "bridge")

    Returns:
        Trace ID formatted as {prefix}-{short_uuid}
    """
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def trace_context(trace_id: Optional[str] = None):
    """
    Propagate a trace_id through everything executed inside the block.

    Args:
        trace_id: Trace to propagate. A random one is generated when None.

    Usage:
        with trace_context(f"cam-{address.host}"):
            await setup_camera(address)
    """
    if trace_id is None:
        trace_id = generate_trace_id()

    token = trace_id_var.set(trace_id)
    try:
        yield trace_id
    finally:
        trace_id_var.reset(token)


# ============================================================================
# Logger Setup
# ============================================================================

class HumanReadableFormatter(logging.Formatter):
    """Fixed-width columns: time | level | component | event | message."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(component)-12s | %(event)-22s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "component"):
            record.component = record.name.split(".")[-1]
        if not hasattr(record, "event"):
            record.event = "-"
        return super().format(record)


class AutoFlushStreamHandler(logging.StreamHandler):
    """StreamHandler that flushes after every emit."""

    def emit(self, record):
        super().emit(record)
        self.flush()


def _json_formatter(indent: Optional[int]) -> logging.Formatter:
    from pythonjsonlogger import jsonlogger

    class BridgeJsonFormatter(jsonlogger.JsonFormatter):
        def add_fields(self, log_record, record, message_dict):
            super().add_fields(log_record, record, message_dict)

            if "levelname" in log_record:
                log_record["level"] = log_record.pop("levelname")

            if "name" in log_record:
                log_record["logger"] = log_record.pop("name")

            current_trace_id = get_trace_id()
            if current_trace_id and "trace_id" not in log_record:
                log_record["trace_id"] = current_trace_id

    return BridgeJsonFormatter(
        "%(timestamp)s %(levelname)s %(name)s %(message)s",
        timestamp=True,
        json_indent=indent,
    )


def setup_structured_logging(
    level: str = "INFO",
    json_format: bool = False,
    indent: Optional[int] = None,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name, case-insensitive (debug, info, warning, warn, error)
        json_format: If True, emit one JSON object per line
        indent: JSON indent for pretty-printing (None = compact)

    Raises:
        ValueError: If level is not a known logging level name
    """
    level_name = level.upper()
    if level_name == "WARN":
        level_name = "WARNING"
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    formatter = _json_formatter(indent) if json_format else HumanReadableFormatter()

    handler = AutoFlushStreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)


# ============================================================================
# ComponentLogger
# ============================================================================

class ComponentLogger(logging.LoggerAdapter):
    """
    Logger adapter that adds 'component' and 'trace_id' fields.

    Usage:
        >>> logger = ComponentLogger(logging.getLogger(__name__), {"component": "relay"})
        >>> logger.info("Published", extra={"event": "alarm_published", "topic": topic})

    Order of precedence (highest to lowest):
    1. User-provided extra
    2. Adapter extra (component)
    3. Trace ID from context
    """

    def process(self, msg, kwargs):
        extra = dict(self.extra)

        trace_id = get_trace_id()
        if trace_id:
            extra["trace_id"] = trace_id

        if "extra" in kwargs:
            extra.update(kwargs["extra"])

        kwargs["extra"] = extra
        return msg, kwargs


def get_component_logger(name: str, component: str) -> ComponentLogger:
    """
    Get a logger that stamps every record with the given component.

    Args:
        name: Logger name (usually __name__)
        component: Component name (e.g. "bridge", "camera", "relay")
    """
    return ComponentLogger(logging.getLogger(name), {"component": component})


__all__ = [
    "setup_structured_logging",
    "trace_context",
    "get_trace_id",
    "generate_trace_id",
    "ComponentLogger",
    "get_component_logger",
]
