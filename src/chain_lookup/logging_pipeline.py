"""Structured JSON logging for chain queries.

Records emitted by :mod:`chain_lookup.service` carry the query outcome in
``extra`` (``query``, ``status``, ``result_count``, ``error``). Those fields are
lifted to the top level of each JSON line so log pipelines can filter on them
directly; any other ``extra`` keys are nested under ``context``.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from enum import Enum
from queue import Full, Queue
from typing import Iterable

from typing_extensions import override
from uuid import uuid4

LOGGER = logging.getLogger(__name__)

PACKAGE_LOGGER_NAME = "chain_lookup"

QUERY_FIELDS: tuple[str, ...] = ("query", "status", "result_count", "error")

# Attributes every LogRecord carries; never copied into the payload.
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "trace_id"}


def _plain(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    return value


class QueryJsonFormatter(logging.Formatter):
    """Render records as JSON lines with query outcome fields at the top level."""

    def __init__(self, *, trace_id: str) -> None:
        super().__init__()
        self.trace_id = trace_id

    @override
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "trace_id": getattr(record, "trace_id", None) or self.trace_id,
        }

        context: dict[str, object] = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES:
                continue
            if key in QUERY_FIELDS:
                payload[key] = _plain(value)
            else:
                context[key] = _plain(value)
        if context:
            payload["context"] = context

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            payload["exception"] = record.exc_text

        return json.dumps(payload, default=str)


class DroppingQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that never blocks a query on a full log queue."""

    @override
    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except Full:
            pass


def configure_structured_logging(
    logger: logging.Logger | None = None,
    *,
    trace_id: str | None = None,
    level: int = logging.INFO,
    queue_size: int = 1024,
) -> logging.handlers.QueueListener:
    """Emit JSON lines on stderr for ``logger`` through a bounded queue.

    Args:
        logger: Logger to configure; defaults to the ``chain_lookup`` package
            logger so every module's records are captured.
        trace_id: Identifier stamped on records that do not set their own; a
            random one is generated when omitted.
        level: Logging verbosity level.
        queue_size: Records buffered before new ones are dropped.

    Returns:
        The started queue listener; stop it with :func:`shutdown_listeners`.
    """
    target = logger or logging.getLogger(PACKAGE_LOGGER_NAME)
    target.setLevel(level)

    record_queue: Queue[logging.LogRecord] = Queue(maxsize=queue_size)
    target.addHandler(DroppingQueueHandler(record_queue))

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(QueryJsonFormatter(trace_id=trace_id or uuid4().hex))

    listener = logging.handlers.QueueListener(record_queue, stream_handler)
    listener.start()
    return listener


def shutdown_listeners(listeners: Iterable[logging.handlers.QueueListener]) -> None:
    """Stop all queue listeners, logging rather than raising on failure."""
    for listener in listeners:
        try:
            listener.stop()
        except Exception as exc:  # pragma: no cover - logging cleanup
            LOGGER.warning("Failed to stop logging listener", exc_info=exc)
