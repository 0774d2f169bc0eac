"""Structured JSON logging for debtkit signing workflows."""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from queue import Full, Queue
from typing import Final, Iterable
from uuid import uuid4

from eth_utils import encode_hex, is_hex_address, to_checksum_address
from typing_extensions import override

LOGGER = logging.getLogger(__name__)

_STRUCTURED_RESERVED_KEYS: Final[frozenset[str]] = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
    }
)

# Context keys whose values are replaced before rendering.
_REDACTED_KEYS: Final[frozenset[str]] = frozenset(
    {"private_key", "password", "passphrase", "seed"}
)

# Context keys holding account addresses, rendered checksummed.
_ADDRESS_KEYS: Final[frozenset[str]] = frozenset({"address", "signer", "recovered"})


def _render_context_value(key: str, value: object) -> object:
    if key in _REDACTED_KEYS:
        return "[redacted]"
    if isinstance(value, (bytes, bytearray)):
        return encode_hex(bytes(value))
    if key in _ADDRESS_KEYS and isinstance(value, str) and is_hex_address(value):
        return to_checksum_address(value)
    return value


class JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def __init__(self, *, default_trace_id: str | None = None) -> None:
        super().__init__()
        self._default_trace_id = default_trace_id

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        trace_id = getattr(record, "trace_id", None) or self._default_trace_id

        exception_text: str | None = None
        if record.exc_info:
            exception_text = self.formatException(record.exc_info)
        elif record.exc_text:
            exception_text = record.exc_text

        context: dict[str, object] = {}
        for key, value in record.__dict__.items():
            if key in _STRUCTURED_RESERVED_KEYS or key == "trace_id":
                continue
            context[key] = _render_context_value(key, value)

        payload: dict[str, object] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "trace_id": trace_id,
            "context": context,
        }
        if exception_text:
            payload["exception"] = exception_text

        return json.dumps(payload, default=str)


class BoundedQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that drops records when the queue is full."""

    @override
    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except Full:
            self.handleError(record)

    @override
    def handleError(self, record: logging.LogRecord) -> None:
        return


def configure_structured_logging(
    logger: logging.Logger,
    *,
    trace_id: str | None = None,
    level: int = logging.INFO,
) -> logging.handlers.QueueListener:
    """Attach JSON output to ``logger`` through a bounded queue.

    Args:
        logger: Target logger, usually the ``debtkit`` package logger.
        trace_id: Identifier stamped on every record lacking its own. A random
            one is generated when omitted.
        level: Logging verbosity level.

    Returns:
        The started queue listener; pass it to :func:`shutdown_listeners`.
    """

    logger.setLevel(level)

    record_queue: Queue[logging.LogRecord] = Queue(maxsize=1024)
    logger.addHandler(BoundedQueueHandler(record_queue))

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(JsonFormatter(default_trace_id=trace_id or str(uuid4())))

    listener = logging.handlers.QueueListener(record_queue, stream_handler)
    listener.start()
    return listener


def shutdown_listeners(listeners: Iterable[logging.handlers.QueueListener]) -> None:
    """Stop all queue listeners while suppressing shutdown errors."""

    for listener in listeners:
        try:
            listener.stop()
        except Exception as exc:  # pragma: no cover - defensive logging cleanup
            LOGGER.warning("Failed to stop logging listener", exc_info=exc)


def detach_structured_logging(
    logger: logging.Logger, listeners: Iterable[logging.handlers.QueueListener]
) -> None:
    """Remove the queue handlers feeding ``listeners`` from ``logger``."""

    queues = [listener.queue for listener in listeners]
    for handler in list(logger.handlers):
        if isinstance(handler, BoundedQueueHandler) and any(
            handler.queue is queue for queue in queues
        ):
            logger.removeHandler(handler)
