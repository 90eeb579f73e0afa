"""Logging setup for dfuserial.

Every record becomes one JSON object per line. Values passed through
``extra=`` travel under ``"extra"``; wire bytes among them are rendered as
spaced uppercase hex (``"07 C0"``) so traces stay readable and exact.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from logging.config import dictConfig
from logging.handlers import SysLogHandler
from pathlib import Path
from typing import Any

import msgspec

from .settings import TransportConfig

LOGGER_NAMESPACE = "dfuserial"
SYSLOG_SOCKETS: tuple[Path, ...] = (Path("/dev/log"), Path("/var/run/log"))
# Set to force a stream handler even when syslog is requested.
STREAM_OVERRIDE_ENV = "DFUSERIAL_LOG_STREAM"

# Attributes present on every LogRecord; anything else came in via ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def _jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex(" ").upper()
    return value


class JsonLogFormatter(logging.Formatter):
    """Render records as compact JSON with the package prefix trimmed."""

    _encoder = msgspec.json.Encoder(enc_hook=repr)

    def format(self, record: logging.LogRecord) -> str:
        source = record.name
        if source.startswith(LOGGER_NAMESPACE + "."):
            source = source[len(LOGGER_NAMESPACE) + 1 :]

        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc),
            "level": record.levelname,
            "logger": source,
            "message": record.getMessage(),
        }
        extra = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            entry["extra"] = extra
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return self._encoder.encode(entry).decode("utf-8")


def build_handler(use_syslog: bool = False) -> logging.Handler:
    """Syslog handler when requested and a socket exists, else stderr."""
    if use_syslog and not os.environ.get(STREAM_OVERRIDE_ENV):
        socket_path = next((path for path in SYSLOG_SOCKETS if path.exists()), None)
        if socket_path is not None:
            handler = SysLogHandler(address=str(socket_path), facility=SysLogHandler.LOG_USER)
            handler.ident = f"{LOGGER_NAMESPACE} "
            return handler
    return logging.StreamHandler()


def configure_logging(config: TransportConfig) -> None:
    """Route dfuserial logs through one JSON handler.

    The ``dfuserial`` logger runs at DEBUG or INFO depending on
    ``config.debug_logging``; other libraries stay at WARNING.
    """
    level = logging.DEBUG if config.debug_logging else logging.INFO
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": JsonLogFormatter}},
            "handlers": {
                "dfuserial": {
                    "()": build_handler,
                    "use_syslog": config.log_syslog,
                    "formatter": "json",
                }
            },
            "loggers": {LOGGER_NAMESPACE: {"level": level}},
            "root": {"level": logging.WARNING, "handlers": ["dfuserial"]},
        }
    )
    logging.getLogger(LOGGER_NAMESPACE).debug("Debug logging enabled")


__all__ = ["JsonLogFormatter", "build_handler", "configure_logging"]
