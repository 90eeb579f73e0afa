"""Default values shared by the configuration and transport layers."""

from __future__ import annotations

from typing import Final

DEFAULT_SERIAL_PORT: Final[str] = "/dev/ttyACM0"
DEFAULT_SERIAL_BAUD: Final[int] = 115200
DEFAULT_SERIAL_OPEN_ATTEMPTS: Final[int] = 3
SERIAL_OPEN_BACKOFF_BASE: Final[float] = 0.25
SERIAL_OPEN_BACKOFF_MAX: Final[float] = 2.0

# Packets sent before the peer must emit a receipt notification.
DEFAULT_RECEIPT_INTERVAL: Final[int] = 16

# Peer firmware interop limit on un-encoded write size; None disables it.
DEFAULT_MAX_CHUNK_SIZE: Final[int | None] = 20

# Upper bound for one inbound SLIP packet before the decoder resyncs.
DEFAULT_MAX_FRAME_BYTES: Final[int] = 4096

DEFAULT_DEBUG_LOGGING: Final[bool] = False
DEFAULT_LOG_SYSLOG: Final[bool] = False

CONFIG_TABLE: Final[str] = "dfuserial"
