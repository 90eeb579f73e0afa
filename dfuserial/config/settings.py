"""Settings for the DFU serial transport.

Configuration comes from an optional TOML file (table ``[dfuserial]``, or
the whole document when that table is absent) plus keyword overrides, and
is validated by :class:`~dfuserial.config.schema.TransportConfigSchema`.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..const import (
    CONFIG_TABLE,
    DEFAULT_DEBUG_LOGGING,
    DEFAULT_LOG_SYSLOG,
    DEFAULT_MAX_CHUNK_SIZE,
    DEFAULT_MAX_FRAME_BYTES,
    DEFAULT_RECEIPT_INTERVAL,
    DEFAULT_SERIAL_BAUD,
    DEFAULT_SERIAL_OPEN_ATTEMPTS,
    DEFAULT_SERIAL_PORT,
)
from ..protocol.protocol import UINT16_MAX, WRITE_ALIGNMENT

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TransportConfig:
    """Strongly typed configuration for one DFU serial link."""

    serial_port: str = DEFAULT_SERIAL_PORT
    serial_baud: int = DEFAULT_SERIAL_BAUD
    serial_open_attempts: int = DEFAULT_SERIAL_OPEN_ATTEMPTS
    receipt_interval: int = DEFAULT_RECEIPT_INTERVAL
    max_chunk_size: int | None = DEFAULT_MAX_CHUNK_SIZE
    max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES
    debug_logging: bool = DEFAULT_DEBUG_LOGGING
    log_syslog: bool = DEFAULT_LOG_SYSLOG

    def __post_init__(self) -> None:
        if not self.serial_port:
            raise ValueError("serial_port must be configured")
        self.serial_baud = self._require_positive("serial_baud", self.serial_baud)
        self.serial_open_attempts = self._require_positive(
            "serial_open_attempts", self.serial_open_attempts
        )
        self.max_frame_bytes = self._require_positive("max_frame_bytes", self.max_frame_bytes)
        if not 0 <= self.receipt_interval <= UINT16_MAX:
            raise ValueError(f"receipt_interval must be within 0..{UINT16_MAX}")
        if self.max_chunk_size is not None:
            if self.max_chunk_size <= 0 or self.max_chunk_size % WRITE_ALIGNMENT:
                raise ValueError(
                    f"max_chunk_size must be a positive multiple of {WRITE_ALIGNMENT}"
                )
        if self.receipt_interval == 0:
            logger.info("Packet receipt notifications disabled (receipt_interval=0).")

    @staticmethod
    def _require_positive(name: str, value: int) -> int:
        if value <= 0:
            raise ValueError(f"{name} must be a positive integer")
        return value


def read_config_file(path: Path) -> dict[str, Any]:
    """Return the raw ``[dfuserial]`` mapping from a TOML file."""
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ValueError(f"Cannot read configuration file {path}: {exc}") from exc
    table = data.get(CONFIG_TABLE, data)
    if not isinstance(table, dict):
        raise ValueError(f"[{CONFIG_TABLE}] in {path} must be a table")
    return dict(table)


def load_config(path: Path | str | None = None, **overrides: Any) -> TransportConfig:
    """Load, merge and validate the transport configuration."""
    from .schema import TransportConfigSchema

    raw: dict[str, Any] = {}
    if path is not None:
        raw.update(read_config_file(Path(path)))
    raw.update({key: value for key, value in overrides.items() if value is not None})

    config = TransportConfigSchema().load_config(raw)
    logger.debug("Loaded DFU transport configuration: %s", config)
    return config


__all__ = ["TransportConfig", "load_config", "read_config_file"]
