"""Marshmallow schema for TransportConfig validation."""

from __future__ import annotations

from typing import Any, Dict

from marshmallow import Schema, ValidationError, fields, post_load, validate, validates_schema

from ..const import (
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
from .settings import TransportConfig


class TransportConfigSchema(Schema):
    """Declarative validation schema for the DFU serial transport."""

    # Serial
    serial_port = fields.Str(load_default=DEFAULT_SERIAL_PORT, validate=validate.Length(min=1))
    serial_baud = fields.Int(load_default=DEFAULT_SERIAL_BAUD, validate=validate.Range(min=300))
    serial_open_attempts = fields.Int(
        load_default=DEFAULT_SERIAL_OPEN_ATTEMPTS, validate=validate.Range(min=1)
    )

    # DFU link
    receipt_interval = fields.Int(
        load_default=DEFAULT_RECEIPT_INTERVAL, validate=validate.Range(min=0, max=UINT16_MAX)
    )
    # 0 (or null) disables the device chunk-size cap.
    max_chunk_size = fields.Int(
        load_default=DEFAULT_MAX_CHUNK_SIZE, allow_none=True, validate=validate.Range(min=0)
    )
    max_frame_bytes = fields.Int(load_default=DEFAULT_MAX_FRAME_BYTES, validate=validate.Range(min=16))

    # Logging
    debug_logging = fields.Bool(load_default=DEFAULT_DEBUG_LOGGING)
    log_syslog = fields.Bool(load_default=DEFAULT_LOG_SYSLOG)

    @validates_schema
    def validate_chunk_cap(self, data: Dict[str, Any], **kwargs: Any) -> None:
        cap = data.get("max_chunk_size")
        if cap and cap % WRITE_ALIGNMENT:
            raise ValidationError(
                f"max_chunk_size must be a multiple of {WRITE_ALIGNMENT}",
                field_name="max_chunk_size",
            )

    @post_load
    def make_config(self, data: Dict[str, Any], **kwargs: Any) -> TransportConfig:
        if not data.get("max_chunk_size"):
            data["max_chunk_size"] = None
        return TransportConfig(**data)

    def load_config(self, raw: Dict[str, Any]) -> TransportConfig:
        """Validate *raw* and return a config, raising ``ValueError`` on bad input."""
        try:
            return self.load(raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid DFU transport configuration: {exc.messages}") from exc


__all__ = ["TransportConfigSchema"]
