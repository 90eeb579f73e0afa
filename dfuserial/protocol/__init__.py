"""Protocol layer: SLIP framing, command builders, responses and sizing."""

from .capacity import compute_app_chunk_size
from .commands import (
    Command,
    build_request_link_mtu,
    build_set_receipt_interval,
    build_write_data,
)
from .protocol import ExtendedError, Opcode, ResultCode
from .responses import assert_response, validate_response
from .slip import SlipDecoder, encode_frame

__all__ = [
    "Command",
    "ExtendedError",
    "Opcode",
    "ResultCode",
    "SlipDecoder",
    "assert_response",
    "build_request_link_mtu",
    "build_set_receipt_interval",
    "build_write_data",
    "compute_app_chunk_size",
    "encode_frame",
    "validate_response",
]
