"""Wire constants and binary layouts for the serial DFU protocol."""

from __future__ import annotations

from enum import IntEnum
from typing import Final

from construct import Int8ul, Int16ul, Struct as BinStruct  # type: ignore

UINT16_MAX: Final[int] = 0xFFFF
UINT8_MAX: Final[int] = 0xFF

# First byte of every message sent by the peer.
RESPONSE_MARKER: Final[int] = 0x60

# Bytes subtracted from half the wire MTU: SLIP END plus the write opcode.
WRITE_OVERHEAD: Final[int] = 2
# Flash writes must be word aligned on most targets.
WRITE_ALIGNMENT: Final[int] = 4

UINT16_STRUCT: Final = Int16ul

RESPONSE_HEADER_STRUCT: Final = BinStruct(
    "marker" / Int8ul,
    "opcode" / Int8ul,
    "result" / Int8ul,
)
RESPONSE_HEADER_SIZE: Final[int] = 3


class Opcode(IntEnum):
    """Request opcodes used by the serial transport."""

    SET_RECEIPT_INTERVAL = 0x02
    REQUEST_LINK_MTU = 0x07
    WRITE_DATA = 0x08


class ResultCode(IntEnum):
    """Result byte carried in every response."""

    INVALID_OPCODE = 0x00
    SUCCESS = 0x01
    OPCODE_NOT_SUPPORTED = 0x02
    INVALID_PARAMETER = 0x03
    INSUFFICIENT_RESOURCES = 0x04
    INVALID_OBJECT = 0x05
    UNSUPPORTED_TYPE = 0x07
    OPERATION_NOT_PERMITTED = 0x08
    OPERATION_FAILED = 0x0A
    EXTENDED_ERROR = 0x0B


class ExtendedError(IntEnum):
    """Detail byte following an EXTENDED_ERROR result."""

    NO_ERROR = 0x00
    INVALID_ERROR_CODE = 0x01
    WRONG_COMMAND_FORMAT = 0x02
    UNKNOWN_COMMAND = 0x03
    INIT_COMMAND_INVALID = 0x04
    FW_VERSION_FAILURE = 0x05
    HW_VERSION_FAILURE = 0x06
    SD_VERSION_FAILURE = 0x07
    SIGNATURE_MISSING = 0x08
    WRONG_HASH_TYPE = 0x09
    HASH_FAILED = 0x0A
    WRONG_SIGNATURE_TYPE = 0x0B
    VERIFICATION_FAILED = 0x0C
    INSUFFICIENT_SPACE = 0x0D


def opcode_name(value: int) -> str:
    try:
        return Opcode(value).name
    except ValueError:
        return f"0x{value:02X}"


def result_name(value: int) -> str:
    try:
        return ResultCode(value).name
    except ValueError:
        return f"UNKNOWN(0x{value:02X})"


def extended_error_name(value: int) -> str:
    try:
        return ExtendedError(value).name
    except ValueError:
        return f"UNKNOWN(0x{value:02X})"
