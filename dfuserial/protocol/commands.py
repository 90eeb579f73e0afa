"""Builders for the DFU commands sent over the serial link."""

from __future__ import annotations

from typing import Any, cast

import msgspec
from construct import ConstructError  # type: ignore

from .protocol import UINT8_MAX, UINT16_MAX, UINT16_STRUCT, Opcode, opcode_name


class Command(msgspec.Struct, frozen=True):
    """One request: an opcode byte followed by its payload."""

    opcode: int
    payload: bytes = b""

    def __post_init__(self) -> None:
        if not 0 <= self.opcode <= UINT8_MAX:
            raise ValueError(f"Opcode {self.opcode} outside 8-bit range")

    @property
    def name(self) -> str:
        return opcode_name(self.opcode)

    def to_bytes(self) -> bytes:
        return bytes((self.opcode,)) + self.payload


def build_write_data(data: bytes) -> Command:
    """Wrap a firmware chunk in a WRITE_DATA command.

    The chunk is not checked against the negotiated chunk size; callers
    slice data to at most ``app_chunk_size`` bytes.
    """
    return Command(opcode=Opcode.WRITE_DATA.value, payload=bytes(data))


def build_set_receipt_interval(interval: int) -> Command:
    if not 0 <= interval <= UINT16_MAX:
        raise ValueError(f"Receipt interval {interval} outside 0..{UINT16_MAX}")
    try:
        payload = cast(Any, UINT16_STRUCT).build(interval)
    except ConstructError as exc:
        raise ValueError(f"Cannot encode receipt interval {interval!r}: {exc}") from exc
    return Command(opcode=Opcode.SET_RECEIPT_INTERVAL.value, payload=payload)


def build_request_link_mtu() -> Command:
    return Command(opcode=Opcode.REQUEST_LINK_MTU.value)


__all__ = [
    "Command",
    "build_request_link_mtu",
    "build_set_receipt_interval",
    "build_write_data",
]
