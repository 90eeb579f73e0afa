"""Utility helpers shared across dfuserial modules."""

from __future__ import annotations

import logging


def hex_bytes(data: bytes) -> str:
    """``b"\\x07\\xc0"`` -> ``"07 C0"``."""
    return bytes(data).hex(" ").upper()


def log_hexdump(logger_instance: logging.Logger, level: int, label: str, data: bytes) -> None:
    """Log a one-line wire trace: ``[LABEL] LEN=n HEX=..``.

    The hex string is only built when *level* is enabled.
    """
    if logger_instance.isEnabledFor(level):
        logger_instance.log(level, "[%s] LEN=%d HEX=%s", label, len(data), hex_bytes(data))


def format_hexdump(data: bytes, prefix: str = "", width: int = 16) -> str:
    """Return offset, hex and printable columns, *width* bytes per line."""
    if not data:
        return f"{prefix}<empty>"
    column = width * 3 - 1
    rows = []
    for offset in range(0, len(data), width):
        row = bytes(data[offset : offset + width])
        printable = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in row)
        rows.append(f"{prefix}{offset:04X}  {hex_bytes(row):<{column}}  |{printable}|")
    return "\n".join(rows)


def parse_hex(hex_string: str | None) -> bytes:
    """Parse a hex string such as ``"C0 01 02"`` or ``"0x0102"`` into bytes."""
    if not hex_string:
        return b""
    compact = "".join(hex_string.split())
    if compact[:2] in ("0x", "0X"):
        compact = compact[2:]
    if len(compact) % 2:
        raise ValueError("hex string must contain an even number of digits")
    try:
        return bytes.fromhex(compact)
    except ValueError as exc:
        raise ValueError(f"Invalid hex '{hex_string}': {exc}") from exc


__all__ = ["format_hexdump", "hex_bytes", "log_hexdump", "parse_hex"]
