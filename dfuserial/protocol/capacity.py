"""Conversion of the peer's wire MTU into a safe write chunk size."""

from __future__ import annotations

from ..errors import LinkCapacityTooSmall
from .protocol import WRITE_ALIGNMENT, WRITE_OVERHEAD


def compute_app_chunk_size(wire_mtu: int, max_chunk_size: int | None = None) -> int:
    """Return the largest data chunk that fits the link after framing.

    SLIP can double every byte, so only half the wire MTU is usable; the
    closing END and the WRITE_DATA opcode take two more bytes. The result
    is rounded down to a multiple of four so flash writes stay aligned,
    then clamped to *max_chunk_size* when one is given.

    Raises:
        LinkCapacityTooSmall: if no data byte would fit.
        ValueError: if *max_chunk_size* is not a positive multiple of 4.
    """
    if max_chunk_size is not None and (max_chunk_size <= 0 or max_chunk_size % WRITE_ALIGNMENT):
        raise ValueError(
            f"max_chunk_size must be a positive multiple of {WRITE_ALIGNMENT}, got {max_chunk_size}"
        )

    raw = wire_mtu // 2 - WRITE_OVERHEAD
    aligned = raw - raw % WRITE_ALIGNMENT
    chunk = aligned if max_chunk_size is None else min(aligned, max_chunk_size)
    if chunk <= 0:
        raise LinkCapacityTooSmall(wire_mtu, chunk)
    return chunk


__all__ = ["compute_app_chunk_size"]
