"""SLIP framing for the serial DFU link.

Outgoing frames are SLIP encoded (RFC 1055) and closed with END (0xC0)
but never opened with one: the nRF bootloader's decoder mishandles a
frame that starts with END, while the END closing the previous frame
already delimits the new one. Inbound packets are split on END, so a missing or
duplicated opening END is harmless in either direction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import sliplib

from ..errors import FrameDecodeFailure
from ..const import DEFAULT_MAX_FRAME_BYTES

END: int = sliplib.END[0]

DecodeErrorHandler = Callable[[FrameDecodeFailure], None]

logger = logging.getLogger("dfuserial.protocol.slip")


def encode_frame(data: bytes) -> bytes:
    """SLIP-encode *data* and append the closing END.

    The opening END is deliberately left off. Every request carries at
    least an opcode byte, so an empty message is rejected.
    """
    message = bytes(data)
    if not message:
        raise ValueError("Cannot frame an empty DFU message")
    return sliplib.encode(message) + sliplib.END


class SlipDecoder:
    """Incremental SLIP decoder owning the receive buffer of one link."""

    def __init__(
        self,
        *,
        max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
        on_error: DecodeErrorHandler | None = None,
    ) -> None:
        if max_frame_bytes <= 0:
            raise ValueError("max_frame_bytes must be positive")
        self._buffer = bytearray()
        self._discarding = False
        self._max_frame_bytes = max_frame_bytes
        self.on_error = on_error
        self.decode_errors = 0

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()
        self._discarding = False

    def decode(self, data: bytes) -> list[bytes]:
        """Feed *data* and return every message it completes, in order."""
        data = bytes(data)
        messages: list[bytes] = []
        start = 0
        while start < len(data):
            end = data.find(END, start)
            if end == -1:
                self._accumulate(data[start:])
                break

            segment = data[start:end]
            start = end + 1
            if self._discarding:
                # Oversized packet ends here; next byte starts a fresh frame.
                self._discarding = False
                self._buffer.clear()
                continue

            self._buffer.extend(segment)
            if not self._buffer:
                continue
            packet = bytes(self._buffer)
            self._buffer.clear()

            if len(packet) > self._max_frame_bytes:
                self._report(FrameDecodeFailure(f"SLIP packet too large ({len(packet)} bytes)", packet))
                continue
            try:
                messages.append(sliplib.decode(packet))
            except sliplib.ProtocolError as exc:
                self._report(FrameDecodeFailure(f"Malformed SLIP packet: {exc}", packet))
        return messages

    def _accumulate(self, tail: bytes) -> None:
        if self._discarding:
            return
        self._buffer.extend(tail)
        if len(self._buffer) > self._max_frame_bytes:
            packet = bytes(self._buffer)
            self._buffer.clear()
            self._discarding = True
            self._report(
                FrameDecodeFailure(
                    f"SLIP packet exceeds {self._max_frame_bytes} bytes without END; discarding",
                    packet,
                )
            )

    def _report(self, failure: FrameDecodeFailure) -> None:
        self.decode_errors += 1
        if self.on_error is None:
            logger.warning("%s", failure)
            return
        self.on_error(failure)


__all__ = ["END", "SlipDecoder", "encode_frame"]
