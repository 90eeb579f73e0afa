"""Exception hierarchy for the DFU serial transport."""

from __future__ import annotations


class DfuTransportError(Exception):
    """Base class for every error raised by dfuserial."""


class ChannelOpenFailure(DfuTransportError):
    """Raised when the underlying byte channel cannot be opened."""


class FrameDecodeFailure(DfuTransportError):
    """Raised (or reported) for a malformed SLIP packet."""

    def __init__(self, message: str, packet: bytes = b"") -> None:
        super().__init__(message)
        self.packet = packet


class UnexpectedResponse(DfuTransportError):
    """Raised when a response does not match the request that was sent."""


class DfuResultError(UnexpectedResponse):
    """The peer answered with a non-success result code."""

    def __init__(
        self,
        message: str,
        *,
        opcode: int,
        result_code: int,
        extended_error: int | None = None,
    ) -> None:
        super().__init__(message)
        self.opcode = opcode
        self.result_code = result_code
        self.extended_error = extended_error


class LinkCapacityTooSmall(DfuTransportError):
    """The reported wire MTU leaves no room for application data."""

    def __init__(self, wire_mtu: int, app_chunk_size: int) -> None:
        super().__init__(
            f"Wire MTU {wire_mtu} yields unusable chunk size {app_chunk_size}"
        )
        self.wire_mtu = wire_mtu
        self.app_chunk_size = app_chunk_size


__all__ = [
    "ChannelOpenFailure",
    "DfuResultError",
    "DfuTransportError",
    "FrameDecodeFailure",
    "LinkCapacityTooSmall",
    "UnexpectedResponse",
]
