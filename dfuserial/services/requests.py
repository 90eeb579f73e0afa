"""Request/response capability used by the handshake and the write path."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from ..errors import FrameDecodeFailure
from ..protocol.commands import Command
from ..protocol.responses import ResponseCheck, assert_response
from ..protocol.slip import encode_frame
from ..transport.adapter import ByteStreamAdapter

logger = logging.getLogger("dfuserial.service.requests")

_Inbound = bytes | FrameDecodeFailure


class RequestCapability(Protocol):
    """What a DFU exchange needs from the link: send, read, validate."""

    async def send_framed(self, data: bytes) -> None: ...

    async def send_command(self, command: Command) -> None: ...

    async def read_next(self) -> bytes: ...

    def assert_response(self, opcode: int, length: int | None = None) -> ResponseCheck: ...


class RequestChannel:
    """Send framed requests and read inbound messages in arrival order.

    Decode failures are queued between messages so the reader waiting for a
    response learns that it was lost instead of waiting forever.
    """

    def __init__(self, adapter: ByteStreamAdapter) -> None:
        self._adapter = adapter
        self._inbound: asyncio.Queue[_Inbound] = asyncio.Queue()
        adapter.set_message_handler(self._on_message, self._on_decode_error)

    @property
    def pending(self) -> int:
        return self._inbound.qsize()

    async def send_framed(self, data: bytes) -> None:
        await self._adapter.write(encode_frame(data))

    async def send_command(self, command: Command) -> None:
        logger.debug("Sending %s (%d payload bytes)", command.name, len(command.payload))
        await self.send_framed(command.to_bytes())

    async def read_next(self) -> bytes:
        item = await self._inbound.get()
        if isinstance(item, FrameDecodeFailure):
            raise item
        return item

    def assert_response(self, opcode: int, length: int | None = None) -> ResponseCheck:
        return assert_response(opcode, length)

    def _on_message(self, message: bytes) -> None:
        self._inbound.put_nowait(message)

    def _on_decode_error(self, failure: FrameDecodeFailure) -> None:
        self._inbound.put_nowait(failure)


__all__ = ["RequestCapability", "RequestChannel"]
