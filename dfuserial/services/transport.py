"""Serial DFU transport: one link, its handshake and the data write path."""

from __future__ import annotations

import logging

from ..config.settings import TransportConfig
from ..protocol.commands import Command, build_write_data
from ..protocol.responses import ResponseCheck
from ..protocol.slip import SlipDecoder
from ..transport.adapter import ByteStreamAdapter
from ..transport.channel import ByteChannel, SerialChannel
from .handshake import HandshakeController, HandshakeResult
from .requests import RequestChannel

logger = logging.getLogger("dfuserial.service.transport")


class DfuSerialTransport:
    """Serial DFU transport over a caller-owned ``ByteChannel``.

    Usage::

        transport = DfuSerialTransport(channel)
        result = await transport.initialize()
        for offset in range(0, len(image), result.app_chunk_size):
            await transport.send_data_chunk(image[offset : offset + result.app_chunk_size])

    Receipt notifications, CRC checks and object sequencing belong to the
    caller, which uses ``read_next``/``assert_response`` for them. The
    channel is never closed here.
    """

    def __init__(self, channel: ByteChannel, config: TransportConfig | None = None) -> None:
        self.config = config or TransportConfig()
        self.channel = channel
        self.adapter = ByteStreamAdapter(
            channel,
            SlipDecoder(max_frame_bytes=self.config.max_frame_bytes),
        )
        self.requests = RequestChannel(self.adapter)
        self.handshake = HandshakeController(
            adapter=self.adapter,
            requests=self.requests,
            receipt_interval=self.config.receipt_interval,
            max_chunk_size=self.config.max_chunk_size,
        )

    @classmethod
    def from_config(cls, config: TransportConfig) -> DfuSerialTransport:
        channel = SerialChannel(
            config.serial_port,
            config.serial_baud,
            open_attempts=config.serial_open_attempts,
        )
        return cls(channel, config)

    @property
    def app_chunk_size(self) -> int | None:
        return self.handshake.app_chunk_size

    @property
    def wire_mtu(self) -> int | None:
        result = self.handshake.result
        return result.wire_mtu if result else None

    async def initialize(self) -> HandshakeResult:
        return await self.handshake.initialize()

    async def send_data_chunk(self, data: bytes) -> None:
        result = await self.initialize()
        if len(data) > result.app_chunk_size:
            raise ValueError(
                f"Chunk of {len(data)} bytes exceeds negotiated size {result.app_chunk_size}"
            )
        await self.requests.send_command(build_write_data(data))

    async def send_command(self, command: Command) -> None:
        await self.requests.send_command(command)

    async def read_next(self) -> bytes:
        return await self.requests.read_next()

    def assert_response(self, opcode: int, length: int | None = None) -> ResponseCheck:
        return self.requests.assert_response(opcode, length)


__all__ = ["DfuSerialTransport"]
