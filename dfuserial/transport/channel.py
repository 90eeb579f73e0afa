"""Byte channel interface and its serial-port implementation.

The DFU core only needs an event-driven duplex byte stream: open it, write
bytes to it and get called back with whatever arrives. ``SerialChannel``
provides that over pyserial-asyncio-fast with a direct asyncio Protocol,
so received chunks reach the handler without a StreamReader in between.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol, cast

import serial
import serial_asyncio_fast  # type: ignore
import tenacity

from ..const import (
    DEFAULT_SERIAL_BAUD,
    DEFAULT_SERIAL_OPEN_ATTEMPTS,
    SERIAL_OPEN_BACKOFF_BASE,
    SERIAL_OPEN_BACKOFF_MAX,
)
from ..errors import ChannelOpenFailure

ReceiveHandler = Callable[[bytes], None]

logger = logging.getLogger("dfuserial.transport.channel")


class ByteChannel(Protocol):
    """Duplex byte stream owned by the caller of the DFU transport."""

    async def open(self) -> None: ...

    async def write(self, data: bytes) -> None: ...

    def set_receive_handler(self, handler: ReceiveHandler) -> None: ...


class FlowControlMixin:
    """Implement asyncio flow control logic."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._paused = False
        self._drain_waiter: asyncio.Future[None] | None = None
        self._connection_lost = False

    def pause_writing(self) -> None:
        self._paused = True

    def resume_writing(self) -> None:
        self._paused = False
        if self._drain_waiter and not self._drain_waiter.done():
            self._drain_waiter.set_result(None)
            self._drain_waiter = None

    def connection_lost(self, exc: Exception | None) -> None:
        self._connection_lost = True
        if self._drain_waiter and not self._drain_waiter.done():
            if exc:
                self._drain_waiter.set_exception(exc)
            else:
                self._drain_waiter.set_result(None)
            self._drain_waiter = None

    async def drain_helper(self) -> None:
        if self._connection_lost:
            raise ConnectionResetError("Connection lost")
        if not self._paused:
            return
        if self._drain_waiter is None:
            self._drain_waiter = self._loop.create_future()
        await self._drain_waiter


class DfuSerialProtocol(FlowControlMixin, asyncio.Protocol):
    """Forward every received chunk to the channel's receive handler."""

    def __init__(self, channel: SerialChannel, loop: asyncio.AbstractEventLoop) -> None:
        FlowControlMixin.__init__(self, loop)
        self._channel = channel
        self.transport: asyncio.Transport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = cast(asyncio.Transport, transport)
        logger.info("Serial transport established on %s.", self._channel.port)

    def connection_lost(self, exc: Exception | None) -> None:
        logger.warning("Serial connection lost: %s", exc)
        self.transport = None
        FlowControlMixin.connection_lost(self, exc)

    def data_received(self, data: bytes) -> None:
        self._channel.dispatch(data)


def _log_open_retry(retry_state: tenacity.RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Opening serial port failed (attempt %d): %s; retrying in %.2fs",
        retry_state.attempt_number,
        exc,
        retry_state.next_action.sleep if retry_state.next_action else 0,
    )


class SerialChannel:
    """``ByteChannel`` over a local serial port (USB CDC or UART)."""

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_SERIAL_BAUD,
        *,
        open_attempts: int = DEFAULT_SERIAL_OPEN_ATTEMPTS,
    ) -> None:
        self.port = port
        self.baudrate = baudrate
        self._open_attempts = max(1, open_attempts)
        self._handler: ReceiveHandler | None = None
        self._protocol: DfuSerialProtocol | None = None
        self._open_lock: asyncio.Lock | None = None

    @property
    def is_open(self) -> bool:
        proto = self._protocol
        return proto is not None and proto.transport is not None and not proto.transport.is_closing()

    def set_receive_handler(self, handler: ReceiveHandler) -> None:
        self._handler = handler

    def dispatch(self, data: bytes) -> None:
        if self._handler is None:
            logger.warning("Dropping %d serial bytes: no receive handler registered", len(data))
            return
        self._handler(data)

    async def open(self) -> None:
        if self._open_lock is None:
            self._open_lock = asyncio.Lock()
        async with self._open_lock:
            if self.is_open:
                return
            retryer = tenacity.AsyncRetrying(
                stop=tenacity.stop_after_attempt(self._open_attempts),
                wait=tenacity.wait_exponential(
                    multiplier=SERIAL_OPEN_BACKOFF_BASE,
                    max=SERIAL_OPEN_BACKOFF_MAX,
                ),
                retry=tenacity.retry_if_exception_type(OSError),
                before_sleep=_log_open_retry,
                reraise=True,
            )
            try:
                async for attempt in retryer:
                    with attempt:
                        await self._connect()
            except OSError as exc:
                raise ChannelOpenFailure(f"Could not open serial port {self.port}: {exc}") from exc

    async def _connect(self) -> None:
        loop = asyncio.get_running_loop()
        logger.info("Connecting to %s at %d baud...", self.port, self.baudrate)
        _, proto = await serial_asyncio_fast.create_serial_connection(
            loop,
            lambda: DfuSerialProtocol(self, loop),
            self.port,
            baudrate=self.baudrate,
        )
        self._protocol = cast(DfuSerialProtocol, proto)

    async def write(self, data: bytes) -> None:
        proto = self._protocol
        if proto is None or proto.transport is None or proto.transport.is_closing():
            raise serial.SerialException(f"Serial port {self.port} is not open")
        proto.transport.write(data)
        await proto.drain_helper()

    async def close(self) -> None:
        proto = self._protocol
        self._protocol = None
        if proto is not None and proto.transport is not None:
            proto.transport.close()
            logger.info("Serial port %s closed.", self.port)


__all__ = [
    "ByteChannel",
    "DfuSerialProtocol",
    "FlowControlMixin",
    "ReceiveHandler",
    "SerialChannel",
]
