"""Byte-stream adapter between a ``ByteChannel`` and the SLIP decoder."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from ..common import log_hexdump
from ..errors import ChannelOpenFailure, FrameDecodeFailure
from ..protocol.slip import SlipDecoder
from .channel import ByteChannel

MessageHandler = Callable[[bytes], None]
ErrorHandler = Callable[[FrameDecodeFailure], None]

logger = logging.getLogger("dfuserial.transport.adapter")


class ByteStreamAdapter:
    """Sole writer and listener of one link.

    Inbound chunks go through the link's single ``SlipDecoder``; complete
    messages reach the registered message handler in arrival order.
    """

    def __init__(self, channel: ByteChannel, decoder: SlipDecoder | None = None) -> None:
        self._channel = channel
        self._decoder = decoder or SlipDecoder()
        self._decoder.on_error = self._on_decode_error
        self._on_message: MessageHandler | None = None
        self._on_error: ErrorHandler | None = None
        self._open_task: asyncio.Task[None] | None = None

    @property
    def decoder(self) -> SlipDecoder:
        return self._decoder

    @property
    def is_open(self) -> bool:
        task = self._open_task
        return task is not None and task.done() and not task.cancelled() and task.exception() is None

    def set_message_handler(
        self,
        on_message: MessageHandler,
        on_error: ErrorHandler | None = None,
    ) -> None:
        if self._on_message is not None:
            raise RuntimeError("Message handler already registered for this link")
        self._on_message = on_message
        self._on_error = on_error

    async def open(self) -> None:
        """Open the channel once; later and concurrent calls share the outcome."""
        if self._open_task is None:
            self._channel.set_receive_handler(self._on_bytes)
            self._open_task = asyncio.ensure_future(self._open_channel())
        await asyncio.shield(self._open_task)

    async def _open_channel(self) -> None:
        logger.debug("Opening DFU byte channel.")
        try:
            await self._channel.open()
        except ChannelOpenFailure:
            raise
        except OSError as exc:
            raise ChannelOpenFailure(f"Could not open DFU channel: {exc}") from exc

    async def write(self, data: bytes) -> None:
        if not self.is_open:
            raise RuntimeError("DFU channel is not open")
        log_hexdump(logger, logging.DEBUG, "send -->", data)
        await self._channel.write(data)

    def _on_bytes(self, data: bytes) -> None:
        log_hexdump(logger, logging.DEBUG, "recv <--", data)
        for message in self._decoder.decode(data):
            if self._on_message is None:
                logger.warning("Dropping %d byte DFU message: no handler registered", len(message))
                continue
            self._on_message(message)

    def _on_decode_error(self, failure: FrameDecodeFailure) -> None:
        logger.warning("%s", failure)
        if self._on_error is not None:
            self._on_error(failure)


__all__ = ["ByteStreamAdapter", "ErrorHandler", "MessageHandler"]
