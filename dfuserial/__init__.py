"""Serial-link transport for Nordic-style device firmware update (DFU)."""

__version__ = "1.0.0"

from .config.settings import TransportConfig, load_config
from .errors import (
    ChannelOpenFailure,
    DfuResultError,
    DfuTransportError,
    FrameDecodeFailure,
    LinkCapacityTooSmall,
    UnexpectedResponse,
)
from .services.handshake import HandshakeResult
from .services.transport import DfuSerialTransport
from .transport.channel import ByteChannel, SerialChannel

__all__ = [
    "ByteChannel",
    "ChannelOpenFailure",
    "DfuResultError",
    "DfuSerialTransport",
    "DfuTransportError",
    "FrameDecodeFailure",
    "HandshakeResult",
    "LinkCapacityTooSmall",
    "SerialChannel",
    "TransportConfig",
    "UnexpectedResponse",
    "load_config",
]
