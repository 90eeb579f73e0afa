"""Transport abstractions (byte channel, serial port, adapter) for dfuserial."""

from .adapter import ByteStreamAdapter
from .channel import ByteChannel, SerialChannel

__all__ = [
    "ByteChannel",
    "ByteStreamAdapter",
    "SerialChannel",
]
