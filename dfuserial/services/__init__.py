"""Service layer: request capability, handshake and the transport facade."""

from .handshake import HandshakeController, HandshakeResult
from .requests import RequestCapability, RequestChannel
from .transport import DfuSerialTransport

__all__ = [
    "DfuSerialTransport",
    "HandshakeController",
    "HandshakeResult",
    "RequestCapability",
    "RequestChannel",
]
