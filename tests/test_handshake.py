"""Tests for the one-shot DFU handshake."""

from __future__ import annotations

import asyncio

import pytest

from dfuserial.errors import (
    ChannelOpenFailure,
    DfuResultError,
    FrameDecodeFailure,
    LinkCapacityTooSmall,
    UnexpectedResponse,
)
from dfuserial.protocol.commands import Command
from dfuserial.protocol.protocol import ResultCode
from dfuserial.protocol.responses import ResponseCheck, assert_response
from dfuserial.services.handshake import HandshakeController, HandshakeResult
from dfuserial.services.requests import RequestChannel
from dfuserial.transport.adapter import ByteStreamAdapter
from tests.mocks import FakeChannel, nrf_peer, response


def _controller(
    channel: FakeChannel,
    *,
    receipt_interval: int = 16,
    max_chunk_size: int | None = None,
) -> HandshakeController:
    adapter = ByteStreamAdapter(channel)
    requests = RequestChannel(adapter)
    return HandshakeController(
        adapter=adapter,
        requests=requests,
        receipt_interval=receipt_interval,
        max_chunk_size=max_chunk_size,
    )


@pytest.mark.asyncio
async def test_handshake_success(fake_channel: FakeChannel) -> None:
    controller = _controller(fake_channel)
    assert controller.state == HandshakeController.STATE_UNSTARTED

    result = await controller.initialize()

    assert result == HandshakeResult(receipt_interval=16, wire_mtu=128, app_chunk_size=60)
    assert controller.state == HandshakeController.STATE_READY
    assert controller.app_chunk_size == 60
    assert fake_channel.writes == [b"\x02\x10\x00\xc0", b"\x07\xc0"]


@pytest.mark.asyncio
async def test_handshake_logs_link_parameters(
    fake_channel: FakeChannel, caplog: pytest.LogCaptureFixture
) -> None:
    controller = _controller(fake_channel)
    with caplog.at_level("INFO", logger="dfuserial.service.handshake"):
        await controller.initialize()
    assert "Serial wire MTU: 128; un-encoded data max size: 60" in caplog.text


@pytest.mark.asyncio
async def test_cap_applied() -> None:
    channel = FakeChannel(nrf_peer(mtu=1024))
    controller = _controller(channel, max_chunk_size=20)
    result = await controller.initialize()
    assert result.wire_mtu == 1024
    assert result.app_chunk_size == 20


@pytest.mark.asyncio
async def test_concurrent_initialize_runs_once(fake_channel: FakeChannel) -> None:
    controller = _controller(fake_channel)

    first, second, third = await asyncio.gather(
        controller.initialize(), controller.initialize(), controller.initialize()
    )

    assert first is second is third
    assert fake_channel.opcodes() == [0x02, 0x07]
    assert fake_channel.open_calls == 1


@pytest.mark.asyncio
async def test_later_initialize_reuses_result(fake_channel: FakeChannel) -> None:
    controller = _controller(fake_channel)
    first = await controller.initialize()
    second = await controller.initialize()
    assert first is second
    assert len(fake_channel.writes) == 2


@pytest.mark.asyncio
async def test_bad_mtu_length_shared_by_all_waiters() -> None:
    channel = FakeChannel(nrf_peer(mtu_payload=b"\x80"))
    controller = _controller(channel)

    results = await asyncio.gather(
        controller.initialize(), controller.initialize(), return_exceptions=True
    )

    assert isinstance(results[0], UnexpectedResponse)
    assert results[0] is results[1]
    assert controller.state == HandshakeController.STATE_FAILED
    assert controller.result is None

    with pytest.raises(UnexpectedResponse):
        await controller.initialize()
    assert channel.opcodes() == [0x02, 0x07]


@pytest.mark.asyncio
async def test_prn_failure_stops_sequence() -> None:
    def _respond(request: bytes) -> list[bytes]:
        return [response(request[0], result=ResultCode.INVALID_PARAMETER)]

    channel = FakeChannel(_respond)
    controller = _controller(channel)

    with pytest.raises(DfuResultError) as excinfo:
        await controller.initialize()

    assert excinfo.value.opcode == 0x02
    assert channel.opcodes() == [0x02]
    assert controller.state == HandshakeController.STATE_FAILED


@pytest.mark.asyncio
async def test_unexpected_opcode_during_prn() -> None:
    channel = FakeChannel(lambda request: [response(0x07, b"\x80\x00")])
    controller = _controller(channel)
    with pytest.raises(UnexpectedResponse):
        await controller.initialize()
    assert channel.opcodes() == [0x02]


@pytest.mark.asyncio
async def test_link_too_small() -> None:
    channel = FakeChannel(nrf_peer(mtu=10))
    controller = _controller(channel)
    with pytest.raises(LinkCapacityTooSmall):
        await controller.initialize()
    assert controller.state == HandshakeController.STATE_FAILED


@pytest.mark.asyncio
async def test_open_failure_fails_handshake() -> None:
    channel = FakeChannel(nrf_peer())
    channel.open_error = OSError("busy")
    controller = _controller(channel)

    with pytest.raises(ChannelOpenFailure):
        await controller.initialize()

    assert controller.state == HandshakeController.STATE_FAILED
    assert channel.writes == []


@pytest.mark.asyncio
async def test_malformed_response_surfaces_to_reader() -> None:
    channel = FakeChannel()

    def _respond(request: bytes) -> list[bytes]:
        asyncio.get_running_loop().call_soon(channel.feed, b"\x60\xdb\x00\xc0")
        return []

    channel.responder = _respond
    controller = _controller(channel)

    with pytest.raises(FrameDecodeFailure):
        await controller.initialize()
    assert controller.state == HandshakeController.STATE_FAILED


@pytest.mark.asyncio
async def test_receipt_interval_zero_is_sent() -> None:
    channel = FakeChannel(nrf_peer())
    controller = _controller(channel, receipt_interval=0)
    result = await controller.initialize()
    assert result.receipt_interval == 0
    assert channel.writes[0] == b"\x02\x00\x00\xc0"


def test_receipt_interval_out_of_range() -> None:
    adapter = ByteStreamAdapter(FakeChannel())
    with pytest.raises(ValueError):
        HandshakeController(adapter=adapter, requests=RequestChannel(adapter), receipt_interval=70000)


class _ScriptedRequests:
    """Request capability replaying canned peer responses."""

    def __init__(self, replies: list[bytes]) -> None:
        self.replies = list(replies)
        self.sent: list[bytes] = []

    async def send_framed(self, data: bytes) -> None:
        self.sent.append(bytes(data))

    async def send_command(self, command: Command) -> None:
        await self.send_framed(command.to_bytes())

    async def read_next(self) -> bytes:
        return self.replies.pop(0)

    def assert_response(self, opcode: int, length: int | None = None) -> ResponseCheck:
        return assert_response(opcode, length)


@pytest.mark.asyncio
async def test_handshake_runs_over_any_request_capability() -> None:
    adapter = ByteStreamAdapter(FakeChannel())
    requests = _ScriptedRequests([response(0x02), response(0x07, b"\x40\x00")])
    controller = HandshakeController(
        adapter=adapter,
        requests=requests,
        receipt_interval=8,
        max_chunk_size=None,
    )

    result = await controller.initialize()

    assert requests.sent == [b"\x02\x08\x00", b"\x07"]
    assert result.wire_mtu == 64
    assert result.app_chunk_size == 28
