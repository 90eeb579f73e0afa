"""One-shot DFU link initialization: open, set PRN, query MTU, size chunks.

The sequence runs at most once per link. The first ``initialize()`` call
starts it; every caller, concurrent or later, awaits the same task and sees
the same result or the same exception. Failures are terminal for the link;
retrying means building a new transport.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, cast

import msgspec
from transitions import Machine

from ..const import DEFAULT_MAX_CHUNK_SIZE, DEFAULT_RECEIPT_INTERVAL
from ..protocol.capacity import compute_app_chunk_size
from ..protocol.commands import build_request_link_mtu, build_set_receipt_interval
from ..protocol.protocol import UINT16_MAX, UINT16_STRUCT, Opcode
from ..transport.adapter import ByteStreamAdapter
from .requests import RequestCapability

logger = logging.getLogger("dfuserial.service.handshake")


class HandshakeResult(msgspec.Struct, frozen=True):
    """Link parameters negotiated by the handshake."""

    receipt_interval: int
    wire_mtu: int
    app_chunk_size: int


class HandshakeController:
    """Drive the initialization sequence for one DFU link."""

    if TYPE_CHECKING:
        # FSM generated methods and attributes for static analysis
        fsm_state: str
        start_open: Callable[[], None]
        start_configure: Callable[[], None]
        start_query: Callable[[], None]
        complete_handshake: Callable[[], None]
        fail_handshake: Callable[[], None]

    # FSM States
    STATE_UNSTARTED = "unstarted"
    STATE_OPENING = "opening"
    STATE_CONFIGURING = "configuring_receipt_interval"
    STATE_QUERYING_MTU = "querying_mtu"
    STATE_READY = "ready"
    STATE_FAILED = "failed"

    def __init__(
        self,
        *,
        adapter: ByteStreamAdapter,
        requests: RequestCapability,
        receipt_interval: int = DEFAULT_RECEIPT_INTERVAL,
        max_chunk_size: int | None = DEFAULT_MAX_CHUNK_SIZE,
        logger_: logging.Logger | None = None,
    ) -> None:
        if not 0 <= receipt_interval <= UINT16_MAX:
            raise ValueError(f"receipt_interval must be within 0..{UINT16_MAX}")
        self._adapter = adapter
        self._requests = requests
        self._receipt_interval = receipt_interval
        self._max_chunk_size = max_chunk_size
        self._logger = logger_ or logger
        self._run_task: asyncio.Task[HandshakeResult] | None = None
        self._result: HandshakeResult | None = None

        self.state_machine = Machine(
            model=self,
            states=[
                self.STATE_UNSTARTED,
                self.STATE_OPENING,
                self.STATE_CONFIGURING,
                self.STATE_QUERYING_MTU,
                self.STATE_READY,
                self.STATE_FAILED,
            ],
            initial=self.STATE_UNSTARTED,
            ignore_invalid_triggers=True,
            model_attribute="fsm_state",
        )

        self.state_machine.add_transition(
            trigger="start_open", source=self.STATE_UNSTARTED, dest=self.STATE_OPENING
        )
        self.state_machine.add_transition(
            trigger="start_configure", source=self.STATE_OPENING, dest=self.STATE_CONFIGURING
        )
        self.state_machine.add_transition(
            trigger="start_query", source=self.STATE_CONFIGURING, dest=self.STATE_QUERYING_MTU
        )
        self.state_machine.add_transition(
            trigger="complete_handshake", source=self.STATE_QUERYING_MTU, dest=self.STATE_READY
        )
        self.state_machine.add_transition(
            trigger="fail_handshake",
            source=[
                self.STATE_UNSTARTED,
                self.STATE_OPENING,
                self.STATE_CONFIGURING,
                self.STATE_QUERYING_MTU,
            ],
            dest=self.STATE_FAILED,
        )

    @property
    def state(self) -> str:
        return self.fsm_state

    @property
    def result(self) -> HandshakeResult | None:
        return self._result

    @property
    def app_chunk_size(self) -> int | None:
        return self._result.app_chunk_size if self._result else None

    async def initialize(self) -> HandshakeResult:
        if self._run_task is None:
            self._run_task = asyncio.ensure_future(self._run())
        return await asyncio.shield(self._run_task)

    async def _run(self) -> HandshakeResult:
        try:
            return await self._run_sequence()
        except Exception as exc:
            failed_in = self.fsm_state
            self.fail_handshake()
            self._logger.error("DFU handshake failed during %s: %s", failed_in, exc)
            raise

    async def _run_sequence(self) -> HandshakeResult:
        self.start_open()
        self._logger.info("Opening DFU link.")
        await self._adapter.open()

        self.start_configure()
        self._logger.info("Initializing DFU protocol (PRN=%d).", self._receipt_interval)
        await self._requests.send_command(build_set_receipt_interval(self._receipt_interval))
        check_prn = self._requests.assert_response(Opcode.SET_RECEIPT_INTERVAL.value, 0)
        check_prn(await self._requests.read_next())

        self.start_query()
        await self._requests.send_command(build_request_link_mtu())
        check_mtu = self._requests.assert_response(Opcode.REQUEST_LINK_MTU.value, 2)
        payload = check_mtu(await self._requests.read_next())
        wire_mtu = int(cast(Any, UINT16_STRUCT).parse(payload))

        app_chunk_size = compute_app_chunk_size(wire_mtu, self._max_chunk_size)
        self._result = HandshakeResult(
            receipt_interval=self._receipt_interval,
            wire_mtu=wire_mtu,
            app_chunk_size=app_chunk_size,
        )
        self.complete_handshake()
        self._logger.info(
            "Serial wire MTU: %d; un-encoded data max size: %d", wire_mtu, app_chunk_size
        )
        return self._result


__all__ = ["HandshakeController", "HandshakeResult"]
