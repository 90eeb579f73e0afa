"""Validation of peer responses.

Every response starts with a three byte header::

    [0x60] [request opcode] [result code] [payload ...]

On EXTENDED_ERROR the first payload byte carries the extended error code.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, cast

from construct import ConstructError  # type: ignore

from ..errors import DfuResultError, UnexpectedResponse
from .protocol import (
    RESPONSE_HEADER_SIZE,
    RESPONSE_HEADER_STRUCT,
    RESPONSE_MARKER,
    ResultCode,
    extended_error_name,
    opcode_name,
    result_name,
)

ResponseCheck = Callable[[bytes], bytes]


def _raise_result_error(opcode: int, result: int, message: bytes) -> None:
    if result == ResultCode.EXTENDED_ERROR:
        extended = message[RESPONSE_HEADER_SIZE] if len(message) > RESPONSE_HEADER_SIZE else None
        detail = extended_error_name(extended) if extended is not None else "missing"
        raise DfuResultError(
            f"{opcode_name(opcode)} failed with extended error {detail}",
            opcode=opcode,
            result_code=result,
            extended_error=extended,
        )
    raise DfuResultError(
        f"{opcode_name(opcode)} failed with result {result_name(result)}",
        opcode=opcode,
        result_code=result,
    )


def validate_response(message: bytes, expected_opcode: int, expected_length: int | None) -> bytes:
    """Check *message* against the request it answers and return its payload."""
    if not message:
        raise UnexpectedResponse(f"Empty response while waiting for {opcode_name(expected_opcode)}")
    if len(message) < RESPONSE_HEADER_SIZE:
        raise UnexpectedResponse(
            f"Truncated response ({len(message)} bytes) for {opcode_name(expected_opcode)}"
        )

    try:
        header: Any = cast(Any, RESPONSE_HEADER_STRUCT).parse(message[:RESPONSE_HEADER_SIZE])
    except ConstructError as exc:
        raise UnexpectedResponse(f"Unparseable response header: {exc}") from exc

    if header.marker != RESPONSE_MARKER:
        raise UnexpectedResponse(
            f"Response does not start with 0x{RESPONSE_MARKER:02X} (got 0x{header.marker:02X})"
        )
    if header.opcode != expected_opcode:
        raise UnexpectedResponse(
            f"Expected response to {opcode_name(expected_opcode)}, "
            f"got response to {opcode_name(header.opcode)}"
        )
    if header.result != ResultCode.SUCCESS:
        _raise_result_error(header.opcode, header.result, message)

    payload = message[RESPONSE_HEADER_SIZE:]
    if expected_length is not None and len(payload) != expected_length:
        raise UnexpectedResponse(
            f"{opcode_name(expected_opcode)} response payload is {len(payload)} bytes, "
            f"expected {expected_length}"
        )
    return payload


def assert_response(expected_opcode: int, expected_length: int | None = None) -> ResponseCheck:
    """Return a callable validating the response to *expected_opcode*."""

    def _check(message: bytes) -> bytes:
        return validate_response(message, expected_opcode, expected_length)

    return _check


__all__ = ["ResponseCheck", "assert_response", "validate_response"]
