"""Frame inspection utility for DFU serial developers.

Builds DFU commands and prints the exact bytes the transport would put on
the wire, or decodes captured wire bytes (e.g. from a logic analyser or a
``send -->``/``recv <--`` debug log) back into messages::

    python -m dfuserial.tools.frame_debug -c SET_RECEIPT_INTERVAL -p "10 00"
    python -m dfuserial.tools.frame_debug --decode "60 07 01 00 02 C0"
    python -m dfuserial.tools.frame_debug --config dfuserial.toml --debug -d "..."
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass

from dfuserial.common import format_hexdump, hex_bytes, parse_hex
from dfuserial.config.logging import configure_logging
from dfuserial.config.settings import load_config
from dfuserial.const import DEFAULT_MAX_FRAME_BYTES
from dfuserial.errors import FrameDecodeFailure, UnexpectedResponse
from dfuserial.protocol.commands import Command
from dfuserial.protocol.protocol import (
    RESPONSE_HEADER_SIZE,
    RESPONSE_MARKER,
    Opcode,
    opcode_name,
)
from dfuserial.protocol.responses import validate_response
from dfuserial.protocol.slip import SlipDecoder, encode_frame

logger = logging.getLogger("dfuserial.tools.frame_debug")


@dataclass(slots=True)
class FrameDebugSnapshot:
    opcode: int
    opcode_name: str
    payload_length: int
    raw_length: int
    expected_serial_bytes: int
    encoded_packet: bytes
    raw_hex: str
    encoded_hex: str

    def render(self) -> str:
        return (
            "[FrameDebug] --- Snapshot ---\n"
            f"opcode=0x{self.opcode:02X} ({self.opcode_name})\n"
            f"payload_len={self.payload_length}\n"
            f"raw_len={self.raw_length}\n"
            f"expected_serial_bytes={self.expected_serial_bytes}\n"
            f"raw={self.raw_hex}\n"
            f"encoded={self.encoded_hex}"
        )


def _resolve_opcode(candidate: str) -> int:
    if not candidate:
        raise ValueError("opcode may not be empty")

    normalized = candidate.strip().upper()
    try:
        return Opcode[normalized].value
    except KeyError:
        pass

    if normalized.startswith("0X"):
        normalized = normalized[2:]
    try:
        return int(normalized, 16)
    except ValueError as exc:
        raise ValueError(
            f"Unknown opcode '{candidate}'. Use hex (e.g. 0x07) "
            "or an Opcode name such as REQUEST_LINK_MTU."
        ) from exc


def build_snapshot(opcode: int, payload: bytes) -> FrameDebugSnapshot:
    raw = Command(opcode=opcode, payload=payload).to_bytes()
    encoded = encode_frame(raw)
    return FrameDebugSnapshot(
        opcode=opcode,
        opcode_name=opcode_name(opcode),
        payload_length=len(payload),
        raw_length=len(raw),
        expected_serial_bytes=len(encoded),
        encoded_packet=encoded,
        raw_hex=hex_bytes(raw),
        encoded_hex=hex_bytes(encoded),
    )


def describe_message(message: bytes) -> str:
    """Render one decoded message, validating it when it looks like a response."""
    lines = [f"message={hex_bytes(message)} (len={len(message)})"]
    if len(message) >= RESPONSE_HEADER_SIZE and message[0] == RESPONSE_MARKER:
        opcode = message[1]
        try:
            payload = validate_response(message, opcode, None)
        except UnexpectedResponse as exc:
            lines.append(f"response to {opcode_name(opcode)}: error: {exc}")
        else:
            lines.append(f"response to {opcode_name(opcode)}: ok payload={hex_bytes(payload)}")
    return "\n".join(lines)


def decode_capture(data: bytes, max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES) -> list[str]:
    failures: list[FrameDecodeFailure] = []
    decoder = SlipDecoder(max_frame_bytes=max_frame_bytes, on_error=failures.append)
    rendered = [describe_message(message) for message in decoder.decode(data)]
    rendered.extend(f"decode error: {failure}" for failure in failures)
    if decoder.buffered:
        rendered.append(f"incomplete trailing frame: {decoder.buffered} bytes")
    logger.debug(
        "Decoded %d captured bytes: %d messages, %d errors", len(data), len(rendered), len(failures)
    )
    return rendered


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inspect DFU serial frames: build commands or decode captured wire bytes."
    )
    parser.add_argument(
        "--command",
        "-c",
        default=Opcode.REQUEST_LINK_MTU.name,
        help=(
            "Opcode to build. Accepts an Opcode name (e.g. SET_RECEIPT_INTERVAL) "
            "or a hex literal such as 0x07."
        ),
    )
    parser.add_argument(
        "--payload",
        "-p",
        help="Optional payload as hex string (spaces allowed).",
    )
    parser.add_argument(
        "--decode",
        "-d",
        metavar="HEX",
        help="Decode captured wire bytes instead of building a command.",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="TOML file with a [dfuserial] table (frame limit, logging).",
    )
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging.")
    parser.add_argument("--log-syslog", action="store_true", help="Send logs to syslog.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(
            args.config,
            debug_logging=args.debug or None,
            log_syslog=args.log_syslog or None,
        )
    except ValueError as exc:
        parser.error(str(exc))
        return 2
    configure_logging(config)

    if args.decode is not None:
        try:
            captured = parse_hex(args.decode)
        except ValueError as exc:
            parser.error(str(exc))
            return 2
        print(format_hexdump(captured, prefix="[FrameDebug] "))
        for line in decode_capture(captured, config.max_frame_bytes):
            print(f"[FrameDebug] {line}")
        return 0

    try:
        opcode = _resolve_opcode(args.command)
        payload = parse_hex(args.payload)
        snapshot = build_snapshot(opcode, payload)
    except ValueError as exc:
        parser.error(str(exc))
        return 2

    print(snapshot.render())
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
