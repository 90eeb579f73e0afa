"""Tests for the frame_debug developer tool."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from dfuserial.tools import frame_debug


def test_snapshot_for_receipt_interval() -> None:
    snapshot = frame_debug.build_snapshot(0x02, b"\x10\x00")
    assert snapshot.opcode_name == "SET_RECEIPT_INTERVAL"
    assert snapshot.raw_hex == "02 10 00"
    assert snapshot.encoded_hex == "02 10 00 C0"
    assert snapshot.expected_serial_bytes == 4
    assert "opcode=0x02 (SET_RECEIPT_INTERVAL)" in snapshot.render()


@pytest.mark.parametrize(
    ("candidate", "expected"),
    [("REQUEST_LINK_MTU", 0x07), ("write_data", 0x08), ("0x02", 0x02), ("7", 0x07)],
)
def test_resolve_opcode(candidate: str, expected: int) -> None:
    assert frame_debug._resolve_opcode(candidate) == expected


def test_resolve_opcode_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        frame_debug._resolve_opcode("NOT_AN_OPCODE")


def test_decode_capture_reports_messages_and_errors() -> None:
    lines = frame_debug.decode_capture(b"\xc0\x60\x07\x01\x80\x00\xc0\x60\xdb\x00\xc0\x60\x02")
    assert lines[0].splitlines() == [
        "message=60 07 01 80 00 (len=5)",
        "response to REQUEST_LINK_MTU: ok payload=80 00",
    ]
    assert lines[1].startswith("decode error: Malformed SLIP packet")
    assert lines[2] == "incomplete trailing frame: 2 bytes"
    assert len(lines) == 3


def test_describe_failed_response() -> None:
    text = frame_debug.describe_message(b"\x60\x02\x03")
    assert "error" in text
    assert "INVALID_PARAMETER" in text


def test_main_build(capsys: pytest.CaptureFixture[str]) -> None:
    assert frame_debug.main(["-c", "WRITE_DATA", "-p", "C0 DB"]) == 0
    out = capsys.readouterr().out
    assert "encoded=08 DB DC DB DD C0" in out


def test_main_decode(capsys: pytest.CaptureFixture[str]) -> None:
    assert frame_debug.main(["--decode", "60 02 01 C0"]) == 0
    out = capsys.readouterr().out
    assert "[FrameDebug] message=60 02 01 (len=3)" in out
    assert "response to SET_RECEIPT_INTERVAL: ok" in out


def test_main_rejects_bad_payload() -> None:
    with pytest.raises(SystemExit):
        frame_debug.main(["-p", "ABC"])


def test_main_decode_prints_hexdump(capsys: pytest.CaptureFixture[str]) -> None:
    assert frame_debug.main(["-d", "60 02 01 C0"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines()[0].startswith("[FrameDebug] 0000  60 02 01 C0")


def test_main_debug_flag_enables_json_logs(capsys: pytest.CaptureFixture[str]) -> None:
    assert frame_debug.main(["--debug", "-d", "60 02 01 C0"]) == 0

    assert logging.getLogger("dfuserial").level == logging.DEBUG
    err = capsys.readouterr().err
    entries = [json.loads(line) for line in err.splitlines() if line.startswith("{")]
    assert any(
        entry["logger"] == "tools.frame_debug" and entry["message"].startswith("Decoded 4")
        for entry in entries
    )


def test_main_config_sets_frame_limit(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config_path = tmp_path / "dfuserial.toml"
    config_path.write_text("[dfuserial]\nmax_frame_bytes = 16\n", encoding="utf-8")
    capture = " ".join(["11"] * 20) + " C0 60 02 01 C0"

    assert frame_debug.main(["--config", str(config_path), "-d", capture]) == 0

    out = capsys.readouterr().out
    assert "decode error: SLIP packet too large (20 bytes)" in out
    assert "response to SET_RECEIPT_INTERVAL: ok" in out


def test_main_rejects_invalid_config(tmp_path: Path) -> None:
    config_path = tmp_path / "dfuserial.toml"
    config_path.write_text("[dfuserial]\nmax_chunk_size = 6\n", encoding="utf-8")
    with pytest.raises(SystemExit):
        frame_debug.main(["--config", str(config_path)])
