"""Tests for the base64 text codec."""

import base64

import pytest

from repodrive.codec import decode_text, encode_text


@pytest.mark.parametrize(
    "text",
    ["", "hello", "你好，世界", "emoji 🎉 and ümlauts", "line1\nline2\r\n\ttab"],
)
def test_round_trip_preserves_text(text: str) -> None:
    """decode(encode(x)) == x, including multi-byte characters."""
    assert decode_text(encode_text(text)) == text


def test_encode_is_utf8_base64() -> None:
    """Encoding matches base64 of the UTF-8 bytes."""
    assert encode_text("é") == base64.b64encode("é".encode("utf-8")).decode("ascii")


def test_decode_ignores_line_wrapping() -> None:
    """Payloads wrapped with newlines (as the contents API sends them) decode."""
    wrapped = base64.encodebytes(("x" * 200).encode("utf-8")).decode("ascii")
    assert "\n" in wrapped
    assert decode_text(wrapped) == "x" * 200


def test_decode_rejects_non_utf8() -> None:
    """Binary content that is not UTF-8 raises UnicodeDecodeError."""
    with pytest.raises(UnicodeDecodeError):
        decode_text(base64.b64encode(b"\xff\xfe\xfd").decode("ascii"))
