"""Base64 transport encoding for text file content (UTF-8 aware)."""

import base64
import re

_WHITESPACE = re.compile(r"\s+")


def encode_text(text: str) -> str:
    """Encode text as UTF-8 and return the base64 string the contents API expects."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_text(data: str) -> str:
    """
    Decode a base64 payload into text.
    The contents API wraps base64 at 60 columns, so whitespace is stripped first.
    """
    raw = base64.b64decode(_WHITESPACE.sub("", data or ""))
    return raw.decode("utf-8")
