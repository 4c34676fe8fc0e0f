"""Tests for the shared-secret gate helpers."""

from unittest.mock import MagicMock

from repodrive.auth.gate import is_authorized, token_query


def test_open_when_no_secret_configured() -> None:
    """No secret: everyone is authorized, with or without a credential."""
    assert is_authorized(None, "") is True
    assert is_authorized("anything", None) is True


def test_secret_must_match() -> None:
    assert is_authorized("s3cret", "s3cret") is True
    assert is_authorized("wrong", "s3cret") is False
    assert is_authorized(None, "s3cret") is False
    assert is_authorized("", "s3cret") is False


def test_token_query_empty_without_secret() -> None:
    settings = MagicMock()
    settings.access_token = ""
    assert token_query(settings) == ""


def test_token_query_url_encodes_secret() -> None:
    settings = MagicMock()
    settings.access_token = "a b&c"
    assert token_query(settings) == "?token=a+b%26c"
