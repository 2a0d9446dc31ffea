"""Tests for Base58 and Base64-URL helpers."""
import os

import pytest

from python_bundlr.errors import EncodingError
from python_bundlr.utils.encoding import b58decode, b58encode, b64url_decode, b64url_encode


def test_b58_known_vector():
    assert b58encode(b"hello world") == "StV1DL6CwTryKyV"
    assert b58decode("StV1DL6CwTryKyV") == b"hello world"


def test_b58_leading_zeros_preserved():
    assert b58encode(b"\x00\x01") == "12"
    assert b58decode("12") == b"\x00\x01"
    assert b58encode(b"\x00\x00") == "11"
    assert b58decode("11") == b"\x00\x00"


def test_b58_empty():
    assert b58encode(b"") == ""
    assert b58decode("") == b""


@pytest.mark.parametrize("size", [1, 31, 32, 64])
def test_b58_random_roundtrip(size):
    data = b"\x00" + os.urandom(size)
    assert b58decode(b58encode(data)) == data


def test_b58_invalid_character_reports_position():
    with pytest.raises(EncodingError, match=r"'0' at position 3"):
        b58decode("abc0def")


def test_b64url_strips_padding():
    encoded = b64url_encode(b"\xfb\xff")
    assert encoded == "-_8"
    assert "=" not in encoded
    assert b64url_decode(encoded) == b"\xfb\xff"


def test_b64url_decode_accepts_padding():
    assert b64url_decode("-_8=") == b"\xfb\xff"


@pytest.mark.parametrize("text, pos", [(" 12", 0), ("12 ", 2), ("1 2", 1)])
def test_b58_whitespace_is_an_invalid_character(text, pos):
    with pytest.raises(EncodingError, match=rf"' ' at position {pos}"):
        b58decode(text)


@pytest.mark.parametrize("text", ["+/8", "-_8+", "ab/c", " -_8", "-_8\n", "-_8==", "a"])
def test_b64url_rejects_non_url_safe_input(text):
    with pytest.raises(EncodingError):
        b64url_decode(text)
