"""Tests for the tag block codec."""
import pytest

from python_bundlr.errors import TagsTooLargeError, ValidationError
from python_bundlr.tags import MAX_TAG_BYTES, Tag, build_tags, encode_tags, encode_varint


@pytest.mark.parametrize("value,expected", [
    (0, b"\x00"),
    (1, b"\x02"),
    (-1, b"\x01"),
    (63, b"\x7e"),
    (64, b"\x80\x01"),
    (300, b"\xd8\x04"),
])
def test_varint(value, expected):
    assert encode_varint(value) == expected


def test_empty_tags_encode_to_nothing():
    assert encode_tags([]) == b""
    assert encode_tags(None) == b""


def test_single_tag_layout():
    assert encode_tags([Tag("a", "b")]) == b"\x02\x02a\x02b\x00"


def test_tuples_accepted():
    assert encode_tags([("a", "b")]) == encode_tags([Tag("a", "b")])


def test_utf8_lengths_are_byte_lengths():
    # "é" is two bytes in UTF-8
    assert encode_tags([Tag("é", "")]) == b"\x02\x04\xc3\xa9\x00\x00"


def test_order_is_kept():
    first = encode_tags([Tag("a", "1"), Tag("b", "2")])
    second = encode_tags([Tag("b", "2"), Tag("a", "1")])
    assert first != second


def test_over_limit_raises():
    with pytest.raises(TagsTooLargeError) as exc:
        encode_tags([Tag("n" * 2500, "v" * 2500)])
    assert exc.value.limit == MAX_TAG_BYTES
    assert exc.value.size > MAX_TAG_BYTES


def test_custom_limit():
    with pytest.raises(TagsTooLargeError):
        encode_tags([Tag("Content-Type", "text/plain")], max_bytes=10)


def test_tag_requires_name():
    with pytest.raises(ValidationError):
        Tag(None, "x")


def test_build_tags_order_and_skips():
    tags = build_tags("a.png", "image/png", {"Custom": "1", " ": "skipped"},
                      app_name="Toolbelt", app_version="1.1.1")
    assert [t.name for t in tags] == ["App-Name", "App-Version", "Content-Type", "File-Name", "Custom"]
    assert tags[3].value == "a.png"


def test_build_tags_omits_blank_fields():
    assert build_tags(None, "", None) == []
