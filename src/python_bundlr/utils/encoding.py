"""Base58 and unpadded Base64-URL helpers used for addresses and item ids."""

import base64
import re
from typing import Union

from ..errors import EncodingError

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_INDEX = {c: i for i, c in enumerate(BASE58_ALPHABET)}

BytesLike = Union[bytes, bytearray, memoryview]

_B64URL_RE = re.compile(r"[A-Za-z0-9_-]*={0,2}")


def b58encode(data: BytesLike) -> str:
    """Encode bytes as Base58, one leading '1' per leading zero byte.

    :param data: Raw bytes.
    :return: Base58 string (empty for empty input).
    """
    data = bytes(data)
    zeros = len(data) - len(data.lstrip(b"\x00"))
    num = int.from_bytes(data, "big")
    encoded = []
    while num > 0:
        num, rem = divmod(num, 58)
        encoded.append(BASE58_ALPHABET[rem])
    return "1" * zeros + "".join(reversed(encoded))


def b58decode(text: str) -> bytes:
    """Decode a Base58 string, restoring leading zero bytes from leading '1's.

    :param text: Base58 string.
    :return: Decoded bytes.
    :raises EncodingError: On a character outside the alphabet.
    """
    num = 0
    for pos, char in enumerate(text):
        digit = _BASE58_INDEX.get(char)
        if digit is None:
            raise EncodingError(f"Invalid Base58 character {char!r} at position {pos}")
        num = num * 58 + digit
    zeros = len(text) - len(text.lstrip("1"))
    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    return b"\x00" * zeros + body


def b64url_encode(data: BytesLike) -> str:
    """Base64-URL encode with all '=' padding stripped."""
    return base64.urlsafe_b64encode(bytes(data)).decode("ascii").rstrip("=")


def b64url_decode(text: str) -> bytes:
    """Base64-URL decode, tolerating missing padding.

    Characters outside the URL-safe alphabet, including the standard '+' and
    '/', raise :class:`EncodingError`.
    """
    if not _B64URL_RE.fullmatch(text) or ("=" in text and len(text) % 4):
        raise EncodingError(f"Invalid Base64-URL string: {text!r}")
    pad = (-len(text)) % 4
    try:
        return base64.urlsafe_b64decode((text + "=" * pad).encode("ascii"))
    except (ValueError, UnicodeEncodeError) as e:
        raise EncodingError(f"Invalid Base64-URL string: {e}") from e
