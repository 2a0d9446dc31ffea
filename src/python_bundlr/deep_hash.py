"""Deep hash: the SHA-384 list reduction whose digest is signed for a data item.

For ``n`` chunks::

    blob(c) = H(H(b"blob" + len(c)) + H(c))
    acc     = H(b"list" + n)
    acc     = H(acc + blob(c_i))   for each chunk in order

Lengths are ASCII decimal without leading zeros. ``H(x + y)`` feeds both
inputs into one hash instance.
"""
import hashlib
from typing import Sequence, Union

Chunk = Union[bytes, bytearray, memoryview]

DIGEST_SIZE = 48
_BLOB = b"blob"
_LIST = b"list"


def _sha384(*parts: Chunk) -> bytes:
    h = hashlib.sha384()
    for part in parts:
        h.update(part)
    return h.digest()


def _tag(label: bytes, length: int) -> bytes:
    return label + str(length).encode("ascii")


def hash_blob(chunk: Chunk) -> bytes:
    tag_hash = _sha384(_tag(_BLOB, len(chunk)))
    return _sha384(tag_hash, _sha384(chunk))


def deep_hash(chunks: Sequence[Chunk]) -> bytes:
    """Reduce an ordered list of byte ranges to one 48 byte digest.

    :param chunks: Byte ranges, in order. memoryview slices are hashed in place.
    :return: SHA-384 digest.
    """
    acc = _sha384(_tag(_LIST, len(chunks)))
    for chunk in chunks:
        acc = _sha384(acc, hash_blob(chunk))
    return acc
