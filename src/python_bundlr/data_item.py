"""Binary data item encoder.

Layout, little-endian throughout::

    signature_type   u16
    signature        scheme.signature_length   (zero until signed)
    owner            scheme.owner_length
    target           u8 flag [+ 32]
    anchor           u8 flag [+ 32]
    tag_count        u64
    tag_bytes_len    u64
    tags             tag_bytes_len
    data             remainder
"""
import hashlib
import logging
import struct
from typing import List, Optional, Sequence

from .deep_hash import deep_hash
from .errors import (
    EmptyPayloadError,
    InvalidFieldLengthError,
    SignatureError,
    ValidationError,
)
from .signer import Signer, SignatureScheme, get_scheme, verify_signature
from .tags import MAX_TAG_BYTES, TagInput, encode_tags, normalize_tags
from .utils.encoding import b64url_encode

logger = logging.getLogger(__name__)

ITEM_TYPE = b"dataitem"
ITEM_VERSION = b"1"
TARGET_LENGTH = 32
ANCHOR_LENGTH = 32
TAG_HEADER_LENGTH = 16


def _check_optional(field: str, value: Optional[bytes], expected: int) -> bytes:
    if not value:
        return b""
    if len(value) != expected:
        raise InvalidFieldLengthError(field, len(value), expected)
    return bytes(value)


class DataItem:
    """A single signable data item held in one pre-sized buffer.

    Build with :meth:`create` (unsigned) or :meth:`from_bytes` (parse a
    finished item). Region offsets are fixed at construction and used both for
    writing and for the deep hash chunk list.
    """

    def __init__(self, binary: bytearray, scheme: SignatureScheme, target_length: int,
                 anchor_length: int, tag_count: int, tags_length: int):
        self._binary = binary
        self._scheme = scheme
        self._owner_offset = 2 + scheme.signature_length
        self._target_flag_offset = self._owner_offset + scheme.owner_length
        self._target_offset = self._target_flag_offset + 1
        self._target_length = target_length
        self._anchor_flag_offset = self._target_offset + target_length
        self._anchor_offset = self._anchor_flag_offset + 1
        self._anchor_length = anchor_length
        self._tags_offset = self._anchor_offset + anchor_length
        self._tag_count = tag_count
        self._tags_length = tags_length
        self._data_offset = self._tags_offset + TAG_HEADER_LENGTH + tags_length
        self._signed = any(self._binary[2:self._owner_offset])

    # ----------------------- Construction -----------------------
    @classmethod
    def create(cls, data: bytes, signer: Signer, tags: Optional[Sequence[TagInput]] = None,
               target: Optional[bytes] = None, anchor: Optional[bytes] = None,
               max_tag_bytes: int = MAX_TAG_BYTES) -> "DataItem":
        """Allocate and populate an unsigned data item.

        :param data: Raw payload, must not be empty.
        :param signer: Key provider; its public key becomes the owner field.
        :param tags: Ordered tags.
        :param target: Optional 32 byte target.
        :param anchor: Optional 32 byte anchor.
        :param max_tag_bytes: Ceiling for the encoded tag block.
        """
        if data is None or len(data) == 0:
            raise EmptyPayloadError("Upload data is empty")
        scheme = get_scheme(signer.signature_type)
        target = _check_optional("target", target, TARGET_LENGTH)
        anchor = _check_optional("anchor", anchor, ANCHOR_LENGTH)
        tag_list = normalize_tags(tags)
        tag_block = encode_tags(tag_list, max_tag_bytes)

        owner = bytes(signer.public_key)
        if len(owner) != scheme.owner_length:
            raise InvalidFieldLengthError("owner", len(owner), scheme.owner_length)

        total = (2 + scheme.signature_length + scheme.owner_length
                 + 1 + len(target) + 1 + len(anchor)
                 + TAG_HEADER_LENGTH + len(tag_block) + len(data))
        binary = bytearray(total)
        item = cls(binary, scheme, len(target), len(anchor), len(tag_list), len(tag_block))

        struct.pack_into("<H", binary, 0, scheme.signature_type)
        binary[item._owner_offset:item._target_flag_offset] = owner
        if target:
            binary[item._target_flag_offset] = 1
            binary[item._target_offset:item._anchor_flag_offset] = target
        if anchor:
            binary[item._anchor_flag_offset] = 1
            binary[item._anchor_offset:item._tags_offset] = anchor
        struct.pack_into("<QQ", binary, item._tags_offset, len(tag_list), len(tag_block))
        binary[item._tags_offset + TAG_HEADER_LENGTH:item._data_offset] = tag_block
        binary[item._data_offset:] = data
        logger.debug("Built data item: %d bytes (%d tags, %d bytes data)", total, len(tag_list), len(data))
        return item

    @classmethod
    def from_bytes(cls, raw: bytes) -> "DataItem":
        """Parse a serialized data item, validating every length field."""
        binary = bytearray(raw)
        if len(binary) < 2:
            raise ValidationError("Data item too short for signature type")
        (signature_type,) = struct.unpack_from("<H", binary, 0)
        scheme = get_scheme(signature_type)

        pos = 2 + scheme.signature_length + scheme.owner_length
        lengths: List[int] = []
        for field, size in (("target", TARGET_LENGTH), ("anchor", ANCHOR_LENGTH)):
            if pos >= len(binary):
                raise ValidationError(f"Data item truncated before {field} flag")
            flag = binary[pos]
            if flag not in (0, 1):
                raise ValidationError(f"Invalid {field} presence flag {flag}")
            length = size if flag else 0
            lengths.append(length)
            pos += 1 + length

        if pos + TAG_HEADER_LENGTH > len(binary):
            raise ValidationError("Data item truncated in tag header")
        tag_count, tags_length = struct.unpack_from("<QQ", binary, pos)
        if pos + TAG_HEADER_LENGTH + tags_length > len(binary):
            raise ValidationError(
                f"Tag block of {tags_length} bytes exceeds remaining {len(binary) - pos - TAG_HEADER_LENGTH} bytes"
            )
        return cls(binary, scheme, lengths[0], lengths[1], tag_count, tags_length)

    # ----------------------- Regions -----------------------
    def _region(self, start: int, length: int) -> memoryview:
        return memoryview(self._binary)[start:start + length]

    @property
    def signature_type(self) -> int:
        return self._scheme.signature_type

    @property
    def signature(self) -> bytes:
        return bytes(self._binary[2:self._owner_offset])

    @property
    def owner(self) -> bytes:
        return bytes(self._binary[self._owner_offset:self._target_flag_offset])

    @property
    def target(self) -> Optional[bytes]:
        if not self._target_length:
            return None
        return bytes(self._region(self._target_offset, self._target_length))

    @property
    def anchor(self) -> Optional[bytes]:
        if not self._anchor_length:
            return None
        return bytes(self._region(self._anchor_offset, self._anchor_length))

    @property
    def tag_count(self) -> int:
        return self._tag_count

    @property
    def raw_tags(self) -> bytes:
        return bytes(self._region(self._tags_offset + TAG_HEADER_LENGTH, self._tags_length))

    @property
    def data(self) -> bytes:
        return bytes(self._binary[self._data_offset:])

    @property
    def binary(self) -> bytes:
        return bytes(self._binary)

    def __len__(self):
        return len(self._binary)

    # ----------------------- Signing -----------------------
    def signature_chunks(self) -> List[memoryview]:
        """Byte ranges fed to the deep hash, in protocol order."""
        return [
            memoryview(ITEM_TYPE),
            memoryview(ITEM_VERSION),
            memoryview(str(self.signature_type).encode("ascii")),
            self._region(self._owner_offset, self._scheme.owner_length),
            self._region(self._target_offset, self._target_length),
            self._region(self._anchor_offset, self._anchor_length),
            self._region(self._tags_offset + TAG_HEADER_LENGTH, self._tags_length),
            memoryview(self._binary)[self._data_offset:],
        ]

    def signature_data(self) -> bytes:
        """Deep hash digest that the signer must sign."""
        return deep_hash(self.signature_chunks())

    @property
    def is_signed(self) -> bool:
        return self._signed

    def set_signature(self, signature: bytes) -> None:
        """Write the signature in place. Allowed exactly once."""
        if self._signed:
            raise SignatureError("Data item is already signed")
        if signature is None or len(signature) != self._scheme.signature_length:
            actual = 0 if signature is None else len(signature)
            raise SignatureError(f"Signature must be {self._scheme.signature_length} bytes, got {actual}")
        self._binary[2:self._owner_offset] = signature
        self._signed = True

    def sign(self, signer: Signer) -> "DataItem":
        """Hash, sign and finalize in one step."""
        if signer.signature_type != self.signature_type:
            raise SignatureError(
                f"Signer type {signer.signature_type} does not match item type {self.signature_type}"
            )
        self.set_signature(signer.sign(self.signature_data()))
        return self

    def verify(self) -> bool:
        """Recompute the deep hash and check the signature against the owner."""
        if not self._signed:
            return False
        return verify_signature(self.signature_type, self.owner, self.signature_data(), self.signature)

    @property
    def id(self) -> str:
        """Base64-URL SHA-256 of the signature; stable once signed."""
        if not self._signed:
            raise SignatureError("Data item id is undefined until the item is signed")
        return b64url_encode(hashlib.sha256(self._binary[2:self._owner_offset]).digest())

    def __repr__(self):
        state = self.id if self._signed else "unsigned"
        return f"DataItem({state}, {len(self)} bytes)"
