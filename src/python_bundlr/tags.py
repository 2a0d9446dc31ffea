"""Tag block serialization (Avro-style zig-zag varints)."""
from dataclasses import dataclass
from io import BytesIO
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import TagsTooLargeError, ValidationError

MAX_TAG_BYTES = 4096

TagInput = Union["Tag", Tuple[str, str]]


@dataclass(frozen=True)
class Tag:
    """Name/value pair attached to a data item for indexing."""
    name: str
    value: str = ""

    def __post_init__(self):
        if self.name is None:
            raise ValidationError("Tag name is required")
        if self.value is None:
            object.__setattr__(self, "value", "")


def _write_long(buf: BytesIO, value: int) -> None:
    # zig-zag on a signed 64 bit value, then 7 bits per byte, low order first
    zigzag = ((value << 1) ^ (value >> 63)) & 0xFFFFFFFFFFFFFFFF
    while zigzag & ~0x7F:
        buf.write(bytes(((zigzag & 0x7F) | 0x80,)))
        zigzag >>= 7
    buf.write(bytes((zigzag,)))


def _write_string(buf: BytesIO, value: str) -> None:
    raw = value.encode("utf-8")
    _write_long(buf, len(raw))
    buf.write(raw)


def encode_varint(value: int) -> bytes:
    """Zig-zag varint encoding of a single signed integer."""
    buf = BytesIO()
    _write_long(buf, value)
    return buf.getvalue()


def normalize_tags(tags: Optional[Iterable[TagInput]]) -> List[Tag]:
    """Accept Tag objects or (name, value) pairs and return a list of Tag."""
    if not tags:
        return []
    return [t if isinstance(t, Tag) else Tag(*t) for t in tags]


def encode_tags(tags: Optional[Sequence[TagInput]], max_bytes: int = MAX_TAG_BYTES) -> bytes:
    """Serialize an ordered tag list into the data item tag block.

    An empty or missing list encodes to zero bytes (no count, no terminator).

    :param tags: Tags in the order they should appear.
    :param max_bytes: Ceiling for the encoded block.
    :return: Encoded tag block.
    :raises TagsTooLargeError: If the encoded block is larger than ``max_bytes``.
    """
    tags = normalize_tags(tags)
    if not tags:
        return b""
    buf = BytesIO()
    _write_long(buf, len(tags))
    for tag in tags:
        _write_string(buf, tag.name)
        _write_string(buf, tag.value)
    _write_long(buf, 0)
    encoded = buf.getvalue()
    if len(encoded) > max_bytes:
        raise TagsTooLargeError(len(encoded), max_bytes)
    return encoded


def build_tags(file_name: Optional[str] = None, content_type: Optional[str] = None,
               extra: Optional[Union[Mapping[str, str], Iterable[TagInput]]] = None,
               app_name: Optional[str] = None, app_version: Optional[str] = None) -> List[Tag]:
    """Standard tag list for an upload.

    Order: App-Name, App-Version, Content-Type, File-Name, then ``extra``.
    Blank optional fields are omitted and extra tags with a blank name are skipped.
    """
    tags: List[Tag] = []
    if app_name and app_name.strip():
        tags.append(Tag("App-Name", app_name.strip()))
    if app_version and app_version.strip():
        tags.append(Tag("App-Version", app_version.strip()))
    if content_type and content_type.strip():
        tags.append(Tag("Content-Type", content_type))
    if file_name and file_name.strip():
        tags.append(Tag("File-Name", file_name))
    if extra:
        items = extra.items() if isinstance(extra, Mapping) else extra
        for tag in normalize_tags(items):
            if tag.name and tag.name.strip():
                tags.append(tag)
    return tags
