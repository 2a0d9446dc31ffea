import json
import logging
import mimetypes
import os
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence, Union

import requests

from .config import BundlrConfig, GatewayBuilder, gateway_uri_builder, load_private_key
from .data_item import DataItem
from .errors import (
    BundlrError,
    InsufficientBalanceError,
    ProtocolError,
    ValidationError,
    get_error_from_status,
)
from .signer import Signer, SolanaSigner
from .tags import MAX_TAG_BYTES, Tag, TagInput, build_tags
from .utils.encoding import b58encode

logger = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"
JSON_CONTENT_TYPE = "application/json"

# Transaction ids are Base64-URL SHA-256 digests: 43 characters, no padding.
_TX_ID_RE = re.compile(r"^[A-Za-z0-9_-]{43}$")
_INTEGER_RE = re.compile(r"^-?\d+$")

KeyInput = Union[Signer, str, bytes, bytearray]
ExtraTags = Union[Mapping[str, str], Sequence[TagInput]]


@dataclass(frozen=True)
class ValidatorSignature:
    address: Optional[str]
    signature: Optional[str]


@dataclass(frozen=True)
class UploadReceipt:
    """Signed acknowledgment returned by the node. Every field may be missing."""
    id: Optional[str] = None
    public_key: Optional[str] = None
    signature: Optional[str] = None
    deadline_height: Optional[int] = None
    timestamp: Optional[int] = None
    version: Optional[str] = None
    validator_signatures: List[ValidatorSignature] = field(default_factory=list)
    raw_json: str = ""

    @property
    def timestamp_datetime(self) -> Optional[datetime]:
        """Receipt timestamp (milliseconds since epoch) as an aware datetime."""
        if self.timestamp is None:
            return None
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class UploadResult:
    file_name: Optional[str]
    content_type: Optional[str]
    transaction_id: str
    uri: str
    receipt: Optional[UploadReceipt] = None


@dataclass(frozen=True)
class MetadataUploadResult:
    """JSON metadata upload plus the optional image it references."""
    json: UploadResult
    image: Optional[UploadResult] = None

    @property
    def has_image(self) -> bool:
        return self.image is not None


# Leading bytes of the image and document types NFT uploads carry.
_MAGIC_PREFIXES = (
    (b"\x89PNG", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF8", "image/gif"),
    (b"%PDF", "application/pdf"),
)


# ----------------------- Shared helpers -----------------------
def detect_content_type(data: Optional[bytes] = None, file_path: Optional[str] = None) -> str:
    """Guess a MIME type from the file extension, then from magic bytes."""
    if file_path:
        guessed, _ = mimetypes.guess_type(file_path)
        if guessed:
            return guessed
    if data:
        for prefix, content_type in _MAGIC_PREFIXES:
            if data.startswith(prefix):
                return content_type
        if data.startswith(b"RIFF") and data[8:12] == b"WEBP":
            return "image/webp"
    return OCTET_STREAM


def ensure_json_file_name(file_name: Optional[str]) -> str:
    if not file_name or not file_name.strip():
        return f"{uuid.uuid4()}.json"
    file_name = file_name.strip()
    if not file_name.lower().endswith(".json"):
        file_name += ".json"
    return file_name


def make_signer(key: Optional[KeyInput]) -> Optional[Signer]:
    if key is None:
        env_key = load_private_key()
        return SolanaSigner(env_key) if env_key else None
    if isinstance(key, (str, bytes, bytearray)):
        return SolanaSigner(key)
    return key


def build_signed_item(data: bytes, signer: Signer, tags: Optional[Sequence[TagInput]] = None,
                      target: Optional[bytes] = None, anchor: Optional[bytes] = None,
                      max_tag_bytes: int = MAX_TAG_BYTES) -> DataItem:
    """BUILD, HASH, SIGN and FINALIZE a data item."""
    item = DataItem.create(data, signer, tags, target=target, anchor=anchor, max_tag_bytes=max_tag_bytes)
    item.sign(signer)
    logger.debug("Signed data item %s (%d bytes)", item.id, len(item))
    return item


def check_status(status_code: int, reason: Optional[str], body: str, operation: str) -> None:
    if not 200 <= status_code < 300:
        raise get_error_from_status(status_code, reason, body, operation)


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (str, int)):
        return str(value)
    return None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and _INTEGER_RE.match(value.strip()):
        return int(value.strip())
    return None


def parse_receipt(body: str) -> Optional[UploadReceipt]:
    """Parse a JSON upload receipt; None when the body is not a receipt."""
    if not body or not body.strip():
        return None
    try:
        token = json.loads(body)
    except ValueError:
        logger.debug("Upload response is not JSON: %.200s", body)
        return None
    if not isinstance(token, dict):
        return None

    validators: List[ValidatorSignature] = []
    entries = token.get("validatorSignatures")
    if isinstance(entries, list):
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            address = _optional_str(entry.get("address"))
            signature = _optional_str(entry.get("signature"))
            if address or signature:
                validators.append(ValidatorSignature(address, signature))

    receipt = UploadReceipt(
        id=_optional_str(token.get("id")),
        public_key=_optional_str(token.get("public")),
        signature=_optional_str(token.get("signature")),
        deadline_height=_optional_int(token.get("deadlineHeight")),
        timestamp=_optional_int(token.get("timestamp")),
        version=_optional_str(token.get("version")),
        validator_signatures=validators,
        raw_json=body,
    )
    if (receipt.id is None and receipt.public_key is None and receipt.signature is None
            and receipt.deadline_height is None and receipt.timestamp is None
            and receipt.version is None and not validators):
        return None
    return receipt


def is_transaction_id(value: str) -> bool:
    return bool(_TX_ID_RE.match(value))


def parse_upload_id(body: str) -> Optional[str]:
    """Best effort id lookup: ``id``, then ``data.id``, then a plain-text id."""
    if not body or not body.strip():
        return None
    try:
        token = json.loads(body)
    except ValueError:
        token = body.strip()

    if isinstance(token, dict):
        tx_id = _optional_str(token.get("id"))
        if tx_id:
            return tx_id
        inner = token.get("data")
        if isinstance(inner, dict):
            tx_id = _optional_str(inner.get("id"))
            if tx_id:
                return tx_id
        return None

    if isinstance(token, str):
        candidate = token.strip().strip('"')
        if is_transaction_id(candidate):
            return candidate
        logger.warning("Ignoring plain-text upload response that is not a transaction id: %.200s", body)
    return None


def resolve_upload_result(body: str, item: DataItem, file_name: Optional[str],
                          content_type: Optional[str], gateway: GatewayBuilder) -> UploadResult:
    """PARSE step: receipt id, node id or the local item id, never an error."""
    receipt = parse_receipt(body)
    transaction_id = (receipt.id if receipt and receipt.id else None) or parse_upload_id(body) or item.id
    return UploadResult(
        file_name=file_name,
        content_type=content_type,
        transaction_id=transaction_id,
        uri=gateway(transaction_id),
        receipt=receipt,
    )


def parse_price(body: str) -> int:
    text = (body or "").strip().strip('"')
    if not _INTEGER_RE.match(text):
        raise ProtocolError(f"Unable to parse Bundlr price response: {body}")
    return int(text)


def parse_balance(body: str) -> int:
    try:
        token = json.loads(body)
    except ValueError:
        raise ProtocolError(f"Unexpected Bundlr balance response: {body}") from None
    value = token.get("balance") if isinstance(token, dict) else None
    if value is None or isinstance(value, bool) or value == "":
        raise ProtocolError(f"Balance response missing 'balance' property: {body}")
    balance = _optional_int(value) if not isinstance(value, float) else None
    if balance is None:
        raise ProtocolError(f"Failed to parse Bundlr balance value '{value}'")
    return balance


def parse_deposit_address(body: str, currency: str) -> str:
    try:
        token = json.loads(body)
    except ValueError:
        raise ProtocolError(f"Failed to parse Bundlr node info response: {body}") from None
    addresses = token.get("addresses") if isinstance(token, dict) else None
    address = addresses.get(currency) if isinstance(addresses, dict) else None
    if not isinstance(address, str) or not address.strip():
        raise ProtocolError(f"Bundlr node did not return a {currency} deposit address")
    return address.strip()


# ----------------------- Client -----------------------
class BundlrClient:
    """Synchronous Bundlr/Irys upload client.

    Uploads are built and signed locally, then sent as one POST to
    ``{node}/tx/{currency}``. Nothing is retried; failures surface as
    :class:`~python_bundlr.errors.BundlrError` subclasses.
    """

    def __init__(self, signer: Optional[KeyInput] = None, config: Optional[BundlrConfig] = None,
                 session: Optional[requests.Session] = None, gateway: Optional[GatewayBuilder] = None):
        """Initialize client.

        :param signer: Signer, or a Base58/raw Solana private key. If omitted the key is read
            from ``BUNDLR_PRIVATE_KEY``; without one only price queries work.
        :param config: Node, currency and tag settings. Defaults to ``BundlrConfig()``.
        :param session: requests session used as the HTTP transport.
        :param gateway: ``(transaction_id) -> uri`` builder. Defaults to the configured gateway.
        """
        self.config = config or BundlrConfig()
        self.signer: Optional[Signer] = make_signer(signer)
        self.session = session or requests.Session()
        self.gateway: GatewayBuilder = gateway or gateway_uri_builder(self.config.gateway_url)

    # ----------------------- Internal Helpers -----------------------
    def _require_signer(self) -> Signer:
        if not self.signer:
            raise BundlrError("Private key required for this operation. Provide a signer when instantiating BundlrClient.")
        return self.signer

    def _handle_response(self, resp: requests.Response, operation: str) -> str:
        body = resp.text
        check_status(resp.status_code, resp.reason, body, operation)
        return body

    @property
    def address(self) -> Optional[str]:
        """Base58 address of the upload account."""
        return b58encode(self.signer.public_key) if self.signer else None

    def build_tags(self, file_name: Optional[str] = None, content_type: Optional[str] = None,
                   extra: Optional[ExtraTags] = None) -> List[Tag]:
        return build_tags(file_name, content_type, extra,
                          app_name=self.config.app_name, app_version=self.config.app_version)

    # ----------------------- Endpoint Methods -----------------------
    def upload(self, data: bytes, tags: Optional[ExtraTags] = None, file_name: Optional[str] = None,
               content_type: Optional[str] = None, target: Optional[bytes] = None,
               anchor: Optional[bytes] = None) -> UploadResult:
        """Sign ``data`` as a data item and POST it to the node.

        :param data: Raw payload.
        :param tags: Extra tags, appended after the standard ones.
        :param file_name: Recorded as the ``File-Name`` tag and in the result.
        :param content_type: Recorded as the ``Content-Type`` tag and in the result.
        :param target: Optional 32 byte target.
        :param anchor: Optional 32 byte anchor.
        :return: UploadResult with the resolved transaction id and gateway URI.
        """
        signer = self._require_signer()
        item = build_signed_item(data, signer, self.build_tags(file_name, content_type, tags),
                                 target=target, anchor=anchor, max_tag_bytes=self.config.max_tag_bytes)
        if self.config.check_balance:
            self._ensure_funded(len(data))

        resp = self.session.post(
            self.config.url(f"tx/{self.config.currency}"),
            data=item.binary,
            headers={"Accept": JSON_CONTENT_TYPE, "Content-Type": OCTET_STREAM},
            timeout=self.config.timeout,
        )
        body = self._handle_response(resp, "Bundlr upload")
        result = resolve_upload_result(body, item, file_name, content_type, self.gateway)
        logger.info("Uploaded %s (%d bytes) -> %s", file_name or "<unnamed>", len(data), result.transaction_id)
        return result

    def upload_file(self, file_path: str, content_type: Optional[str] = None,
                    tags: Optional[ExtraTags] = None) -> UploadResult:
        with open(file_path, 'rb') as f:
            data = f.read()
        if content_type is None:
            content_type = detect_content_type(data=data, file_path=file_path)
        return self.upload(data, tags=tags, file_name=os.path.basename(file_path), content_type=content_type)

    def upload_json(self, file_name: Optional[str], json_text: str,
                    tags: Optional[ExtraTags] = None) -> UploadResult:
        if not json_text or not json_text.strip():
            raise ValidationError("JSON content is empty")
        return self.upload(json_text.encode("utf-8"), tags=tags,
                           file_name=ensure_json_file_name(file_name), content_type=JSON_CONTENT_TYPE)

    def upload_metadata(self, json_file_name: Optional[str], json_text: str, image: Optional[bytes] = None,
                        image_file_name: Optional[str] = None, image_content_type: Optional[str] = None,
                        json_tags: Optional[ExtraTags] = None,
                        image_tags: Optional[ExtraTags] = None) -> MetadataUploadResult:
        """Upload an optional image, then the JSON metadata that references it."""
        if not json_text or not json_text.strip():
            raise ValidationError("JSON content is empty")
        image_result = None
        if image:
            if image_content_type is None:
                image_content_type = detect_content_type(data=image, file_path=image_file_name)
            image_result = self.upload(image, tags=image_tags, file_name=image_file_name,
                                       content_type=image_content_type)
        json_result = self.upload_json(json_file_name, json_text, tags=json_tags)
        return MetadataUploadResult(json=json_result, image=image_result)

    def get_price(self, byte_length: int) -> int:
        """Price in the currency's atomic units for storing ``byte_length`` bytes."""
        if byte_length < 0:
            raise ValidationError("Data length cannot be negative")
        resp = self.session.get(self.config.url(f"price/{self.config.currency}/{byte_length}"),
                                timeout=self.config.timeout)
        return parse_price(self._handle_response(resp, "Bundlr price query"))

    def get_balance(self) -> int:
        """Balance of the signer's account in atomic units."""
        address = b58encode(self._require_signer().public_key)
        resp = self.session.get(self.config.url(f"account/balance/{self.config.currency}"),
                                params={"address": address}, timeout=self.config.timeout)
        return parse_balance(self._handle_response(resp, "Bundlr balance query"))

    def estimate_cost(self, byte_length: int) -> int:
        return max(self.get_price(byte_length), 0)

    def get_deposit_address(self) -> str:
        """Node wallet address that accepts funding for the configured currency."""
        resp = self.session.get(self.config.url(""), timeout=self.config.timeout)
        return parse_deposit_address(self._handle_response(resp, "Bundlr node info query"), self.config.currency)

    def _ensure_funded(self, byte_length: int) -> None:
        price = self.get_price(byte_length)
        balance = self.get_balance()
        if balance < price:
            raise InsufficientBalanceError(price, balance)

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
