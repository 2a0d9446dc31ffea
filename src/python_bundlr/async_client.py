"""Async Bundlr upload client using httpx for concurrent operations."""

import asyncio
import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx

from .client import (
    JSON_CONTENT_TYPE,
    OCTET_STREAM,
    ExtraTags,
    KeyInput,
    MetadataUploadResult,
    UploadResult,
    build_signed_item,
    check_status,
    detect_content_type,
    ensure_json_file_name,
    make_signer,
    parse_balance,
    parse_deposit_address,
    parse_price,
    resolve_upload_result,
)
from .config import BundlrConfig, GatewayBuilder, gateway_uri_builder
from .errors import BundlrError, InsufficientBalanceError, ValidationError
from .signer import Signer
from .tags import Tag, build_tags
from .utils.encoding import b58encode

logger = logging.getLogger(__name__)


class AsyncBundlrClient:
    """Async Bundlr/Irys upload client.

    Same operations as :class:`~python_bundlr.client.BundlrClient`, with
    async/await I/O so independent uploads can run concurrently. Signing is
    local and synchronous; only the HTTP calls are awaited.
    """

    def __init__(
        self,
        signer: Optional[KeyInput] = None,
        config: Optional[BundlrConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        gateway: Optional[GatewayBuilder] = None,
    ):
        """Initialize async client.

        :param signer: Signer, or a Base58/raw Solana private key (falls back to ``BUNDLR_PRIVATE_KEY``).
        :param config: Node, currency and tag settings.
        :param http_client: Shared httpx.AsyncClient. If omitted a client is opened per request.
        :param gateway: ``(transaction_id) -> uri`` builder.
        """
        self.config = config or BundlrConfig()
        self.signer: Optional[Signer] = make_signer(signer)
        self._http = http_client
        self.gateway: GatewayBuilder = gateway or gateway_uri_builder(self.config.gateway_url)

    # ----------------------- Internal Helpers -----------------------
    def _require_signer(self) -> Signer:
        if not self.signer:
            raise BundlrError(
                "Private key required for this operation. "
                "Provide a signer when instantiating AsyncBundlrClient."
            )
        return self.signer

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._http is not None:
            return await self._http.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=self.config.timeout) as client:
            return await client.request(method, url, **kwargs)

    def _handle_response(self, resp: httpx.Response, operation: str) -> str:
        body = resp.text
        check_status(resp.status_code, resp.reason_phrase, body, operation)
        return body

    @property
    def address(self) -> Optional[str]:
        return b58encode(self.signer.public_key) if self.signer else None

    def build_tags(
        self,
        file_name: Optional[str] = None,
        content_type: Optional[str] = None,
        extra: Optional[ExtraTags] = None,
    ) -> List[Tag]:
        return build_tags(
            file_name, content_type, extra,
            app_name=self.config.app_name, app_version=self.config.app_version,
        )

    # ----------------------- Async Endpoint Methods -----------------------

    async def upload(
        self,
        data: bytes,
        tags: Optional[ExtraTags] = None,
        file_name: Optional[str] = None,
        content_type: Optional[str] = None,
        target: Optional[bytes] = None,
        anchor: Optional[bytes] = None,
    ) -> UploadResult:
        """Sign ``data`` as a data item and POST it to the node asynchronously.

        :param data: Raw payload.
        :param tags: Extra tags, appended after the standard ones.
        :param file_name: Recorded as the ``File-Name`` tag.
        :param content_type: Recorded as the ``Content-Type`` tag.
        :param target: Optional 32 byte target.
        :param anchor: Optional 32 byte anchor.
        :return: UploadResult with the resolved transaction id and gateway URI.
        """
        signer = self._require_signer()
        item = build_signed_item(
            data, signer, self.build_tags(file_name, content_type, tags),
            target=target, anchor=anchor, max_tag_bytes=self.config.max_tag_bytes,
        )
        if self.config.check_balance:
            await self._ensure_funded(len(data))

        resp = await self._request(
            "POST",
            self.config.url(f"tx/{self.config.currency}"),
            content=item.binary,
            headers={"Accept": JSON_CONTENT_TYPE, "Content-Type": OCTET_STREAM},
        )
        body = self._handle_response(resp, "Bundlr upload")
        result = resolve_upload_result(body, item, file_name, content_type, self.gateway)
        logger.info("Uploaded %s (%d bytes) -> %s", file_name or "<unnamed>", len(data), result.transaction_id)
        return result

    async def upload_file(
        self, file_path: str, content_type: Optional[str] = None, tags: Optional[ExtraTags] = None
    ) -> UploadResult:
        with open(file_path, "rb") as f:
            data = f.read()
        if content_type is None:
            content_type = detect_content_type(data=data, file_path=file_path)
        return await self.upload(
            data, tags=tags, file_name=os.path.basename(file_path), content_type=content_type
        )

    async def upload_json(
        self, file_name: Optional[str], json_text: str, tags: Optional[ExtraTags] = None
    ) -> UploadResult:
        if not json_text or not json_text.strip():
            raise ValidationError("JSON content is empty")
        return await self.upload(
            json_text.encode("utf-8"), tags=tags,
            file_name=ensure_json_file_name(file_name), content_type=JSON_CONTENT_TYPE,
        )

    async def upload_metadata(
        self,
        json_file_name: Optional[str],
        json_text: str,
        image: Optional[bytes] = None,
        image_file_name: Optional[str] = None,
        image_content_type: Optional[str] = None,
        json_tags: Optional[ExtraTags] = None,
        image_tags: Optional[ExtraTags] = None,
    ) -> MetadataUploadResult:
        """Upload an optional image, then the JSON metadata.

        The image goes first so the caller can embed its URI in the JSON
        before calling this; both uploads are independent data items.
        """
        if not json_text or not json_text.strip():
            raise ValidationError("JSON content is empty")
        image_result = None
        if image:
            if image_content_type is None:
                image_content_type = detect_content_type(data=image, file_path=image_file_name)
            image_result = await self.upload(
                image, tags=image_tags, file_name=image_file_name, content_type=image_content_type
            )
        json_result = await self.upload_json(json_file_name, json_text, tags=json_tags)
        return MetadataUploadResult(json=json_result, image=image_result)

    async def get_price(self, byte_length: int) -> int:
        """Price in atomic units for storing ``byte_length`` bytes."""
        if byte_length < 0:
            raise ValidationError("Data length cannot be negative")
        resp = await self._request("GET", self.config.url(f"price/{self.config.currency}/{byte_length}"))
        return parse_price(self._handle_response(resp, "Bundlr price query"))

    async def get_balance(self) -> int:
        """Balance of the signer's account in atomic units."""
        address = b58encode(self._require_signer().public_key)
        resp = await self._request(
            "GET", self.config.url(f"account/balance/{self.config.currency}"), params={"address": address}
        )
        return parse_balance(self._handle_response(resp, "Bundlr balance query"))

    async def estimate_cost(self, byte_length: int) -> int:
        return max(await self.get_price(byte_length), 0)

    async def get_deposit_address(self) -> str:
        resp = await self._request("GET", self.config.url(""))
        return parse_deposit_address(
            self._handle_response(resp, "Bundlr node info query"), self.config.currency
        )

    async def _ensure_funded(self, byte_length: int) -> None:
        price, balance = await asyncio.gather(self.get_price(byte_length), self.get_balance())
        if balance < price:
            raise InsufficientBalanceError(price, balance)

    # ----------------------- Concurrent Operations -----------------------

    async def upload_many(
        self,
        files: Mapping[str, bytes],
        content_type: Optional[str] = None,
        tags: Optional[ExtraTags] = None,
    ) -> Dict[str, Union[UploadResult, Dict[str, Any]]]:
        """Upload several payloads concurrently, one data item each.

        :param files: Mapping of file name to payload.
        :param content_type: Content type for every file (detected per file if None).
        :param tags: Extra tags added to every upload.
        :return: Dict mapping file names to UploadResult or ``{"error": message}``.
        """
        if not files:
            raise ValidationError("No files provided for upload")

        names = list(files)
        tasks = [
            self._upload_with_error_handling(
                files[name], tags=tags, file_name=name,
                content_type=content_type or detect_content_type(data=files[name], file_path=name),
            )
            for name in names
        ]
        results_list = await asyncio.gather(*tasks)
        return dict(zip(names, results_list))

    async def _upload_with_error_handling(self, data: bytes, **kwargs) -> Union[UploadResult, Dict[str, Any]]:
        """Helper to upload and catch errors for concurrent operations."""
        try:
            return await self.upload(data, **kwargs)
        except (BundlrError, httpx.HTTPError) as e:
            logger.warning("Upload of %s failed: %s", kwargs.get("file_name"), e)
            return {"error": str(e)}

    async def aclose(self):
        if self._http is not None:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()
