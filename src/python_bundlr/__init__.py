"""Sign and upload data items to Bundlr/Irys nodes."""

from .async_client import AsyncBundlrClient
from .client import (
    BundlrClient,
    MetadataUploadResult,
    UploadReceipt,
    UploadResult,
    ValidatorSignature,
)
from .config import BundlrConfig, gateway_uri_builder
from .data_item import DataItem
from .deep_hash import deep_hash
from .errors import BundlrError, TransportError, ValidationError
from .signer import Signer, SolanaSigner
from .tags import Tag, encode_tags

__version__ = "0.1.0"

__all__ = [
    "AsyncBundlrClient",
    "BundlrClient",
    "BundlrConfig",
    "BundlrError",
    "DataItem",
    "MetadataUploadResult",
    "Signer",
    "SolanaSigner",
    "Tag",
    "TransportError",
    "UploadReceipt",
    "UploadResult",
    "ValidationError",
    "ValidatorSignature",
    "deep_hash",
    "encode_tags",
    "gateway_uri_builder",
]
