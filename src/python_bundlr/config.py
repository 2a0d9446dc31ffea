"""Client configuration."""
import os
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import ValidationError
from .tags import MAX_TAG_BYTES

DEFAULT_NODE_URL = "https://node1.irys.xyz"
DEFAULT_CURRENCY = "solana"
DEFAULT_GATEWAY_URL = "https://gateway.irys.xyz"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_KEY_ENV_VAR = "BUNDLR_PRIVATE_KEY"

GatewayBuilder = Callable[[str], str]

_TRUE = {"1", "true", "yes", "on"}


@dataclass
class BundlrConfig:
    """Settings shared by the sync and async clients.

    :param node_url: Bundlr/Irys node base URL.
    :param currency: Currency identifier the node bills in (``solana``).
    :param gateway_url: Gateway used to build public URIs.
    :param timeout: Request timeout handed to the HTTP transport, in seconds.
    :param app_name: Optional ``App-Name`` tag added to every upload.
    :param app_version: Optional ``App-Version`` tag added to every upload.
    :param check_balance: Compare price and balance before uploading.
    :param max_tag_bytes: Ceiling for the serialized tag block.
    """
    node_url: str = DEFAULT_NODE_URL
    currency: str = DEFAULT_CURRENCY
    gateway_url: str = DEFAULT_GATEWAY_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    app_name: Optional[str] = None
    app_version: Optional[str] = None
    check_balance: bool = False
    max_tag_bytes: int = MAX_TAG_BYTES

    def __post_init__(self):
        self.node_url = (self.node_url or DEFAULT_NODE_URL).strip().rstrip("/")
        self.currency = (self.currency or "").strip() or DEFAULT_CURRENCY
        self.gateway_url = (self.gateway_url or "").strip() or DEFAULT_GATEWAY_URL
        if not self.timeout or self.timeout <= 0:
            self.timeout = DEFAULT_TIMEOUT_SECONDS
        self.app_name = self.app_name.strip() if self.app_name else None
        self.app_version = self.app_version.strip() if self.app_version else None

    @classmethod
    def from_env(cls, prefix: str = "BUNDLR_") -> "BundlrConfig":
        """Build a config from ``{prefix}NODE_URL``, ``{prefix}CURRENCY`` etc.

        Unset variables fall back to the defaults.
        """
        def env(name: str) -> Optional[str]:
            value = os.getenv(prefix + name)
            return value if value and value.strip() else None

        timeout = env("TIMEOUT")
        try:
            timeout_seconds = float(timeout) if timeout else DEFAULT_TIMEOUT_SECONDS
        except ValueError:
            raise ValidationError(f"{prefix}TIMEOUT must be a number of seconds, got {timeout!r}") from None
        check = env("CHECK_BALANCE")
        return cls(
            node_url=env("NODE_URL") or DEFAULT_NODE_URL,
            currency=env("CURRENCY") or DEFAULT_CURRENCY,
            gateway_url=env("GATEWAY_URL") or DEFAULT_GATEWAY_URL,
            timeout=timeout_seconds,
            app_name=env("APP_NAME"),
            app_version=env("APP_VERSION"),
            check_balance=bool(check) and check.strip().lower() in _TRUE,
        )

    def url(self, path: str) -> str:
        return self.node_url + "/" + path.lstrip("/")


def load_private_key(env_var: str = DEFAULT_KEY_ENV_VAR) -> Optional[str]:
    """Read a Base58 private key from the environment, or None when unset."""
    value = os.getenv(env_var)
    return value.strip() if value and value.strip() else None


def gateway_uri_builder(gateway_url: str = DEFAULT_GATEWAY_URL) -> GatewayBuilder:
    """Return a ``(transaction_id) -> uri`` function for the given gateway."""
    base = gateway_url.strip()

    def build(transaction_id: str) -> str:
        if not transaction_id or not transaction_id.strip():
            return base
        return base.rstrip("/") + "/" + transaction_id.strip()

    return build
