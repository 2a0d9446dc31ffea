"""Test configuration and shared fixtures."""
import json

import httpx
import pytest
import requests

from python_bundlr import BundlrConfig, SolanaSigner

# RFC 8032 Ed25519 test vector 1
RFC8032_SEED = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
RFC8032_PUBLIC = bytes.fromhex("d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a")
RFC8032_EMPTY_SIG = bytes.fromhex(
    "e5564300c360ac729086e2cc806e828a84877f1eb8e5d974d873e065224901555"
    "fb8821590a33bacc61e39701cf9b46bd25bf5f0595bbe24655141438e7a100b"
)

NODE_URL = "https://node.test"
GATEWAY_URL = "https://gateway.test"
SAMPLE_TX_ID = "Yk3b0gqYV6XxDzkqJxg3vQ3hH1m2q1C0cXqZpTz9aBc"


@pytest.fixture(autouse=True)
def no_env_key(monkeypatch):
    """Keep a developer's BUNDLR_PRIVATE_KEY out of the tests."""
    monkeypatch.delenv("BUNDLR_PRIVATE_KEY", raising=False)


@pytest.fixture
def signer():
    return SolanaSigner(RFC8032_SEED)


@pytest.fixture
def config():
    return BundlrConfig(node_url=NODE_URL, gateway_url=GATEWAY_URL, currency="solana")


def make_response(status_code=200, body="", reason="OK"):
    """Build a real requests.Response with the given status and body."""
    resp = requests.Response()
    resp.status_code = status_code
    resp.reason = reason
    if not isinstance(body, (str, bytes)):
        body = json.dumps(body)
    resp._content = body.encode("utf-8") if isinstance(body, str) else body
    resp.encoding = "utf-8"
    return resp


class RecordingTransport(httpx.MockTransport):
    """httpx mock transport that keeps every request it served."""

    def __init__(self, handler):
        self.requests = []

        def record(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(record)
