"""Utility: Error handling patterns

Demonstrates the validation and transport errors the client raises.
"""
from python_bundlr import BundlrClient, BundlrConfig, BundlrError, Tag
from python_bundlr.errors import TagsTooLargeError, TransportError, ValidationError

PRIVATE_KEY = '...'
client = BundlrClient(PRIVATE_KEY, config=BundlrConfig(node_url='https://devnet.irys.xyz'))

print("=== Error Scenario 1: Empty Payload ===")
try:
    client.upload(b'')
except ValidationError as e:
    print(f"Rejected before any request: {e}")

print("\n=== Error Scenario 2: Tag Block Too Large ===")
try:
    client.upload(b'data', tags=[Tag('Note', 'x' * 5000)])
except TagsTooLargeError as e:
    print(f"Rejected before any request: {e}")

print("\n=== Error Scenario 3: Node Rejects Upload ===")
try:
    client.upload(b'data', content_type='text/plain')
except TransportError as e:
    print(f"HTTP {e.status_code}: {e.body}")
except BundlrError as e:
    print(f"Other Bundlr error: {e}")

print("\n=== Error Scenario 4: Missing Private Key ===")
anon_client = BundlrClient(config=client.config)
try:
    anon_client.get_balance()
except BundlrError as e:
    print(f"Expected error (no private key): {e}")
