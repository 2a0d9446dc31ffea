"""Async example: Concurrent upload of several files

Each file becomes its own signed data item; the POSTs run concurrently.
"""
import asyncio
import time
from python_bundlr import AsyncBundlrClient, BundlrConfig

# Configuration
PRIVATE_KEY = '...'  # Base58 Solana private key (64 or 32 bytes)
CONFIG = BundlrConfig(node_url='https://devnet.irys.xyz', app_name='python-bundlr example')


async def main():
    client = AsyncBundlrClient(PRIVATE_KEY, config=CONFIG)

    files = {
        'one.txt': b'first payload',
        'two.txt': b'second payload',
        'meta.json': b'{"name": "example"}',
    }

    print(f"=== Async Concurrent Upload of {len(files)} files ===\n")

    start_time = time.time()
    results = await client.upload_many(files)
    elapsed = time.time() - start_time

    print(f"\n✓ Completed in {elapsed:.2f} seconds\n")

    for name, result in results.items():
        if isinstance(result, dict):
            print(f"✗ {name}")
            print(f"  Error: {result['error']}\n")
        else:
            print(f"✓ {name}")
            print(f"  ID: {result.transaction_id}")
            print(f"  URI: {result.uri}\n")


if __name__ == '__main__':
    asyncio.run(main())
