"""Upload an NFT image and its metadata JSON, then check cost and balance."""
import json

from python_bundlr import BundlrClient, BundlrConfig

PRIVATE_KEY = '...'
config = BundlrConfig(node_url='https://devnet.irys.xyz', app_name='python-bundlr example', app_version='0.1.0')
client = BundlrClient(PRIVATE_KEY, config=config)

with open('art.png', 'rb') as f:
    image = f.read()

print(f"Uploader address: {client.address}")
print(f"Balance: {client.get_balance()} atomic units")
print(f"Price for image: {client.get_price(len(image))} atomic units")

image_result = client.upload(image, file_name='art.png', content_type='image/png')
metadata = {"name": "Example", "image": image_result.uri}
json_result = client.upload_json('art', json.dumps(metadata))

print(f"Image: {image_result.uri}")
print(f"Metadata: {json_result.uri}")
if json_result.receipt:
    print(f"Receipt signed by {json_result.receipt.public_key} at {json_result.receipt.timestamp_datetime}")
