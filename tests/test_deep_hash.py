"""Tests for the deep hash reduction."""
import hashlib

from python_bundlr.data_item import DataItem
from python_bundlr.deep_hash import DIGEST_SIZE, deep_hash

from conftest import RFC8032_PUBLIC


def _reference(chunks):
    acc = hashlib.sha384(b"list" + str(len(chunks)).encode()).digest()
    for chunk in chunks:
        tag = hashlib.sha384(b"blob" + str(len(chunk)).encode()).digest()
        blob = hashlib.sha384(tag + hashlib.sha384(chunk).digest()).digest()
        acc = hashlib.sha384(acc + blob).digest()
    return acc


def test_matches_reference_composition():
    chunks = [b"dataitem", b"1", b"2", b"\x01" * 32, b"", b"", b"", b"hello"]
    assert deep_hash(chunks) == _reference(chunks)


def test_digest_size():
    assert len(deep_hash([b"a"])) == DIGEST_SIZE


def test_empty_list():
    assert deep_hash([]) == hashlib.sha384(b"list0").digest()


def test_deterministic():
    chunks = [b"one", b"two"]
    assert deep_hash(chunks) == deep_hash(list(chunks))


def test_order_sensitive():
    assert deep_hash([b"one", b"two"]) != deep_hash([b"two", b"one"])


def test_not_plain_concatenation():
    assert deep_hash([b"ab", b"c"]) != deep_hash([b"a", b"bc"])


def test_memoryview_chunks():
    buf = bytearray(b"xxhelloyy")
    assert deep_hash([memoryview(buf)[2:7]]) == deep_hash([b"hello"])


# Digest, Ed25519 signature and id for the item below, computed independently
# with the OpenSSL command line tools (sha384, ed25519 pkeyutl, sha256).
KNOWN_ITEM_DIGEST = bytes.fromhex(
    "867f2fa98d1ded6b5552d0d8652e52a029328f79fc5fa60a"
    "1bbb921f5e8a9cc250a5829aca19183f9d4b555c16b7f5f6"
)
KNOWN_ITEM_SIGNATURE = bytes.fromhex(
    "cdc8d9b723cc675abdef1ddc0b436625a6bef292571370d91d82e9a7deb1cea4"
    "50f15d6f908f39da01336b24cc5729e74431690d64a55f9ccebd0f396be95a07"
)
KNOWN_ITEM_ID = "iQGS32jiLT6d8_SrbgYIfnvTSatzIjY6ClhKk2ZHv4Q"


def test_known_answer_chunks():
    chunks = [b"dataitem", b"1", b"2", RFC8032_PUBLIC, b"", b"", b"", b"hello"]
    assert deep_hash(chunks) == KNOWN_ITEM_DIGEST


def test_known_answer_data_item(signer):
    item = DataItem.create(b"hello", signer)
    assert item.signature_data() == KNOWN_ITEM_DIGEST
    item.sign(signer)
    assert item.signature == KNOWN_ITEM_SIGNATURE
    assert item.id == KNOWN_ITEM_ID
