"""Signers for Bundlr data items.

The signature scheme table is shared with :mod:`python_bundlr.data_item`, so a
scheme's signature and owner lengths are declared in exactly one place.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Union

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .errors import InvalidKeyError, SignatureError, ValidationError
from .utils.encoding import b58decode, b58encode

logger = logging.getLogger(__name__)

SOLANA_SIGNATURE_TYPE = 2


@dataclass(frozen=True)
class SignatureScheme:
    signature_type: int
    name: str
    signature_length: int
    owner_length: int


SIGNATURE_SCHEMES: Dict[int, SignatureScheme] = {
    SOLANA_SIGNATURE_TYPE: SignatureScheme(SOLANA_SIGNATURE_TYPE, "solana", 64, 32),
}


def get_scheme(signature_type: int) -> SignatureScheme:
    try:
        return SIGNATURE_SCHEMES[signature_type]
    except KeyError:
        raise ValidationError(f"Unsupported signature type {signature_type}") from None


def verify_signature(signature_type: int, owner: bytes, message: bytes, signature: bytes) -> bool:
    """Check ``signature`` over ``message`` against the raw ``owner`` key."""
    scheme = get_scheme(signature_type)
    if len(signature) != scheme.signature_length or len(owner) != scheme.owner_length:
        return False
    try:
        VerifyKey(bytes(owner)).verify(bytes(message), bytes(signature))
    except BadSignatureError:
        return False
    return True


class Signer(ABC):
    """Key provider interface consumed by the data item encoder and the clients.

    Implementations expose ``signature_type``, the raw ``public_key`` and
    ``sign(message)``, and must be safe to call from concurrent uploads.
    """

    signature_type: int

    @property
    @abstractmethod
    def public_key(self) -> bytes:
        """Raw owner key, ``scheme.owner_length`` bytes."""

    @abstractmethod
    def sign(self, message: bytes) -> bytes:
        """Sign ``message`` and return ``scheme.signature_length`` bytes."""

    @property
    def scheme(self) -> SignatureScheme:
        return get_scheme(self.signature_type)

    @property
    def address(self) -> str:
        """Base58 encoded public key, used as the account address by the node."""
        return b58encode(self.public_key)


class SolanaSigner(Signer):
    """Ed25519 signer built from a Solana wallet style private key.

    Accepts the 64 byte ``private || public`` encoding or a bare 32 byte seed,
    either raw or Base58 encoded. With a bare seed the public half is derived.
    """

    signature_type = SOLANA_SIGNATURE_TYPE

    def __init__(self, private_key: Union[str, bytes, bytearray]):
        if isinstance(private_key, str):
            if not private_key.strip():
                raise InvalidKeyError("Private key cannot be empty")
            private_key = b58decode(private_key)
        key = bytes(private_key)
        if len(key) == 64:
            seed, public = key[:32], key[32:]
            self._signing_key = SigningKey(seed)
            derived = bytes(self._signing_key.verify_key)
            if derived != public:
                # keep the supplied public half, but note the mismatch
                logger.warning("Supplied public key does not match the one derived from the seed")
            self._public_key = public
        elif len(key) == 32:
            self._signing_key = SigningKey(key)
            self._public_key = bytes(self._signing_key.verify_key)
        else:
            raise InvalidKeyError(f"Private key must decode to 32 or 64 bytes, got {len(key)}")

    @classmethod
    def generate(cls) -> "SolanaSigner":
        """Create a signer with a fresh random key."""
        return cls(bytes(SigningKey.generate()))

    @property
    def public_key(self) -> bytes:
        return self._public_key

    @property
    def secret_key(self) -> bytes:
        """64 byte wallet encoding (seed followed by public key)."""
        return bytes(self._signing_key) + self._public_key

    @property
    def secret_key_base58(self) -> str:
        return b58encode(self.secret_key)

    def sign(self, message: bytes) -> bytes:
        if message is None:
            raise SignatureError("Message to sign is required")
        return self._signing_key.sign(bytes(message)).signature

    def verify(self, message: bytes, signature: bytes) -> bool:
        return verify_signature(self.signature_type, self._public_key, message, signature)

    def __repr__(self):
        return f"SolanaSigner(address={self.address!r})"
