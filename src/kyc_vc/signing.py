"""
Credential signing and signature verification.

Supported schemes:
- Ed25519 (RFC 8032), signing the canonical bytes directly
- ECDSA over secp256k1 with SHA-256 and deterministic (RFC 6979) nonces,
  compact ``r||s`` encoding, low-S normalized

Encoded signatures are a one-character scheme tag followed by lowercase hex
of the raw signature bytes.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from kyc_vc.errors import KeyMaterialError
from kyc_vc.models import SignatureAlgorithm

_HEX = re.compile(r"[0-9a-fA-F]+")

# Order of the secp256k1 base point.
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def _decode_hex(value: str, what: str) -> bytes:
    if not isinstance(value, str) or len(value) % 2 or not _HEX.fullmatch(value):
        raise KeyMaterialError(f"{what} is not valid hex")
    return bytes.fromhex(value)


class SignatureScheme(ABC):
    """One signature algorithm: key handling plus raw sign/verify."""

    tag: str
    signature_length: int

    @abstractmethod
    def generate_private_key(self) -> Any: ...

    @abstractmethod
    def load_private_key(self, raw: bytes) -> Any: ...

    @abstractmethod
    def load_public_key(self, raw: bytes) -> Any: ...

    @abstractmethod
    def private_key_bytes(self, private_key: Any) -> bytes: ...

    @abstractmethod
    def public_key_bytes(self, public_key: Any) -> bytes: ...

    @abstractmethod
    def sign(self, private_key: Any, payload: bytes) -> bytes: ...

    @abstractmethod
    def verify(self, public_key: Any, signature: bytes, payload: bytes) -> bool: ...


class Ed25519Scheme(SignatureScheme):
    tag = "z"
    signature_length = 64

    def generate_private_key(self) -> ed25519.Ed25519PrivateKey:
        return ed25519.Ed25519PrivateKey.generate()

    def load_private_key(self, raw: bytes) -> ed25519.Ed25519PrivateKey:
        if len(raw) != 32:
            raise KeyMaterialError(f"Ed25519 private key must be 32 bytes, got {len(raw)}")
        return ed25519.Ed25519PrivateKey.from_private_bytes(raw)

    def load_public_key(self, raw: bytes) -> ed25519.Ed25519PublicKey:
        if len(raw) != 32:
            raise KeyMaterialError(f"Ed25519 public key must be 32 bytes, got {len(raw)}")
        try:
            return ed25519.Ed25519PublicKey.from_public_bytes(raw)
        except ValueError as e:
            raise KeyMaterialError(f"Invalid Ed25519 public key: {e}") from e

    def private_key_bytes(self, private_key: ed25519.Ed25519PrivateKey) -> bytes:
        return private_key.private_bytes(
            serialization.Encoding.Raw,
            serialization.PrivateFormat.Raw,
            serialization.NoEncryption(),
        )

    def public_key_bytes(self, public_key: ed25519.Ed25519PublicKey) -> bytes:
        return public_key.public_bytes(
            serialization.Encoding.Raw,
            serialization.PublicFormat.Raw,
        )

    def sign(self, private_key: ed25519.Ed25519PrivateKey, payload: bytes) -> bytes:
        return private_key.sign(payload)

    def verify(
        self, public_key: ed25519.Ed25519PublicKey, signature: bytes, payload: bytes
    ) -> bool:
        try:
            public_key.verify(signature, payload)
            return True
        except InvalidSignature:
            return False


class Secp256k1Scheme(SignatureScheme):
    tag = "k"
    signature_length = 64

    def generate_private_key(self) -> ec.EllipticCurvePrivateKey:
        return ec.generate_private_key(ec.SECP256K1())

    def load_private_key(self, raw: bytes) -> ec.EllipticCurvePrivateKey:
        if len(raw) != 32:
            raise KeyMaterialError(f"secp256k1 private key must be 32 bytes, got {len(raw)}")
        scalar = int.from_bytes(raw, byteorder="big")
        if not 0 < scalar < SECP256K1_ORDER:
            raise KeyMaterialError("secp256k1 private key is out of range")
        return ec.derive_private_key(scalar, ec.SECP256K1())

    def load_public_key(self, raw: bytes) -> ec.EllipticCurvePublicKey:
        try:
            return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), raw)
        except ValueError as e:
            raise KeyMaterialError(f"Invalid secp256k1 public key: {e}") from e

    def private_key_bytes(self, private_key: ec.EllipticCurvePrivateKey) -> bytes:
        return private_key.private_numbers().private_value.to_bytes(32, byteorder="big")

    def public_key_bytes(self, public_key: ec.EllipticCurvePublicKey) -> bytes:
        return public_key.public_bytes(
            serialization.Encoding.X962,
            serialization.PublicFormat.CompressedPoint,
        )

    def sign(self, private_key: ec.EllipticCurvePrivateKey, payload: bytes) -> bytes:
        der = private_key.sign(
            payload,
            ec.ECDSA(hashes.SHA256(), deterministic_signing=True),
        )
        r, s = decode_dss_signature(der)
        if s > SECP256K1_ORDER // 2:
            s = SECP256K1_ORDER - s
        return r.to_bytes(32, byteorder="big") + s.to_bytes(32, byteorder="big")

    def verify(
        self, public_key: ec.EllipticCurvePublicKey, signature: bytes, payload: bytes
    ) -> bool:
        r = int.from_bytes(signature[:32], byteorder="big")
        s = int.from_bytes(signature[32:], byteorder="big")
        # High-S signatures are malleable copies of a low-S one; reject them.
        if not (0 < r < SECP256K1_ORDER and 0 < s <= SECP256K1_ORDER // 2):
            return False
        try:
            public_key.verify(
                encode_dss_signature(r, s),
                payload,
                ec.ECDSA(hashes.SHA256()),
            )
            return True
        except InvalidSignature:
            return False


SCHEMES: dict[SignatureAlgorithm, SignatureScheme] = {
    SignatureAlgorithm.ED25519: Ed25519Scheme(),
    SignatureAlgorithm.SECP256K1: Secp256k1Scheme(),
}

_unmapped = set(SignatureAlgorithm) - set(SCHEMES)
if _unmapped:
    raise RuntimeError(f"No signature scheme registered for: {sorted(a.value for a in _unmapped)}")


def scheme_for(algorithm: SignatureAlgorithm | str) -> SignatureScheme:
    """Look up the scheme for an algorithm tag.

    Raises:
        UnsupportedAlgorithm: If the tag is not recognized.
    """
    return SCHEMES[SignatureAlgorithm.parse(algorithm)]


def sign(payload: bytes, private_key: str, algorithm: SignatureAlgorithm | str) -> str:
    """Sign ``payload`` and return the encoded signature.

    Args:
        payload: Canonical bytes to sign.
        private_key: Hex-encoded private key for ``algorithm``.
        algorithm: Signature algorithm tag.

    Returns:
        Scheme tag followed by the hex-encoded raw signature.

    Raises:
        UnsupportedAlgorithm: If the algorithm is not recognized.
        KeyMaterialError: If the private key cannot be decoded.
    """
    scheme = scheme_for(algorithm)
    key = scheme.load_private_key(_decode_hex(private_key, "private key"))
    return scheme.tag + scheme.sign(key, payload).hex()


def verify(
    payload: bytes,
    signature: str,
    public_key: str,
    algorithm: SignatureAlgorithm | str,
) -> bool:
    """Check an encoded signature over ``payload``.

    Malformed signatures or keys, and a scheme tag that does not belong to
    ``algorithm``, all return ``False``.

    Raises:
        UnsupportedAlgorithm: If the algorithm is not recognized.
    """
    scheme = scheme_for(algorithm)
    if not isinstance(signature, str) or not signature.startswith(scheme.tag):
        return False
    try:
        raw = _decode_hex(signature[len(scheme.tag):], "signature")
        key = scheme.load_public_key(_decode_hex(public_key, "public key"))
    except KeyMaterialError:
        return False
    if len(raw) != scheme.signature_length:
        return False
    return scheme.verify(key, raw, payload)


@dataclass(frozen=True)
class KeyPair:
    """Hex-encoded key pair for one algorithm."""

    algorithm: SignatureAlgorithm
    private_key: str = field(repr=False)
    public_key: str


def generate_key_pair(algorithm: SignatureAlgorithm | str) -> KeyPair:
    """Generate a fresh key pair (Ed25519 raw keys, secp256k1 compressed public key)."""
    algorithm = SignatureAlgorithm.parse(algorithm)
    scheme = SCHEMES[algorithm]
    private_key = scheme.generate_private_key()
    return KeyPair(
        algorithm=algorithm,
        private_key=scheme.private_key_bytes(private_key).hex(),
        public_key=scheme.public_key_bytes(private_key.public_key()).hex(),
    )


def derive_public_key(private_key: str, algorithm: SignatureAlgorithm | str) -> str:
    """Hex-encoded public key belonging to ``private_key``.

    Raises:
        KeyMaterialError: If the private key cannot be decoded.
    """
    scheme = scheme_for(algorithm)
    key = scheme.load_private_key(_decode_hex(private_key, "private key"))
    return scheme.public_key_bytes(key.public_key()).hex()


def check_key_pair(private_key: str, public_key: str, algorithm: SignatureAlgorithm | str) -> None:
    """Ensure both keys belong to ``algorithm`` and to each other.

    Raises:
        KeyMaterialError: If either key is malformed or they do not match.
    """
    scheme = scheme_for(algorithm)
    declared = scheme.load_public_key(_decode_hex(public_key, "public key"))
    if scheme.public_key_bytes(declared) != _decode_hex(
        derive_public_key(private_key, algorithm), "public key"
    ):
        raise KeyMaterialError(f"Public key does not match private key for {algorithm}")
