"""
Signature Primitives for SSH Public Key Algorithms

Each AlgorithmVariant is bound to exactly one signature scheme:
- ssh-rsa             - RSASSA-PKCS1-v1_5 with SHA-1
- ssh-dss             - DSA with SHA-1
- ecdsa-sha2-nistp256 - ECDSA with SHA-256
- ecdsa-sha2-nistp384 - ECDSA with SHA-384
- ecdsa-sha2-nistp521 - ECDSA with SHA-512
- ssh-ed25519         - Ed25519 (hash is part of the scheme)

Primitives are stateful (they accumulate the message) and owned by a single
caller. signer_for() builds a new one on every call.
"""

import base64
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

import structlog
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed
from cryptography.x509 import ObjectIdentifier
from cryptography.x509.oid import SignatureAlgorithmOID

from .algorithms import AlgorithmError, AlgorithmVariant, identifier_of, require_variant

logger = structlog.get_logger()


class IncompatibleKeyError(AlgorithmError):
    """Key material does not belong to the primitive's algorithm family."""
    pass


class SignerPrimitive(ABC):
    """
    Hash-then-sign / hash-then-verify object for one fixed scheme.

    Usage:
        signer = signer_for(AlgorithmVariant.ECDSA_P256)
        signer.init_sign(private_key)
        signer.update(b"message")
        signature = signer.sign()
    """

    variant: AlgorithmVariant
    algorithm_name: str
    oid: ObjectIdentifier
    private_key_type: Type[Any]
    public_key_type: Type[Any]

    def __init__(self):
        self._key = None
        self._for_signing: Optional[bool] = None

    @property
    def identifier(self) -> str:
        """SSH identifier of the algorithm this primitive implements."""
        return identifier_of(self.variant)

    @property
    def hash_algorithm(self) -> Optional[hashes.HashAlgorithm]:
        """Message digest applied before signing, None when internal to the scheme."""
        return None

    @property
    def for_signing(self) -> Optional[bool]:
        """True in signing mode, False in verification mode, None until initialized."""
        return self._for_signing

    def init_sign(self, private_key) -> None:
        """Bind a private key and switch to signing mode."""
        self._bind(private_key, self.private_key_type, for_signing=True)

    def init_verify(self, public_key) -> None:
        """Bind a public key and switch to verification mode."""
        self._bind(public_key, self.public_key_type, for_signing=False)

    def _bind(self, key, expected_type: Type[Any], for_signing: bool) -> None:
        if not isinstance(key, expected_type):
            logger.warning(
                "incompatible_key",
                algorithm=self.algorithm_name,
                expected=expected_type.__name__,
                actual=type(key).__name__,
            )
            raise IncompatibleKeyError(
                f"{self.algorithm_name} requires {expected_type.__name__}, "
                f"got {type(key).__name__}"
            )
        self._key = key
        self._for_signing = for_signing
        self.reset()

    @staticmethod
    def _require_bytes(value, name: str) -> None:
        # bytes(int) would silently become that many zero bytes
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"{name} must be bytes-like, not {type(value).__name__}")

    def _require_mode(self, for_signing: bool) -> None:
        if self._for_signing is None:
            raise RuntimeError(f"{self.algorithm_name} signer used before initialization")
        if self._for_signing != for_signing:
            mode = "signing" if for_signing else "verification"
            raise RuntimeError(f"{self.algorithm_name} signer not initialized for {mode}")

    def update(self, data: bytes) -> None:
        """Feed message bytes."""
        if self._for_signing is None:
            raise RuntimeError(f"{self.algorithm_name} signer used before initialization")
        self._require_bytes(data, "data")
        self._update(bytes(data))

    def sign(self) -> bytes:
        """Sign everything fed since the last reset, then reset."""
        self._require_mode(for_signing=True)
        try:
            return self._sign()
        finally:
            self.reset()

    def verify(self, signature: bytes) -> bool:
        """Check signature over everything fed since the last reset, then reset."""
        self._require_mode(for_signing=False)
        try:
            self._require_bytes(signature, "signature")
            self._verify(bytes(signature))
            return True
        except InvalidSignature:
            return False
        finally:
            self.reset()

    def sign_b64(self) -> str:
        """Sign and return base64-encoded signature."""
        return base64.b64encode(self.sign()).decode('utf-8')

    def verify_b64(self, signature_b64: str) -> bool:
        """Verify a base64-encoded signature. Undecodable input is invalid."""
        self._require_mode(for_signing=False)
        try:
            signature = base64.b64decode(signature_b64, validate=True)
        except ValueError:
            # binascii.Error, or non-ASCII text
            self.reset()
            return False
        except TypeError:
            self.reset()
            raise
        return self.verify(signature)

    @abstractmethod
    def reset(self) -> None:
        """Discard the accumulated message. Key and mode stay bound."""
        pass

    @abstractmethod
    def _update(self, data: bytes) -> None:
        pass

    @abstractmethod
    def _sign(self) -> bytes:
        pass

    @abstractmethod
    def _verify(self, signature: bytes) -> None:
        """Raise InvalidSignature if the signature does not match."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.algorithm_name}>"


class DigestSigner(SignerPrimitive):
    """Primitive that hashes the message incrementally and signs the digest."""

    hash_class: Type[hashes.HashAlgorithm]

    def __init__(self):
        super().__init__()
        self._digest = hashes.Hash(self.hash_class())

    @property
    def hash_algorithm(self) -> hashes.HashAlgorithm:
        return self.hash_class()

    def reset(self) -> None:
        self._digest = hashes.Hash(self.hash_class())

    def _update(self, data: bytes) -> None:
        self._digest.update(data)

    def _finalize(self) -> bytes:
        return self._digest.finalize()

    def _prehashed(self) -> Prehashed:
        return Prehashed(self.hash_class())


class RSASha1Signer(DigestSigner):
    """ssh-rsa: PKCS#1 v1.5 signature over a SHA-1 digest (RFC 4253 6.6)."""

    variant = AlgorithmVariant.RSA
    algorithm_name = "SHA-1withRSA"
    oid = SignatureAlgorithmOID.RSA_WITH_SHA1
    hash_class = hashes.SHA1
    private_key_type = rsa.RSAPrivateKey
    public_key_type = rsa.RSAPublicKey

    def _sign(self) -> bytes:
        return self._key.sign(self._finalize(), padding.PKCS1v15(), self._prehashed())

    def _verify(self, signature: bytes) -> None:
        self._key.verify(signature, self._finalize(), padding.PKCS1v15(), self._prehashed())


class DSASha1Signer(DigestSigner):
    """ssh-dss: DSA over a SHA-1 digest. Signatures are DER encoded (r, s)."""

    variant = AlgorithmVariant.DSA
    algorithm_name = "SHA-1withDSA"
    oid = SignatureAlgorithmOID.DSA_WITH_SHA1
    hash_class = hashes.SHA1
    private_key_type = dsa.DSAPrivateKey
    public_key_type = dsa.DSAPublicKey

    def _sign(self) -> bytes:
        return self._key.sign(self._finalize(), self._prehashed())

    def _verify(self, signature: bytes) -> None:
        self._key.verify(signature, self._finalize(), self._prehashed())


class ECDSASigner(DigestSigner):
    """
    ecdsa-sha2-*: ECDSA with the digest RFC 5656 section 6.2.1 assigns to
    the curve size. Signatures are DER encoded (r, s).
    """

    private_key_type = ec.EllipticCurvePrivateKey
    public_key_type = ec.EllipticCurvePublicKey

    def _sign(self) -> bytes:
        return self._key.sign(self._finalize(), ec.ECDSA(self._prehashed()))

    def _verify(self, signature: bytes) -> None:
        self._key.verify(signature, self._finalize(), ec.ECDSA(self._prehashed()))


class ECDSAP256Signer(ECDSASigner):
    variant = AlgorithmVariant.ECDSA_P256
    algorithm_name = "SHA-256withECDSA"
    oid = SignatureAlgorithmOID.ECDSA_WITH_SHA256
    hash_class = hashes.SHA256


class ECDSAP384Signer(ECDSASigner):
    variant = AlgorithmVariant.ECDSA_P384
    algorithm_name = "SHA-384withECDSA"
    oid = SignatureAlgorithmOID.ECDSA_WITH_SHA384
    hash_class = hashes.SHA384


class ECDSAP521Signer(ECDSASigner):
    variant = AlgorithmVariant.ECDSA_P521
    algorithm_name = "SHA-512withECDSA"
    oid = SignatureAlgorithmOID.ECDSA_WITH_SHA512
    hash_class = hashes.SHA512


class Ed25519Signer(SignerPrimitive):
    """
    ssh-ed25519: PureEdDSA over the whole message (RFC 8032).

    The scheme hashes internally, so the message is buffered until
    sign()/verify().
    """

    variant = AlgorithmVariant.ED25519
    algorithm_name = "Ed25519"
    oid = SignatureAlgorithmOID.ED25519
    private_key_type = ed25519.Ed25519PrivateKey
    public_key_type = ed25519.Ed25519PublicKey

    def __init__(self):
        super().__init__()
        self._buffer = bytearray()

    def reset(self) -> None:
        self._buffer = bytearray()

    def _update(self, data: bytes) -> None:
        self._buffer.extend(data)

    def _sign(self) -> bytes:
        return self._key.sign(bytes(self._buffer))

    def _verify(self, signature: bytes) -> None:
        self._key.verify(signature, bytes(self._buffer))


_SIGNER_CLASSES: Dict[AlgorithmVariant, Type[SignerPrimitive]] = {
    AlgorithmVariant.RSA: RSASha1Signer,
    AlgorithmVariant.DSA: DSASha1Signer,
    AlgorithmVariant.ECDSA_P256: ECDSAP256Signer,
    AlgorithmVariant.ECDSA_P384: ECDSAP384Signer,
    AlgorithmVariant.ECDSA_P521: ECDSAP521Signer,
    AlgorithmVariant.ED25519: Ed25519Signer,
}

if set(_SIGNER_CLASSES) != set(AlgorithmVariant):
    raise AssertionError("signer table must cover every AlgorithmVariant")


def signer_for(variant: AlgorithmVariant) -> SignerPrimitive:
    """
    Factory function to get a fresh signature primitive.

    Args:
        variant: Which algorithm the key material belongs to

    Returns:
        An uninitialized SignerPrimitive; call init_sign() or init_verify()

    Raises:
        UnrecognizedAlgorithm: variant is not an AlgorithmVariant member
    """
    return _SIGNER_CLASSES[require_variant(variant)]()
