"""
Key Pairs for SSH Public Key Algorithms

Generates key material matching an AlgorithmVariant and maps existing
cryptography key objects back to their variant.
"""

import base64
import hashlib
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional
import structlog

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed25519, rsa

from .algorithms import AlgorithmVariant, identifier_of, require_variant, unrecognized
from .signer import SignerPrimitive, signer_for

logger = structlog.get_logger()

DEFAULT_RSA_KEY_SIZE = 2048
# ssh-dss is fixed at 1024 bits (RFC 4253 6.6, FIPS 186-2). cryptography
# warns (CryptographyDeprecationWarning) when DSA keys are written in OpenSSH
# format, so public_openssh() and fingerprint warn for DSA key pairs.
DEFAULT_DSA_KEY_SIZE = 1024

_EC_CURVES: Dict[AlgorithmVariant, ec.EllipticCurve] = {
    AlgorithmVariant.ECDSA_P256: ec.SECP256R1(),
    AlgorithmVariant.ECDSA_P384: ec.SECP384R1(),
    AlgorithmVariant.ECDSA_P521: ec.SECP521R1(),
}

_EC_VARIANTS: Dict[str, AlgorithmVariant] = {
    curve.name: variant for variant, curve in _EC_CURVES.items()
}


def _key_size_from_env(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


@dataclass
class KeyPair:
    """A private key, its public half, and the algorithm they belong to."""
    variant: AlgorithmVariant
    private_key: Any
    public_key: Any

    @property
    def identifier(self) -> str:
        return identifier_of(self.variant)

    def public_openssh(self) -> str:
        """Public key in authorized_keys form, e.g. ``ssh-ed25519 AAAA...``."""
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.OpenSSH,
            format=serialization.PublicFormat.OpenSSH,
        ).decode('ascii')

    @property
    def public_blob(self) -> bytes:
        """SSH wire encoding of the public key."""
        return base64.b64decode(self.public_openssh().split()[1])

    @property
    def fingerprint(self) -> str:
        """OpenSSH style SHA256 fingerprint."""
        digest = hashlib.sha256(self.public_blob).digest()
        return "SHA256:" + base64.b64encode(digest).decode('ascii').rstrip("=")

    def signer(self) -> SignerPrimitive:
        """Fresh primitive initialized for signing with this key."""
        primitive = signer_for(self.variant)
        primitive.init_sign(self.private_key)
        return primitive

    def verifier(self) -> SignerPrimitive:
        """Fresh primitive initialized for verification with the public key."""
        primitive = signer_for(self.variant)
        primitive.init_verify(self.public_key)
        return primitive


def generate_key_pair(
    variant: AlgorithmVariant,
    rsa_key_size: Optional[int] = None,
    dsa_key_size: Optional[int] = None,
) -> KeyPair:
    """
    Generate a new key pair for the variant.

    Args:
        variant: Which algorithm the key is for
        rsa_key_size: RSA modulus bits (default SSHALGO_RSA_KEY_SIZE or 2048)
        dsa_key_size: DSA key bits (default SSHALGO_DSA_KEY_SIZE or 1024)

    Returns:
        KeyPair holding cryptography key objects
    """
    variant = require_variant(variant)

    if variant == AlgorithmVariant.RSA:
        key_size = rsa_key_size
        if key_size is None:
            key_size = _key_size_from_env("SSHALGO_RSA_KEY_SIZE", DEFAULT_RSA_KEY_SIZE)
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    elif variant == AlgorithmVariant.DSA:
        key_size = dsa_key_size
        if key_size is None:
            key_size = _key_size_from_env("SSHALGO_DSA_KEY_SIZE", DEFAULT_DSA_KEY_SIZE)
        private_key = dsa.generate_private_key(key_size=key_size)
    elif variant in _EC_CURVES:
        curve = _EC_CURVES[variant]
        key_size = curve.key_size
        private_key = ec.generate_private_key(curve)
    elif variant == AlgorithmVariant.ED25519:
        key_size = 256
        private_key = ed25519.Ed25519PrivateKey.generate()
    else:
        raise unrecognized(variant)

    keypair = KeyPair(
        variant=variant,
        private_key=private_key,
        public_key=private_key.public_key(),
    )

    logger.info("key_pair_generated",
               algorithm=keypair.identifier,
               key_size=key_size)

    return keypair


def variant_of_key(key: Any) -> AlgorithmVariant:
    """
    Work out which variant a cryptography key object (private or public) belongs to.

    Only the key type and, for EC keys, the curve are inspected.
    """
    if isinstance(key, (rsa.RSAPrivateKey, rsa.RSAPublicKey)):
        return AlgorithmVariant.RSA
    if isinstance(key, (dsa.DSAPrivateKey, dsa.DSAPublicKey)):
        return AlgorithmVariant.DSA
    if isinstance(key, (ed25519.Ed25519PrivateKey, ed25519.Ed25519PublicKey)):
        return AlgorithmVariant.ED25519
    if isinstance(key, (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)):
        variant = _EC_VARIANTS.get(key.curve.name)
        if variant is not None:
            return variant
        raise unrecognized(key.curve.name, "curve")

    raise unrecognized(type(key).__name__, "key")
