"""
SSH Public Key Algorithm Identifiers

Maps the supported public key algorithms to the identifier strings used on
the wire.

Sources:
- RFC 4253 section 6.6 - ssh-rsa, ssh-dss, pgp-sign-*
- RFC 5656 section 6.2 - ecdsa-sha2-[curve]
- RFC 8709 - ssh-ed25519
- OpenSSH PROTOCOL.certkeys - *-cert-v00@openssh.com, *-cert-v01@openssh.com
"""

from enum import Enum
from typing import Any, Dict, Tuple, Union
import structlog

logger = structlog.get_logger()


# RFC 4253
ALGORITHM_RSA_KEY = "ssh-rsa"
ALGORITHM_DSA_KEY = "ssh-dss"
ALGORITHM_PGP_RSA_SIGN_CERT = "pgp-sign-rsa"
ALGORITHM_PGP_DSA_SIGN_CERT = "pgp-sign-dss"

# RFC 5656
ALGORITHM_ECDSA_SHA2_PREFIX = "ecdsa-sha2-"
EC_CURVE_NISTP256 = "nistp256"
EC_CURVE_NISTP384 = "nistp384"
EC_CURVE_NISTP521 = "nistp521"
ALGORITHM_ECDSA_SHA2_NISTP256_KEY = ALGORITHM_ECDSA_SHA2_PREFIX + EC_CURVE_NISTP256
ALGORITHM_ECDSA_SHA2_NISTP384_KEY = ALGORITHM_ECDSA_SHA2_PREFIX + EC_CURVE_NISTP384
ALGORITHM_ECDSA_SHA2_NISTP521_KEY = ALGORITHM_ECDSA_SHA2_PREFIX + EC_CURVE_NISTP521

# RFC 8709
ALGORITHM_ED25519_KEY = "ssh-ed25519"

# OpenSSH certificates
OPENSSH_CERT_V00_SUFFIX = "-cert-v00@openssh.com"
OPENSSH_CERT_V01_SUFFIX = "-cert-v01@openssh.com"

ALGORITHM_RSA_CERT_V00 = ALGORITHM_RSA_KEY + OPENSSH_CERT_V00_SUFFIX
ALGORITHM_DSA_CERT_V00 = ALGORITHM_DSA_KEY + OPENSSH_CERT_V00_SUFFIX
ALGORITHM_RSA_CERT_V01 = ALGORITHM_RSA_KEY + OPENSSH_CERT_V01_SUFFIX
ALGORITHM_DSA_CERT_V01 = ALGORITHM_DSA_KEY + OPENSSH_CERT_V01_SUFFIX
ALGORITHM_ECDSA_SHA2_NISTP256_CERT = ALGORITHM_ECDSA_SHA2_NISTP256_KEY + OPENSSH_CERT_V01_SUFFIX
ALGORITHM_ECDSA_SHA2_NISTP384_CERT = ALGORITHM_ECDSA_SHA2_NISTP384_KEY + OPENSSH_CERT_V01_SUFFIX
ALGORITHM_ECDSA_SHA2_NISTP521_CERT = ALGORITHM_ECDSA_SHA2_NISTP521_KEY + OPENSSH_CERT_V01_SUFFIX
ALGORITHM_ED25519_CERT = ALGORITHM_ED25519_KEY + OPENSSH_CERT_V01_SUFFIX


class AlgorithmError(Exception):
    """Base class for algorithm registry errors."""
    pass


class UnrecognizedAlgorithm(AlgorithmError):
    """
    A value that does not name a supported algorithm reached the registry.

    Never recoverable: continuing with a guessed algorithm would sign or
    verify under the wrong scheme.
    """

    def __init__(self, value: Any, source: str = "variant"):
        self.value = value
        self.source = source
        super().__init__(f"Unrecognized algorithm {source}: {value!r}")


class AlgorithmVariant(Enum):
    """Supported SSH public key algorithms, in wire tag order."""
    RSA = "RSA"
    DSA = "DSA"
    ECDSA_P256 = "ECDSA-P256"
    ECDSA_P384 = "ECDSA-P384"
    ECDSA_P521 = "ECDSA-P521"
    ED25519 = "ED25519"

    @property
    def tag(self) -> int:
        """Stable integer tag used when the variant is serialized."""
        return _TAGS[self]

    @property
    def identifier(self) -> str:
        return identifier_of(self)

    @property
    def certificate_identifier(self) -> str:
        return certificate_identifier_of(self)


_TAGS: Dict[AlgorithmVariant, int] = {
    variant: position for position, variant in enumerate(AlgorithmVariant)
}

_KEY_IDENTIFIERS: Dict[AlgorithmVariant, str] = {
    AlgorithmVariant.RSA: ALGORITHM_RSA_KEY,
    AlgorithmVariant.DSA: ALGORITHM_DSA_KEY,
    AlgorithmVariant.ECDSA_P256: ALGORITHM_ECDSA_SHA2_NISTP256_KEY,
    AlgorithmVariant.ECDSA_P384: ALGORITHM_ECDSA_SHA2_NISTP384_KEY,
    AlgorithmVariant.ECDSA_P521: ALGORITHM_ECDSA_SHA2_NISTP521_KEY,
    AlgorithmVariant.ED25519: ALGORITHM_ED25519_KEY,
}

# Primary identifier first
_CERTIFICATE_IDENTIFIERS: Dict[AlgorithmVariant, Tuple[str, ...]] = {
    AlgorithmVariant.RSA: (ALGORITHM_RSA_CERT_V00, ALGORITHM_RSA_CERT_V01),
    AlgorithmVariant.DSA: (ALGORITHM_DSA_CERT_V00, ALGORITHM_DSA_CERT_V01),
    AlgorithmVariant.ECDSA_P256: (ALGORITHM_ECDSA_SHA2_NISTP256_CERT,),
    AlgorithmVariant.ECDSA_P384: (ALGORITHM_ECDSA_SHA2_NISTP384_CERT,),
    AlgorithmVariant.ECDSA_P521: (ALGORITHM_ECDSA_SHA2_NISTP521_CERT,),
    AlgorithmVariant.ED25519: (ALGORITHM_ED25519_CERT,),
}


def _build_identifier_index() -> Dict[str, AlgorithmVariant]:
    """Reverse lookup for every recognized identifier; fails on gaps or collisions."""
    variants = set(AlgorithmVariant)
    if set(_KEY_IDENTIFIERS) != variants or set(_CERTIFICATE_IDENTIFIERS) != variants:
        raise AssertionError("identifier tables must cover every AlgorithmVariant")

    index: Dict[str, AlgorithmVariant] = {}
    for variant in AlgorithmVariant:
        for identifier in (_KEY_IDENTIFIERS[variant],) + _CERTIFICATE_IDENTIFIERS[variant]:
            if identifier in index:
                raise AssertionError(f"duplicate algorithm identifier: {identifier}")
            index[identifier] = variant
    return index


_IDENTIFIER_INDEX = _build_identifier_index()
_CERTIFICATE_INDEX = frozenset(
    identifier
    for identifiers in _CERTIFICATE_IDENTIFIERS.values()
    for identifier in identifiers
)


def unrecognized(value: Any, source: str = "variant") -> UnrecognizedAlgorithm:
    """Log and build the error for a value that names no supported algorithm."""
    logger.critical("unrecognized_algorithm", value=repr(value), source=source)
    return UnrecognizedAlgorithm(value, source)


def require_variant(variant: Any) -> AlgorithmVariant:
    """Return variant unchanged if it is an AlgorithmVariant member, else fail."""
    if not isinstance(variant, AlgorithmVariant):
        raise unrecognized(variant)
    return variant


def identifier_of(variant: AlgorithmVariant) -> str:
    """Canonical key identifier, e.g. ``ecdsa-sha2-nistp256``."""
    return _KEY_IDENTIFIERS[require_variant(variant)]


def certificate_identifier_of(variant: AlgorithmVariant) -> str:
    """
    Certificate identifier for the variant.

    RSA and DSA use the legacy ``-cert-v00@openssh.com`` suffix; ECDSA and
    Ed25519 certificates were introduced with ``-cert-v01@openssh.com``.
    """
    return _CERTIFICATE_IDENTIFIERS[require_variant(variant)][0]


def certificate_identifiers(variant: AlgorithmVariant) -> Tuple[str, ...]:
    """All recognized certificate identifiers for the variant, primary first."""
    return _CERTIFICATE_IDENTIFIERS[require_variant(variant)]


def is_certificate_identifier(identifier: str) -> bool:
    return identifier in _CERTIFICATE_INDEX


def parse_identifier(identifier: Union[str, bytes]) -> AlgorithmVariant:
    """
    Resolve a key or certificate identifier read off the wire.

    Args:
        identifier: e.g. ``ssh-ed25519`` or ``ssh-ed25519-cert-v01@openssh.com``

    Returns:
        The matching AlgorithmVariant

    Raises:
        UnrecognizedAlgorithm: identifier is not supported
    """
    if isinstance(identifier, bytes):
        try:
            identifier = identifier.decode("ascii")
        except UnicodeDecodeError:
            raise unrecognized(identifier, "identifier") from None

    variant = _IDENTIFIER_INDEX.get(identifier) if isinstance(identifier, str) else None
    if variant is None:
        raise unrecognized(identifier, "identifier")
    return variant


def variant_from_tag(tag: int) -> AlgorithmVariant:
    """Decode a serialized variant tag. Out-of-range tags fail immediately."""
    # bool is an int subclass but never a valid tag
    if isinstance(tag, bool) or not isinstance(tag, int):
        raise unrecognized(tag, "tag")

    variants = list(AlgorithmVariant)
    if not 0 <= tag < len(variants):
        raise unrecognized(tag, "tag")
    return variants[tag]
