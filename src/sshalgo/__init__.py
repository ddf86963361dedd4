"""
SSH Public Key Algorithm Registry

Maps each supported SSH public key algorithm to:
- its wire identifier (ssh-rsa, ecdsa-sha2-nistp256, ...)
- a fresh signature primitive bound to the matching hash and scheme
"""

from .algorithms import (
    AlgorithmError,
    AlgorithmVariant,
    UnrecognizedAlgorithm,
    certificate_identifier_of,
    certificate_identifiers,
    identifier_of,
    is_certificate_identifier,
    parse_identifier,
    variant_from_tag,
)
from .signer import IncompatibleKeyError, SignerPrimitive, signer_for
from .keys import KeyPair, generate_key_pair, variant_of_key

__version__ = "0.1.0"

__all__ = [
    "AlgorithmError",
    "AlgorithmVariant",
    "UnrecognizedAlgorithm",
    "certificate_identifier_of",
    "certificate_identifiers",
    "identifier_of",
    "is_certificate_identifier",
    "parse_identifier",
    "variant_from_tag",
    "IncompatibleKeyError",
    "SignerPrimitive",
    "signer_for",
    "KeyPair",
    "generate_key_pair",
    "variant_of_key",
]
