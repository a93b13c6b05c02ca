"""
This package provides a Python specification for the Lamport one-time
hash-based signature scheme.

It exposes the core data structures and the main interface functions.
"""

from .constants import (
    ALL_CONFIGS,
    BLAKE2B_CONFIG,
    BLAKE2S_CONFIG,
    DEFAULT_CONFIG,
    SHA3_256_CONFIG,
    SHA3_384_CONFIG,
    SHA3_512_CONFIG,
    SHA256_CONFIG,
    SHA384_CONFIG,
    SHA512_256_CONFIG,
    SHA512_CONFIG,
    LamportConfig,
)
from .containers import PrivateKey, PublicKey, Signature
from .hasher import Hasher, HashFunction
from .interface import DEFAULT_SCHEME, LamportScheme, get_scheme

__all__ = [
    "LamportScheme",
    "LamportConfig",
    "PrivateKey",
    "PublicKey",
    "Signature",
    "Hasher",
    "HashFunction",
    "get_scheme",
    "DEFAULT_SCHEME",
    "ALL_CONFIGS",
    "DEFAULT_CONFIG",
    "SHA256_CONFIG",
    "SHA384_CONFIG",
    "SHA512_CONFIG",
    "SHA512_256_CONFIG",
    "SHA3_256_CONFIG",
    "SHA3_384_CONFIG",
    "SHA3_512_CONFIG",
    "BLAKE2B_CONFIG",
    "BLAKE2S_CONFIG",
]
