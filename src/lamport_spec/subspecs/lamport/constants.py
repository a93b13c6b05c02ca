"""
Defines the configuration presets for the Lamport one-time signature scheme.

A Lamport key pair is fully determined by the hash function it is built on.
If the hash produces `L` bytes, every key holds `B = 8 * L` preimages per
bit value, one pair for each bit of a message digest.

.. note::
   Configs identify their hash algorithm by *name*. Two keys use the same hash
   if and only if their configs compare equal, regardless of which Python
   object happens to implement the hash.
"""

from typing import Callable

from cryptography.hazmat.primitives import hashes
from pydantic import BaseModel, ConfigDict, model_validator
from typing_extensions import Final

HASH_ALGORITHMS: Final[dict[str, Callable[[], hashes.HashAlgorithm]]] = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
    "sha512_256": hashes.SHA512_256,
    "sha3_256": hashes.SHA3_256,
    "sha3_384": hashes.SHA3_384,
    "sha3_512": hashes.SHA3_512,
    "blake2b": lambda: hashes.BLAKE2b(64),
    "blake2s": lambda: hashes.BLAKE2s(32),
}
"""
Fixed-output hash functions a key can be built on, by name.

Extendable-output functions (SHAKE) are deliberately absent: the scheme needs
a hash with one publicly known output length.
"""


class LamportConfig(BaseModel):
    """A model holding the configuration constants for a Lamport preset."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    ALGORITHM: str
    """The name of the hash function, a key of `HASH_ALGORITHMS`."""

    DIGEST_LENGTH: int
    """The output length `L` of the hash function, in bytes."""

    @model_validator(mode="after")
    def check_algorithm(self) -> "LamportConfig":
        """Reject unknown algorithms and digest lengths the hash cannot produce."""
        factory = HASH_ALGORITHMS.get(self.ALGORITHM)
        if factory is None:
            raise ValueError(
                f"Unsupported hash algorithm {self.ALGORITHM!r}. "
                f"Supported values: {sorted(HASH_ALGORITHMS)}"
            )
        digest_size = factory().digest_size
        if self.DIGEST_LENGTH != digest_size:
            raise ValueError(
                f"{self.ALGORITHM} produces {digest_size}-byte digests, "
                f"not {self.DIGEST_LENGTH}"
            )
        return self

    @property
    def NUM_BITS(self) -> int:  # noqa: N802
        """
        The number of bits `B` in a message digest.

        This is also the number of preimages in each half of a key, and the
        number of preimages in a signature.
        """
        return 8 * self.DIGEST_LENGTH

    @property
    def PUBLIC_KEY_LENGTH(self) -> int:  # noqa: N802
        """The size of an encoded public key: two halves of `B` digests."""
        return 2 * self.NUM_BITS * self.DIGEST_LENGTH

    @property
    def SIGNATURE_LENGTH(self) -> int:  # noqa: N802
        """The size of an encoded signature: one revealed preimage per bit."""
        return self.NUM_BITS * self.DIGEST_LENGTH

    def hash_algorithm(self) -> hashes.HashAlgorithm:
        """Build a fresh instance of the configured hash algorithm."""
        return HASH_ALGORITHMS[self.ALGORITHM]()


SHA256_CONFIG: Final = LamportConfig(ALGORITHM="sha256", DIGEST_LENGTH=32)
SHA384_CONFIG: Final = LamportConfig(ALGORITHM="sha384", DIGEST_LENGTH=48)
SHA512_CONFIG: Final = LamportConfig(ALGORITHM="sha512", DIGEST_LENGTH=64)
SHA512_256_CONFIG: Final = LamportConfig(ALGORITHM="sha512_256", DIGEST_LENGTH=32)
SHA3_256_CONFIG: Final = LamportConfig(ALGORITHM="sha3_256", DIGEST_LENGTH=32)
SHA3_384_CONFIG: Final = LamportConfig(ALGORITHM="sha3_384", DIGEST_LENGTH=48)
SHA3_512_CONFIG: Final = LamportConfig(ALGORITHM="sha3_512", DIGEST_LENGTH=64)
BLAKE2B_CONFIG: Final = LamportConfig(ALGORITHM="blake2b", DIGEST_LENGTH=64)
BLAKE2S_CONFIG: Final = LamportConfig(ALGORITHM="blake2s", DIGEST_LENGTH=32)

ALL_CONFIGS: Final[tuple[LamportConfig, ...]] = (
    SHA256_CONFIG,
    SHA384_CONFIG,
    SHA512_CONFIG,
    SHA512_256_CONFIG,
    SHA3_256_CONFIG,
    SHA3_384_CONFIG,
    SHA3_512_CONFIG,
    BLAKE2B_CONFIG,
    BLAKE2S_CONFIG,
)
"""Every preset, in a stable order."""

DEFAULT_CONFIG: Final = SHA256_CONFIG
"""The preset used when a caller does not pick one."""
