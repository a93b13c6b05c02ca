"""
Defines the core interface for the Lamport one-time signature scheme.

Specification for the high-level functions (`key_gen`, `derive_public`,
`sign`, `verify`).

This constitutes the public API of the signature scheme.
"""

from __future__ import annotations

import logging
from typing import Sequence

from lamport_spec.types import AlreadyUsedError, RandomnessUnavailableError

from .constants import (
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
from .rand import Rand
from .utils import bytes_eq, digest_bits, zeroize

logger = logging.getLogger(__name__)


class LamportScheme:
    """Instance of the Lamport one-time signature scheme for a given config."""

    def __init__(self, config: LamportConfig, hasher: HashFunction, rand: Rand):
        """
        Initializes the scheme with a specific hash function.

        `hasher` may be any `HashFunction`. Its name and digest size must match
        the algorithm named by `config`.
        """
        if (
            hasher.name != config.ALGORITHM
            or hasher.digest_size != config.DIGEST_LENGTH
            or rand.config != config
        ):
            raise ValueError("hasher and rand must share the scheme's config")
        self.config = config
        self.hasher = hasher
        self.rand = rand

    def key_gen(self) -> PrivateKey:
        """
        Generates a new one-time private key.

        This is a **randomized** algorithm. It draws `2 * B` independent
        preimages of `L` bytes from the operating system's secure random source:
        `B` to sign a 0 bit and `B` to sign a 1 bit.

        Returns:
            A fresh, unused `PrivateKey`.

        Raises:
            RandomnessUnavailableError: If the random source cannot be read.
                This is fatal; there is no fallback to a weaker source. Any
                preimages drawn before the failure are erased.
        """
        num_bits = 8 * self.hasher.digest_size

        zero_values = self.rand.preimages(num_bits)
        try:
            one_values = self.rand.preimages(num_bits)
        except RandomnessUnavailableError:
            zeroize(zero_values)
            raise

        logger.debug(
            "Generated %s private key with %d preimage pairs", self.config.ALGORITHM, num_bits
        )
        return PrivateKey(self.config, zero_values, one_values)

    def derive_public(self, private_key: PrivateKey) -> PublicKey:
        """
        Computes the public key committing to every preimage of `private_key`.

        Each entry of the public key is the hash of the preimage in the same
        array at the same index. This is a pure read: the private key is not
        marked used and may be derived from any number of times.

        Args:
            private_key: The key to derive from.

        Returns:
            The matching `PublicKey`.

        Raises:
            ValueError: If the key was generated for another hash function.
            KeyErasedError: If the key's preimages have already been erased.
        """
        self._check_key_config(private_key)
        zero_values, one_values = private_key.digest_preimages(self.hasher.digest)

        public_key = PublicKey(config=self.config, zero_values=zero_values, one_values=one_values)
        logger.debug("Derived %s public key", self.config.ALGORITHM)
        return public_key

    def key_pair(self) -> tuple[PublicKey, PrivateKey]:
        """Generates a private key and returns it with its public key."""
        private_key = self.key_gen()
        return self.derive_public(private_key), private_key

    def sign(self, private_key: PrivateKey, message: bytes) -> Signature:
        """
        Produces a one-time signature for `message`.

        ### Signing Algorithm

        1.  **Hash the message**: `digest = H(message)`, `B` bits long.

        2.  **Reveal preimages**: For each bit index `i` from `0` to `B - 1`
            (bit `i % 8` of byte `i // 8`, least significant first), reveal
            `one_values[i]` if the bit is 1, else `zero_values[i]`. Revealed
            preimages are copied; the key's own buffers are untouched.

        3.  **Retire the key**: Mark the key used. Half of its secrets are now
            public, so a second signature would allow forgeries.

        Args:
            private_key: The key to sign with. It is mutated.
            message: The message bytes.

        Returns:
            A `Signature` of `B` preimages.

        Raises:
            AlreadyUsedError: If the key has already signed or been erased.
                Nothing is changed in that case.
            ValueError: If the key was generated for another hash function.
        """
        self._check_key_config(private_key)
        digest = self.hasher.digest(message)

        try:
            signature = private_key.reveal(digest)
        except AlreadyUsedError as e:
            logger.warning("Refused to sign with %s private key: %s", self.config.ALGORITHM, e)
            raise

        logger.debug("Signed %d-byte message with %s key", len(message), self.config.ALGORITHM)
        return signature

    def verify(
        self,
        public_key: PublicKey,
        signature: Signature | Sequence[bytes],
        message: bytes,
        *,
        constant_time: bool = False,
    ) -> bool:
        """
        Verifies a signature against a public key and message.

        This is a **deterministic** algorithm that never raises for a bad
        signature: every malformed or mismatching input yields `False`.

        ### Verification Algorithm

        1.  **Check shape**: The public key must be for this scheme's hash, and
            the signature must hold exactly `B` preimages.

        2.  **Hash the message**: `digest = H(message)`.

        3.  **Check each bit**: For each bit index `i` (same order as `sign`),
            hash the revealed preimage and compare it with `one_values[i]` if
            the bit is 1, else with `zero_values[i]`.

        The signature is valid iff all `B` comparisons match.

        ### Timing

        By default the loop stops at the first mismatch and compares digests
        with `==`, so its running time reveals where a forgery went wrong. Pass
        `constant_time=True` to compare every position with a constant-time
        comparison and never exit early.

        Args:
            public_key: The signer's public key.
            signature: A `Signature` or any sequence of preimage byte strings.
            message: The message that was supposedly signed.
            constant_time: Use the constant-time comparison path.

        Returns:
            `True` if the signature is valid, `False` otherwise.
        """
        config = self.config

        if public_key.config != config:
            logger.debug(
                "Public key uses %s, scheme uses %s",
                public_key.config.ALGORITHM,
                config.ALGORITHM,
            )
            return False

        try:
            num_values = len(signature)
        except TypeError:
            logger.debug("Signature is not a sequence")
            return False
        if num_values != config.NUM_BITS:
            logger.debug("Signature holds %d preimages, expected %d", num_values, config.NUM_BITS)
            return False

        digest = self.hasher.digest(message)

        valid = True
        for i, bit in enumerate(digest_bits(digest)):
            expected = public_key.one_values[i] if bit else public_key.zero_values[i]
            try:
                actual = self.hasher.digest(signature[i])
            except TypeError:
                logger.debug("Signature entry %d is not a byte string", i)
                return False

            if constant_time:
                valid &= bytes_eq(actual, expected)
            elif actual != expected:
                logger.debug("Signature mismatch at bit %d", i)
                return False

        return valid

    def _check_key_config(self, private_key: PrivateKey) -> None:
        if private_key.config != self.config:
            raise ValueError(
                f"Key was generated for {private_key.config.ALGORITHM}, "
                f"scheme uses {self.config.ALGORITHM}"
            )


def _scheme(config: LamportConfig) -> LamportScheme:
    return LamportScheme(config=config, hasher=Hasher(config=config), rand=Rand(config=config))


SHA256_SCHEME = _scheme(SHA256_CONFIG)
SHA384_SCHEME = _scheme(SHA384_CONFIG)
SHA512_SCHEME = _scheme(SHA512_CONFIG)
SHA512_256_SCHEME = _scheme(SHA512_256_CONFIG)
SHA3_256_SCHEME = _scheme(SHA3_256_CONFIG)
SHA3_384_SCHEME = _scheme(SHA3_384_CONFIG)
SHA3_512_SCHEME = _scheme(SHA3_512_CONFIG)
BLAKE2B_SCHEME = _scheme(BLAKE2B_CONFIG)
BLAKE2S_SCHEME = _scheme(BLAKE2S_CONFIG)

_SCHEMES: dict[str, LamportScheme] = {
    scheme.config.ALGORITHM: scheme
    for scheme in (
        SHA256_SCHEME,
        SHA384_SCHEME,
        SHA512_SCHEME,
        SHA512_256_SCHEME,
        SHA3_256_SCHEME,
        SHA3_384_SCHEME,
        SHA3_512_SCHEME,
        BLAKE2B_SCHEME,
        BLAKE2S_SCHEME,
    )
}
DEFAULT_SCHEME = _SCHEMES[DEFAULT_CONFIG.ALGORITHM]
"""The scheme used when a caller does not pick a hash function."""


def get_scheme(algorithm: LamportConfig | str) -> LamportScheme:
    """
    Look up the pre-built scheme for a hash function.

    Args:
        algorithm: A config, or the algorithm name it carries (e.g. `"sha256"`).

    Raises:
        ValueError: If no preset uses that algorithm.
    """
    name = algorithm.ALGORITHM if isinstance(algorithm, LamportConfig) else algorithm
    try:
        return _SCHEMES[name]
    except KeyError:
        raise ValueError(
            f"Unsupported hash algorithm {name!r}. Supported values: {sorted(_SCHEMES)}"
        ) from None
