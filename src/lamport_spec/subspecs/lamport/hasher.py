"""
Defines the hash capability the Lamport scheme is built on.

The scheme never cares *which* hash it uses, only that it can:

1.  Report a fixed output length `L`, to size the key arrays at runtime.
2.  Map any byte string to exactly `L` bytes, deterministically.

`HashFunction` states that capability as a structural protocol. `Hasher` is
the concrete implementation backed by the `cryptography` package, selected by
a `LamportConfig`.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cryptography.hazmat.primitives import hashes

from lamport_spec.types import StrictBaseModel

from .constants import LamportConfig


@runtime_checkable
class HashFunction(Protocol):
    """A deterministic hash with a fixed, publicly known output length."""

    @property
    def name(self) -> str:
        """The algorithm's name, used as its identity."""
        ...

    @property
    def digest_size(self) -> int:
        """The output length in bytes."""
        ...

    def digest(self, data: bytes | bytearray | memoryview) -> bytes:
        """Hash `data` into exactly `digest_size` bytes."""
        ...


class Hasher(StrictBaseModel):
    """An instance of the hash function for a given config."""

    config: LamportConfig
    """Configuration naming the hash algorithm and its output length."""

    @property
    def name(self) -> str:
        """The configured algorithm name."""
        return self.config.ALGORITHM

    @property
    def digest_size(self) -> int:
        """The configured output length `L` in bytes."""
        return self.config.DIGEST_LENGTH

    def digest(self, data: bytes | bytearray | memoryview) -> bytes:
        """
        Hash a single byte string.

        A fresh hash context is created for every call, so the hasher itself
        carries no state between invocations.

        Args:
            data: The bytes to hash.

        Returns:
            The `L`-byte digest.
        """
        context = hashes.Hash(self.config.hash_algorithm())
        context.update(data)
        return context.finalize()
