"""Utility functions for the Lamport signature scheme."""

import hmac
from typing import Iterator, Sequence


def digest_bits(digest: bytes) -> Iterator[int]:
    """
    Yields the bits of a digest in signing order.

    Bit `i` of the digest is bit `i % 8` of byte `i // 8`, counted from the
    least significant end. So the first byte contributes bits 0 to 7 in the
    order of the masks `0x01, 0x02, ..., 0x80`.

    Args:
        digest: The message digest.

    Yields:
        `0` or `1` for each of the `8 * len(digest)` bit positions.
    """
    for byte in digest:
        for j in range(8):
            yield 1 if byte & (1 << j) else 0


def zeroize(buffers: Sequence[bytearray]) -> None:
    """
    Overwrites every byte of every buffer with zero, in place.

    Slice assignment keeps each buffer's length and identity, so any live
    `memoryview` over it observes the zeros.
    """
    for buffer in buffers:
        buffer[:] = bytes(len(buffer))


def bytes_eq(a: bytes | bytearray | memoryview, b: bytes | bytearray | memoryview) -> bool:
    """
    Compares two byte strings in constant time.

    The running time depends only on the lengths of the inputs, never on
    where they first differ. Buffers are read in place, so no copy of a secret
    outlives the call.
    """
    return hmac.compare_digest(a, b)
