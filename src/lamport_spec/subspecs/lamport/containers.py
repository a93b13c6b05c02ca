"""
Data containers for the Lamport one-time signature scheme.

This module defines the three values a user handles: PrivateKey, PublicKey and
Signature. The algorithms that connect them live in `interface.py`.
"""

from __future__ import annotations

import io
import threading
import weakref
from typing import IO, TYPE_CHECKING, Any, Callable, Iterator, Sequence

from pydantic import Field, model_validator
from typing_extensions import Self

from lamport_spec.types import (
    AlreadyUsedError,
    KeyErasedError,
    MalformedPublicKeyEncodingError,
    MalformedSignatureEncodingError,
    StrictBaseModel,
)

from .constants import DEFAULT_CONFIG, LamportConfig
from .utils import bytes_eq, digest_bits, zeroize

if TYPE_CHECKING:
    from .interface import LamportScheme


def _check_entries(name: str, values: Sequence[Any], config: LamportConfig) -> None:
    """Require exactly `B` entries of exactly `L` bytes each."""
    if len(values) != config.NUM_BITS:
        raise ValueError(f"{name} must hold {config.NUM_BITS} entries, got {len(values)}")
    for index, value in enumerate(values):
        if len(value) != config.DIGEST_LENGTH:
            raise ValueError(
                f"{name}[{index}] must be {config.DIGEST_LENGTH} bytes, got {len(value)}"
            )


def _read_chunks(stream: IO[bytes], count: int, size: int) -> tuple[bytes, ...]:
    """Read up to `count` chunks of `size` bytes, stopping early if the stream ends."""
    chunks = []
    for _ in range(count):
        chunk = stream.read(size)
        if len(chunk) != size:
            break
        chunks.append(chunk)
    return tuple(chunks)


def _adopt(name: str, values: Sequence[Any]) -> list[bytearray]:
    """Take ownership of `bytearray` preimages and copy other bytes-like ones."""
    buffers: list[bytearray] = []
    for index, value in enumerate(values):
        if isinstance(value, bytearray):
            buffers.append(value)
        elif isinstance(value, (bytes, memoryview)):
            buffers.append(bytearray(value))
        else:
            # bytearray(int) would build a zero-filled buffer of that length.
            zeroize(buffers)
            raise TypeError(
                f"{name}[{index}] must be bytes, bytearray or memoryview, "
                f"got {type(value).__name__}"
            )
    return buffers


def _erase(zero_values: list[bytearray], one_values: list[bytearray]) -> None:
    zeroize(zero_values)
    zeroize(one_values)


class PublicKey(StrictBaseModel):
    """
    The public-facing component of a key pair.

    Holds the hash of every preimage of the private key, in the same array at
    the same index. It contains no secret material and is safe to distribute.

    Encoded form (see `serialize`):
    - zero_values: B digests of L bytes
    - one_values:  B digests of L bytes

    The hash algorithm is not part of the encoding. Decoders supply it.
    """

    config: LamportConfig
    """The hash algorithm the key was derived with."""

    zero_values: tuple[bytes, ...] = Field(repr=False)
    """`H(preimage)` for each preimage that signs a 0 bit."""

    one_values: tuple[bytes, ...] = Field(repr=False)
    """`H(preimage)` for each preimage that signs a 1 bit."""

    @model_validator(mode="after")
    def check_shape(self) -> PublicKey:
        """Both halves must hold `B` digests of `L` bytes."""
        _check_entries("zero_values", self.zero_values, self.config)
        _check_entries("one_values", self.one_values, self.config)
        return self

    def serialize(self, stream: IO[bytes]) -> int:
        """
        Write the raw digests to `stream`: every zero value, then every one value.

        Returns:
            Number of bytes written (always `PUBLIC_KEY_LENGTH`).
        """
        written = 0
        for digest in self.zero_values + self.one_values:
            stream.write(digest)
            written += len(digest)
        return written

    @classmethod
    def deserialize(cls, stream: IO[bytes], config: LamportConfig) -> Self:
        """
        Read exactly `PUBLIC_KEY_LENGTH` bytes from `stream` and build a key.

        Raises:
            MalformedPublicKeyEncodingError: If the stream ends prematurely.
        """
        count, size = config.NUM_BITS, config.DIGEST_LENGTH
        digests = _read_chunks(stream, 2 * count, size)
        if len(digests) != 2 * count:
            raise MalformedPublicKeyEncodingError(
                cls.__name__, expected=config.PUBLIC_KEY_LENGTH, actual=len(digests) * size
            )
        return cls(config=config, zero_values=digests[:count], one_values=digests[count:])

    def to_bytes(self) -> bytes:
        """Return the flat `2 * B * L` byte encoding of the key."""
        with io.BytesIO() as stream:
            self.serialize(stream)
            return stream.getvalue()

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes, config: LamportConfig) -> Self:
        """
        Parse `data` as a public key for the hash named by `config`.

        The first half of `data` holds the zero values and the second half the
        one values, each split into `B` digests of `L` bytes.

        Raises:
            MalformedPublicKeyEncodingError: If `data` is not exactly
                `PUBLIC_KEY_LENGTH` bytes long.
        """
        if len(data) != config.PUBLIC_KEY_LENGTH:
            raise MalformedPublicKeyEncodingError(
                cls.__name__, expected=config.PUBLIC_KEY_LENGTH, actual=len(data)
            )
        with io.BytesIO(data) as stream:
            return cls.deserialize(stream, config)

    def verify_signature(
        self, signature: Signature | Sequence[bytes], message: bytes, *, constant_time: bool = False
    ) -> bool:
        """Check `signature` over `message` with the scheme matching this key's hash."""
        from .interface import get_scheme

        return get_scheme(self.config).verify(
            self, signature, message, constant_time=constant_time
        )


class Signature(StrictBaseModel):
    """
    A signature produced by `sign`.

    One revealed preimage per bit of the message digest, in bit order. A
    well-formed signature holds exactly `B` values of `L` bytes, but the model
    does not enforce it: verification reports malformed signatures as invalid
    instead of refusing to represent them.

    Encoded form: the values concatenated, `B * L` bytes in total.
    """

    data: tuple[bytes, ...] = Field(repr=False)
    """The revealed preimages, copied out of the private key."""

    def __len__(self) -> int:
        """Return the number of revealed preimages."""
        return len(self.data)

    def __iter__(self) -> Iterator[bytes]:  # type: ignore[override]
        """Iterate over revealed preimages."""
        return iter(self.data)

    def __getitem__(self, index: int) -> bytes:
        return self.data[index]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(len={len(self.data)})"

    def serialize(self, stream: IO[bytes]) -> int:
        """Write the revealed preimages back to back, returning the byte count."""
        written = 0
        for value in self.data:
            stream.write(value)
            written += len(value)
        return written

    @classmethod
    def deserialize(cls, stream: IO[bytes], config: LamportConfig) -> Self:
        """
        Read exactly `SIGNATURE_LENGTH` bytes from `stream`.

        Raises:
            MalformedSignatureEncodingError: If the stream ends prematurely.
        """
        values = _read_chunks(stream, config.NUM_BITS, config.DIGEST_LENGTH)
        if len(values) != config.NUM_BITS:
            raise MalformedSignatureEncodingError(
                cls.__name__,
                expected=config.SIGNATURE_LENGTH,
                actual=len(values) * config.DIGEST_LENGTH,
            )
        return cls(data=values)

    def to_bytes(self) -> bytes:
        """Return the fixed-size concatenation of the revealed preimages."""
        with io.BytesIO() as stream:
            self.serialize(stream)
            return stream.getvalue()

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes, config: LamportConfig) -> Self:
        """
        Parse `data` as a signature made with the hash named by `config`.

        Raises:
            MalformedSignatureEncodingError: If `data` is not exactly
                `SIGNATURE_LENGTH` bytes long.
        """
        if len(data) != config.SIGNATURE_LENGTH:
            raise MalformedSignatureEncodingError(
                cls.__name__, expected=config.SIGNATURE_LENGTH, actual=len(data)
            )
        with io.BytesIO(data) as stream:
            return cls.deserialize(stream, config)

    def verify(self, public_key: PublicKey, message: bytes, scheme: LamportScheme) -> bool:
        """
        Verify the signature using the Lamport verification algorithm.

        This is a convenience method that delegates to `scheme.verify()`.

        Args:
            public_key: The public key to verify against.
            message: The message that was supposedly signed.
            scheme: The scheme instance to use for verification.

        Returns:
            `True` if the signature is valid, `False` otherwise.
        """
        return scheme.verify(public_key, self, message)


class PrivateKey:
    """
    The private component of a key pair. **MUST BE KEPT CONFIDENTIAL.**

    Holds two arrays of `B` random preimages: `zero_values[i]` is revealed to
    sign a 0 at bit `i` of the message digest, `one_values[i]` to sign a 1.

    A key signs at most one message. Signing reveals half of the preimages,
    after which the key refuses to sign again.

    Every preimage lives in a mutable buffer owned by the key. When the key is
    garbage-collected (or at interpreter exit, or on `zeroize()`), every byte
    of every buffer is overwritten with zero, whether the key was used or not.
    """

    def __init__(
        self,
        config: LamportConfig,
        zero_values: Sequence[bytes | bytearray],
        one_values: Sequence[bytes | bytearray],
        *,
        used: bool = False,
    ) -> None:
        """
        Wrap existing preimages in a key.

        Buffers passed as `bytearray` are adopted as-is and will be erased by
        this key; any other bytes-like values are copied first.

        Raises:
            TypeError: If a preimage is not `bytes`, `bytearray` or `memoryview`.
            ValueError: If either array does not hold `B` preimages of `L` bytes.
        """
        zero_buffers = _adopt("zero_values", zero_values)
        try:
            one_buffers = _adopt("one_values", one_values)
        except TypeError:
            zeroize(zero_buffers)
            raise

        # Register erasure before validating, so rejected material is wiped too.
        self._finalizer = weakref.finalize(self, _erase, zero_buffers, one_buffers)
        try:
            _check_entries("zero_values", zero_buffers, config)
            _check_entries("one_values", one_buffers, config)
        except ValueError:
            self._finalizer()
            raise

        self._config = config
        self._zero_values = zero_buffers
        self._one_values = one_buffers
        self._used = used
        self._lock = threading.Lock()

    @classmethod
    def generate(cls, config: LamportConfig = DEFAULT_CONFIG) -> PrivateKey:
        """Generate a fresh random key for the hash named by `config`."""
        from .interface import get_scheme

        return get_scheme(config).key_gen()

    @property
    def config(self) -> LamportConfig:
        """The hash algorithm this key was generated for."""
        return self._config

    @property
    def used(self) -> bool:
        """Whether the key has signed a message (or been erased)."""
        return self._used

    @property
    def erased(self) -> bool:
        """Whether the preimages have been overwritten with zeros."""
        return not self._finalizer.alive

    @property
    def zero_values(self) -> tuple[memoryview, ...]:
        """
        Read-only views over the zero-bit preimages.

        The views track the live buffers: after the key is erased they read as
        all zeros.
        """
        return tuple(memoryview(v).toreadonly() for v in self._zero_values)

    @property
    def one_values(self) -> tuple[memoryview, ...]:
        """Read-only views over the one-bit preimages."""
        return tuple(memoryview(v).toreadonly() for v in self._one_values)

    def reveal(self, digest: bytes) -> Signature:
        """
        Open the preimages selected by the bits of `digest` and retire the key.

        For each bit `i` of `digest`, copy `one_values[i]` if the bit is set and
        `zero_values[i]` otherwise. The check of `used`, the selection and the
        update of `used` happen under the key's lock.

        Raises:
            AlreadyUsedError: If the key has already signed or been erased.
                The key is left unchanged.
            ValueError: If `digest` is not `L` bytes long.
        """
        if len(digest) != self._config.DIGEST_LENGTH:
            raise ValueError(
                f"Digest must be {self._config.DIGEST_LENGTH} bytes, got {len(digest)}"
            )
        with self._lock:
            if self.erased:
                raise AlreadyUsedError("Private key material has been erased")
            if self._used:
                raise AlreadyUsedError("Attempting to sign more than once")

            revealed = tuple(
                bytes(self._one_values[i] if bit else self._zero_values[i])
                for i, bit in enumerate(digest_bits(digest))
            )
            self._used = True
        return Signature(data=revealed)

    def digest_preimages(
        self, digest: Callable[[memoryview], bytes]
    ) -> tuple[tuple[bytes, ...], tuple[bytes, ...]]:
        """
        Hash every preimage with `digest`, holding the key's lock throughout.

        A concurrent `zeroize()` waits until hashing is done, so the result
        never mixes live and erased preimages.

        Returns:
            The digests of the zero values and of the one values, in order.

        Raises:
            KeyErasedError: If the preimages have already been erased.
        """
        with self._lock:
            if self.erased:
                raise KeyErasedError("Cannot derive a public key from erased key material")
            return (
                tuple(digest(value) for value in self.zero_values),
                tuple(digest(value) for value in self.one_values),
            )

    def public_key(self) -> PublicKey:
        """Return the public key associated with this private key."""
        from .interface import get_scheme

        return get_scheme(self._config).derive_public(self)

    def sign(self, message: bytes) -> Signature:
        """Sign `message` once with the scheme matching this key's hash."""
        from .interface import get_scheme

        return get_scheme(self._config).sign(self, message)

    def zeroize(self) -> None:
        """
        Erase the preimages now instead of waiting for garbage collection.

        The key is marked used and can no longer sign or derive a public key.
        Calling this more than once is harmless.
        """
        with self._lock:
            self._finalizer()
            self._used = True

    def copy(self) -> PrivateKey:
        """
        Return an independent copy with its own buffers and its own erasure hook.

        The copy inherits the `used` flag.
        """
        return PrivateKey(
            self._config,
            [bytearray(v) for v in self._zero_values],
            [bytearray(v) for v in self._one_values],
            used=self._used,
        )

    def ct_equals(self, other: PrivateKey) -> bool:
        """
        Compare two keys in constant time.

        Every preimage is compared even after a mismatch is found. The key's
        buffers are compared in place, without copying them.
        """
        if self._config != other._config:
            return False
        result = True
        for mine, theirs in zip(
            self._zero_values + self._one_values, other._zero_values + other._one_values
        ):
            result &= bytes_eq(mine, theirs)
        return result

    def __enter__(self) -> PrivateKey:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.zeroize()

    def __eq__(self, other: object) -> bool:
        """
        Compare config and preimages element by element.

        ⚠️ This is **not** a constant-time comparison: it returns as soon as a
        preimage differs, leaking through timing how much of the keys agree.
        Use `ct_equals` when comparing secrets an attacker may observe.
        """
        if not isinstance(other, PrivateKey):
            return NotImplemented
        return (
            self._config == other._config
            and self._zero_values == other._zero_values
            and self._one_values == other._one_values
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(algorithm={self._config.ALGORITHM!r}, "
            f"used={self._used}, erased={self.erased})"
        )
