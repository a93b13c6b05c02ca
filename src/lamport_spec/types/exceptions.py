"""Exception hierarchy for the Lamport signature scheme."""

from __future__ import annotations


class LamportError(Exception):
    """
    Base exception for all Lamport-related errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class RandomnessUnavailableError(LamportError):
    """
    Raised when the operating system's secure random source cannot be read.

    This is fatal. Key generation has no safe fallback to a weaker source, so the
    library never catches it and callers should let it terminate the process.
    """


class KeyStateError(LamportError):
    """Base class for errors caused by the lifecycle state of a private key."""


class AlreadyUsedError(KeyStateError):
    """
    Raised when a private key is asked to sign a second message.

    A signature reveals half of the key's preimages, so any further signature
    would let an observer forge messages. The key is left untouched.
    """


class KeyErasedError(KeyStateError):
    """Raised when a private key's preimages have already been overwritten with zeros."""


class LamportValueError(LamportError, ValueError):
    """
    Base class for value-related errors.

    Raised when an input has the right type but an invalid shape or content.
    """


class MalformedEncodingError(LamportValueError):
    """
    Raised when a byte encoding cannot be decoded.

    Attributes:
        type_name: The type being decoded.
        expected: The exact number of bytes the encoding must contain.
        actual: The number of bytes that were provided.
    """

    def __init__(self, type_name: str, *, expected: int, actual: int) -> None:
        self.type_name = type_name
        self.expected = expected
        self.actual = actual
        super().__init__(f"{type_name} encoding must be exactly {expected} bytes, got {actual}")


class MalformedPublicKeyEncodingError(MalformedEncodingError):
    """Raised when a public key encoding has the wrong length."""


class MalformedSignatureEncodingError(MalformedEncodingError):
    """Raised when a signature encoding has the wrong length."""
