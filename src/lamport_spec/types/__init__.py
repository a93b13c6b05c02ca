"""Reusable type definitions for the Lamport signature specification."""

from .base import StrictBaseModel
from .exceptions import (
    AlreadyUsedError,
    KeyErasedError,
    KeyStateError,
    LamportError,
    LamportValueError,
    MalformedEncodingError,
    MalformedPublicKeyEncodingError,
    MalformedSignatureEncodingError,
    RandomnessUnavailableError,
)

__all__ = [
    # Core types
    "StrictBaseModel",
    # Exceptions
    "LamportError",
    "RandomnessUnavailableError",
    "KeyStateError",
    "AlreadyUsedError",
    "KeyErasedError",
    "LamportValueError",
    "MalformedEncodingError",
    "MalformedPublicKeyEncodingError",
    "MalformedSignatureEncodingError",
]
