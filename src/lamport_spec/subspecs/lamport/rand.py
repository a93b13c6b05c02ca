"""Secure random preimage generator for the Lamport signature scheme."""

import logging
import os

from lamport_spec.types import RandomnessUnavailableError, StrictBaseModel

from .constants import LamportConfig
from .utils import zeroize

logger = logging.getLogger(__name__)


class Rand(StrictBaseModel):
    """An instance of the random preimage generator for a given config."""

    config: LamportConfig
    """Configuration fixing the preimage length `L`."""

    def preimage(self) -> bytearray:
        """
        Draws one secret preimage of `DIGEST_LENGTH` bytes.

        The bytes come straight from the operating system's entropy pool and are
        returned in a mutable buffer so they can later be erased in place.

        Raises:
            RandomnessUnavailableError: If the OS random source cannot be read.
        """
        try:
            return bytearray(os.urandom(self.config.DIGEST_LENGTH))
        except (NotImplementedError, OSError) as e:
            logger.critical("Secure random source unavailable: %s", e)
            raise RandomnessUnavailableError(f"Failed to read OS random source: {e}") from e

    def preimages(self, count: int) -> list[bytearray]:
        """
        Draws `count` independent preimages.

        If the random source fails part way through, the preimages drawn so far
        are erased before the error propagates.
        """
        values: list[bytearray] = []
        try:
            for _ in range(count):
                values.append(self.preimage())
        except RandomnessUnavailableError:
            zeroize(values)
            raise
        return values
