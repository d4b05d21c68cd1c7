"""Hash utilities for Guardian."""

import hashlib
from abc import ABC, abstractmethod
from typing import Dict, Type

from .errors import InvalidArgument


class Hasher(ABC):
    """
    Content digest function used to address objects.

    Implementations must be deterministic and hold no state that can
    change the result between calls.
    """

    name: str = ''

    @property
    @abstractmethod
    def digest_size(self) -> int:
        """Size of the digest in bytes."""
        pass

    @abstractmethod
    def compute(self, data: bytes) -> bytes:
        """
        Compute the raw digest of data.

        Args:
            data: Bytes to hash

        Returns:
            bytes: Raw digest of length digest_size
        """
        pass

    def to_hex(self, digest: bytes) -> str:
        """
        Convert a raw digest to lowercase hex.

        Args:
            digest: Raw digest bytes

        Returns:
            str: Hex string of length 2 * digest_size
        """
        if len(digest) != self.digest_size:
            raise InvalidArgument(
                f"Expected a {self.digest_size}-byte digest, got {len(digest)} bytes"
            )
        return digest.hex()

    def hex_digest(self, data: bytes) -> str:
        """Compute digest of data and return it as hex."""
        return self.to_hex(self.compute(data))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class Sha256Hasher(Hasher):
    """SHA-256, the default hasher."""

    name = 'sha256'

    @property
    def digest_size(self) -> int:
        return 32

    def compute(self, data: bytes) -> bytes:
        return hashlib.sha256(data).digest()


class Blake2bHasher(Hasher):
    """BLAKE2b truncated to 32 bytes."""

    name = 'blake2b'

    @property
    def digest_size(self) -> int:
        return 32

    def compute(self, data: bytes) -> bytes:
        return hashlib.blake2b(data, digest_size=32).digest()


HASHERS: Dict[str, Type[Hasher]] = {
    Sha256Hasher.name: Sha256Hasher,
    Blake2bHasher.name: Blake2bHasher,
}

DEFAULT_HASH_ALGORITHM = Sha256Hasher.name


def get_hasher(name: str = DEFAULT_HASH_ALGORITHM) -> Hasher:
    """
    Look up a hasher by name.

    Args:
        name: Algorithm name ('sha256' or 'blake2b')

    Returns:
        Hasher: New hasher instance

    Raises:
        InvalidArgument: If the algorithm is unknown
    """
    try:
        return HASHERS[name.strip().lower()]()
    except (KeyError, AttributeError):
        raise InvalidArgument(f"Unknown hash algorithm: {name!r}") from None


def hash_object(data: bytes) -> str:
    """
    Compute SHA-256 hash of data.

    Args:
        data: Bytes to hash

    Returns:
        64-character hex string
    """
    return Sha256Hasher().hex_digest(data)


def hash_file(filepath: str) -> str:
    """
    Compute SHA-256 hash of file.

    Args:
        filepath: Path to file

    Returns:
        64-character hex string
    """
    with open(filepath, 'rb') as f:
        return hash_object(f.read())
