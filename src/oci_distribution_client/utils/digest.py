"""Digest calculation and validation utilities."""

import hashlib
import re
from dataclasses import dataclass
from typing import Union

from ..exceptions import InvalidIdentifier

# Algorithms the client can both parse and compute, with their hex lengths
DIGEST_ALGORITHMS = {
    "sha256": 64,
    "sha512": 128,
}

# Regex pattern for the algorithm component (OCI distribution grammar)
ALGORITHM_PATTERN = re.compile(r"^[a-z0-9]+(?:[+._-][a-z0-9]+)*$")
HEX_PATTERN = re.compile(r"^[a-f0-9]+$")


@dataclass(frozen=True)
class Digest:
    """Content digest in ``algorithm:hex`` form.

    Construction validates both components, so a ``Digest`` instance is
    always safe to place in a URL path.
    """

    algorithm: str
    hex: str

    def __post_init__(self) -> None:
        text = f"{self.algorithm}:{self.hex}"
        if not ALGORITHM_PATTERN.match(self.algorithm):
            raise InvalidIdentifier("digest", text, "malformed algorithm")
        if self.algorithm not in DIGEST_ALGORITHMS:
            raise InvalidIdentifier(
                "digest", text, f"unsupported algorithm {self.algorithm!r}"
            )
        expected = DIGEST_ALGORITHMS[self.algorithm]
        if len(self.hex) != expected:
            raise InvalidIdentifier(
                "digest",
                text,
                f"{self.algorithm} requires {expected} hex characters, "
                f"got {len(self.hex)}",
            )
        if not HEX_PATTERN.match(self.hex):
            raise InvalidIdentifier("digest", text, "hex must be lowercase [a-f0-9]")

    @classmethod
    def parse(cls, text: str) -> "Digest":
        """Parse ``algorithm:hex`` into a Digest.

        Raises:
            InvalidIdentifier: If the text is not a supported digest
        """
        if not isinstance(text, str):
            raise InvalidIdentifier("digest", text, "must be a string")
        if text.count(":") != 1:
            raise InvalidIdentifier("digest", text, "expected exactly one ':'")
        algorithm, hex_value = text.split(":", 1)
        return cls(algorithm, hex_value)

    @classmethod
    def from_bytes(
        cls, data: Union[bytes, bytearray, memoryview], algorithm: str = "sha256"
    ) -> "Digest":
        """Hash ``data`` locally."""
        if algorithm not in DIGEST_ALGORITHMS:
            raise InvalidIdentifier("digest", algorithm, "unsupported algorithm")
        hasher = hashlib.new(algorithm)
        hasher.update(data)
        return cls(algorithm, hasher.hexdigest())

    def verify(self, data: Union[bytes, bytearray, memoryview]) -> bool:
        """Return True if ``data`` hashes to this digest."""
        return Digest.from_bytes(data, self.algorithm) == self

    def __str__(self) -> str:
        return f"{self.algorithm}:{self.hex}"


def calculate_digest(data: Union[bytes, bytearray], algorithm: str = "sha256") -> str:
    """Calculate digest of data.

    Args:
        data: Data to hash
        algorithm: Hash algorithm (default: sha256)

    Returns:
        Digest string in format "algorithm:hex"

    Raises:
        ValueError: If data is not bytes-like
        InvalidIdentifier: If algorithm is not supported
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise ValueError("Data must be bytes or bytearray")

    return str(Digest.from_bytes(data, algorithm))


def validate_digest(digest: str) -> bool:
    """Validate digest format.

    Args:
        digest: Digest string to validate

    Returns:
        True if valid digest format
    """
    try:
        Digest.parse(digest)
    except InvalidIdentifier:
        return False
    return True


def verify_digest(data: Union[bytes, bytearray], expected_digest: str) -> bool:
    """Verify data matches expected digest.

    Args:
        data: Data to verify
        expected_digest: Expected digest string

    Returns:
        True if data matches digest

    Raises:
        InvalidIdentifier: If digest format is invalid
    """
    return Digest.parse(expected_digest).verify(data)
