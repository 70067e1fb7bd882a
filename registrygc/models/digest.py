"""Content digest model."""

import hashlib
import re

from ..errors import InvalidDigestError


DIGEST_PATTERN = re.compile(r'^[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[a-zA-Z0-9=_-]+$')

# Expected hex length per registered algorithm
ALGORITHM_HEX_LENGTHS = {
    'sha256': 64,
    'sha384': 96,
    'sha512': 128,
}

HEX_PATTERN = re.compile(r'^[a-f0-9]+$')


class Digest(str):
    """Immutable content identifier of the form ``algorithm:hex``."""

    def __new__(cls, value: str) -> 'Digest':
        if isinstance(value, Digest):
            return value
        cls._validate(value)
        return super().__new__(cls, value)

    @staticmethod
    def _validate(value: str):
        if not isinstance(value, str) or not DIGEST_PATTERN.match(value):
            raise InvalidDigestError(str(value))

        algorithm, encoded = value.split(':', 1)
        expected = ALGORITHM_HEX_LENGTHS.get(algorithm)
        if expected is None:
            raise InvalidDigestError(value, f"unsupported digest algorithm {algorithm!r}")
        if len(encoded) != expected or not HEX_PATTERN.match(encoded):
            raise InvalidDigestError(value, "invalid checksum digest length or format")

    @classmethod
    def parse(cls, value: str) -> 'Digest':
        return cls(value.strip())

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Digest':
        """Compute the sha256 digest of data."""
        return cls(f"sha256:{hashlib.sha256(data).hexdigest()}")

    @property
    def algorithm(self) -> str:
        return self.split(':', 1)[0]

    @property
    def hex(self) -> str:
        return self.split(':', 1)[1]
