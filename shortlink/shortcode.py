"""Short code generation utilities."""

import secrets
import string
from typing import Optional


class ShortCodeGenerator:
    """Generate random short codes for links."""

    # Base62 characters (alphanumeric, case-sensitive, URL-safe)
    BASE62_CHARS = string.ascii_letters + string.digits  # a-zA-Z0-9

    MIN_LENGTH = 6
    MAX_LENGTH = 8

    def __init__(self, default_length: int = 6):
        """Initialize short code generator.

        Args:
            default_length: Default length for generated codes (6-8)

        Raises:
            ValueError: If default_length is outside the supported range
        """
        if not self.MIN_LENGTH <= default_length <= self.MAX_LENGTH:
            raise ValueError(
                f"Code length must be between {self.MIN_LENGTH} and {self.MAX_LENGTH}"
            )
        self.default_length = default_length

    def generate_random(self, length: Optional[int] = None) -> str:
        """Generate a random short code.

        Uses the secrets module so codes cannot be predicted from earlier ones.

        Args:
            length: Length of the code (uses default if not specified)

        Returns:
            Random short code
        """
        length = length or self.default_length
        return ''.join(secrets.choice(self.BASE62_CHARS) for _ in range(length))

    def keyspace_size(self, length: Optional[int] = None) -> int:
        """Number of distinct codes of the given length."""
        return len(self.BASE62_CHARS) ** (length or self.default_length)

    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check if code has valid format (alphanumeric, '-' or '_').

        Args:
            code: Code to validate

        Returns:
            True if valid format
        """
        return bool(code) and all(c in ShortCodeGenerator.BASE62_CHARS or c in '-_' for c in code)
