"""
Storage key derivation.

Logical keys are prefixed with the cache generation and hashed with
SHA-512, so every key has a fixed 128-character length and bumping the
generation makes every previously written key unreachable without touching
the store. Old-generation entries expire through their TTL.
"""

import hashlib


class KeyNormalizer:
    """
    Derive storage keys from logical keys.

    Example:
        >>> KeyNormalizer(generation=1).normalize("somekey")[:16]
        'e33d0afae8e08752'
    """

    def __init__(self, generation: int = 1):
        self.generation = generation

    def normalize(self, key: str) -> str:
        """
        Generate the SHA-512 storage key for ``key`` in this generation.

        Args:
            key: Logical cache key

        Returns:
            Lowercase hexadecimal digest
        """
        value = f"g{self.generation}:{key}"
        return hashlib.sha512(value.encode("utf-8")).hexdigest()
