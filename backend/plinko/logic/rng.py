"""Random sources.

``SeededGenerator`` drives every outcome and must reproduce the same stream
bit-for-bit on any platform. ``SecureRandomSource`` only feeds the commit
step (fresh server seeds and nonces) and never touches outcome computation.
"""
import math
import secrets
from abc import ABC, abstractmethod

from plinko.errors import ErrorCode, GameError
from plinko.logic.hashing import random_hex

UINT32_MASK = 0xFFFFFFFF
TWO_POW_32 = 0x100000000

# xorshift32 has an all-zero fixed point; a zero seed is replaced by this.
ZERO_SEED_FALLBACK = 0x12345678

SEED_PREFIX_CHARS = 8
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def parse_seed_prefix(seed_hex: str) -> int:
    """
    Parse the leading hex digits of the first 8 characters of ``seed_hex``.

    Short inputs are NOT padded: ``"abc"`` parses to ``0xabc``. Parsing stops
    at the first non-hex character, so ``"12zz..."`` parses to ``0x12``.
    Raises INVALID_SEED when no leading hex digit is present.
    """
    digits = ""
    for ch in seed_hex[:SEED_PREFIX_CHARS]:
        if ch not in HEX_DIGITS:
            break
        digits += ch
    if not digits:
        raise GameError(
            ErrorCode.INVALID_SEED,
            f"Seed must start with hexadecimal characters, got {seed_hex[:SEED_PREFIX_CHARS]!r}",
        )
    return int(digits, 16)


class SeededGenerator:
    """
    Deterministic xorshift32 generator seeded from a hex digest.

    Output is a pure function of the seed and the number of prior draws.
    ``call_count`` is diagnostic only.
    """

    def __init__(self, seed_hex: str):
        state = parse_seed_prefix(seed_hex)
        if state == 0:
            state = ZERO_SEED_FALLBACK
        self.state = state
        self.call_count = 0

    def next(self) -> float:
        """Advance the state and return a float in [0, 1)."""
        self.call_count += 1
        x = self.state
        x ^= (x << 13) & UINT32_MASK
        x ^= x >> 17
        x ^= (x << 5) & UINT32_MASK
        self.state = x
        return x / TWO_POW_32

    def next_int(self, min_value: int, max_value: int) -> int:
        """Return an integer in [min_value, max_value)."""
        return math.floor(self.next() * (max_value - min_value)) + min_value

    def next_float(self, min_value: float, max_value: float) -> float:
        """Return a float in [min_value, max_value)."""
        return self.next() * (max_value - min_value) + min_value

    def reset_call_count(self) -> None:
        self.call_count = 0


class RandomSource(ABC):
    """Entropy for the commit step."""

    @abstractmethod
    def token_hex(self, byte_length: int) -> str:
        """Return ``byte_length`` random bytes hex-encoded."""
        pass

    @abstractmethod
    def randbelow(self, upper: int) -> int:
        """Return a random int in [0, upper)."""
        pass


class SecureRandomSource(RandomSource):
    """Production source backed by the OS CSPRNG."""

    def token_hex(self, byte_length: int) -> str:
        return random_hex(byte_length)

    def randbelow(self, upper: int) -> int:
        return secrets.randbelow(upper)
