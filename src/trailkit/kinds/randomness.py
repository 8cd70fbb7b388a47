"""Reproducible and display-only randomness.

Two seeded schemes keyed by team, kept distinct so previews never perturb
play:

* random clue pick: SHA-256(team_code + block_id), first 8 bytes big-endian,
  modulo the number of clues;
* sorting shuffle: FNV-1a(block_id + team_id) seeding a PCG32 generator that
  drives a Fisher-Yates shuffle.

``secure_shuffle`` uses the OS CSPRNG and is for display only.
"""

from __future__ import annotations

import hashlib
import secrets
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF
_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193


def pick_index(team_code: str, block_id: str, count: int) -> int:
    """Deterministic index in ``[0, count)`` for a team and block."""
    if count <= 0:
        raise ValueError("count must be positive")
    digest = hashlib.sha256((team_code + block_id).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") % count


def fnv1a_32(data: bytes) -> int:
    value = _FNV32_OFFSET
    for byte in data:
        value ^= byte
        value = (value * _FNV32_PRIME) & _MASK32
    return value


class PCG32:
    """Minimal PCG-XSH-RR 64/32 generator (O'Neill's reference seeding)."""

    _MULTIPLIER = 6364136223846793005

    def __init__(self, seed: int, sequence: int = 54) -> None:
        self._state = 0
        self._inc = ((sequence << 1) | 1) & _MASK64
        self.next_u32()
        self._state = (self._state + seed) & _MASK64
        self.next_u32()

    def next_u32(self) -> int:
        old = self._state
        self._state = (old * self._MULTIPLIER + self._inc) & _MASK64
        xorshifted = (((old >> 18) ^ old) >> 27) & _MASK32
        rot = old >> 59
        return ((xorshifted >> rot) | (xorshifted << ((-rot) & 31))) & _MASK32

    def below(self, bound: int) -> int:
        """Unbiased integer in ``[0, bound)``."""
        if bound <= 0:
            raise ValueError("bound must be positive")
        threshold = (2**32 - bound) % bound
        while True:
            value = self.next_u32()
            if value >= threshold:
                return value % bound


def deterministic_shuffle(items: Sequence[T], seed: str) -> list[T]:
    """Fisher-Yates shuffle driven by PCG32 seeded with FNV-1a of ``seed``."""
    result = list(items)
    rng = PCG32(fnv1a_32(seed.encode("utf-8")))
    for i in range(len(result) - 1, 0, -1):
        j = rng.below(i + 1)
        result[i], result[j] = result[j], result[i]
    return result


def secure_shuffle(items: Sequence[T]) -> list[T]:
    """Fisher-Yates shuffle using the OS CSPRNG. Not reproducible."""
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        result[i], result[j] = result[j], result[i]
    return result
