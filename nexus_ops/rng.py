"""Injectable random sources for the telemetry simulation."""

from __future__ import annotations

import random
import secrets
from typing import Sequence, TypeVar

T = TypeVar("T")


class DeterministicRNG:
    """Wraps :mod:`random` with a replayable seed."""

    def __init__(self, seed: int) -> None:
        self._seed = seed & 0xFFFFFFFF
        # nosec B311 - pseudo-RNG acceptable for synthetic telemetry
        self._random = random.Random(self._seed)

    @classmethod
    def from_entropy(cls) -> "DeterministicRNG":
        return cls(secrets.randbits(32))

    @property
    def seed(self) -> int:
        return self._seed

    def choice(self, seq: Sequence[T]) -> T:
        return self._random.choice(seq)

    def randint(self, a: int, b: int) -> int:
        return self._random.randint(a, b)

    def randrange(self, start: int, stop: int | None = None, step: int = 1) -> int:
        return self._random.randrange(start, stop, step)


__all__ = ["DeterministicRNG"]
