"""Random sources for spin resolution."""
import secrets
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TypeVar

K = TypeVar("K")


class RandomSource(ABC):
    """Abstract random source. Every draw in the engine goes through here."""

    @abstractmethod
    def next_int(self, n: int) -> int:
        """Return random int in [0, n)."""
        pass


class SecureRandom(RandomSource):
    """
    Production random source.

    Uses the cryptographically secure generator, no seed. Outcomes drive
    real payouts, so spins are never replayable from a seed.
    """

    def next_int(self, n: int) -> int:
        if n <= 0:
            raise ValueError(f"next_int bound must be positive, got {n}")
        return secrets.randbelow(n)


class SeededRandom(RandomSource):
    """
    Simulation random source.

    Deterministic, fully controlled by seed. Only for offline RTP runs.
    """

    def __init__(self, seed: int):
        import random

        self._rng = random.Random(seed)
        self.seed = seed

    def next_int(self, n: int) -> int:
        if n <= 0:
            raise ValueError(f"next_int bound must be positive, got {n}")
        return self._rng.randrange(n)


def weighted_choice(rng: RandomSource, weights: Mapping[K, int]) -> K:
    """
    Draw one key from a weight table.

    Draws uniformly over the total weight and subtracts weights in table
    order until the running value goes negative.
    """
    value = rng.next_int(sum(weights.values()))
    for key, weight in weights.items():
        value -= weight
        if value < 0:
            return key
    raise ValueError("weight table exhausted without a selection")
