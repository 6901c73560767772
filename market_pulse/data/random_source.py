"""
MARKET PULSE — Random Source Interface
Pluggable randomness for the simulator so tests can inject deterministic draws.
"""
from abc import ABC, abstractmethod
from typing import Optional
import numpy as np


class RandomSource(ABC):
    """Abstract source of uniform random draws."""

    @abstractmethod
    def uniform(self, low: float, high: float) -> float:
        """Draw a float from [low, high)."""
        pass

    @abstractmethod
    def integer(self, low: int, high: int) -> int:
        """Draw an int from [low, high)."""
        pass

    def coin(self) -> int:
        """Return +1 or -1 with equal probability."""
        return 1 if self.uniform(0.0, 1.0) > 0.5 else -1


class NumpyRandomSource(RandomSource):
    """RandomSource backed by a numpy Generator. Unseeded by default."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def uniform(self, low: float, high: float) -> float:
        return float(self._rng.uniform(low, high))

    def integer(self, low: int, high: int) -> int:
        return int(self._rng.integers(low, high))

    def __repr__(self) -> str:
        return f"NumpyRandomSource(seed={self.seed})"
