from __future__ import annotations

import os
import random
from typing import List, MutableSequence, Protocol

import numpy as np


class RandomSource(Protocol):
    """Randomness port used by the engine. ``random.Random`` satisfies it."""

    def randint(self, a: int, b: int) -> int:
        ...

    def randrange(self, stop: int) -> int:
        ...

    def shuffle(self, items: MutableSequence) -> None:
        ...


class NumpyRandom:
    """RandomSource backed by a numpy Generator."""

    def __init__(self, seed: int | None = None):
        self._gen = np.random.default_rng(seed)

    def randint(self, a: int, b: int) -> int:
        return int(self._gen.integers(a, b + 1))

    def randrange(self, stop: int) -> int:
        if stop <= 0:
            raise ValueError("randrange() stop must be positive")
        return int(self._gen.integers(0, stop))

    def shuffle(self, items: MutableSequence) -> None:
        order = self._gen.permutation(len(items))
        shuffled: List = [items[int(idx)] for idx in order]
        items[:] = shuffled


def make_rng(seed: int | None = None, backend: str = "numpy") -> RandomSource:
    if backend == "numpy":
        return NumpyRandom(seed)
    if backend == "python":
        return random.Random(seed)
    raise ValueError(f"Unknown rng backend: {backend}")


def seed_everything(seed: int) -> None:
    os.environ["PYTHONHASHSEED"] = str(seed)
    random.seed(seed)
    np.random.seed(seed)
