from __future__ import annotations

"""Counter-based deterministic GameRNG.

Every draw is a pure function of ``(seed, counter)``: the counter is scrambled
with the 64-bit golden ratio, added to the seed and pushed through the
SplitMix64 finalizer.  Because nothing else is carried between draws, the
``(seed, counter)`` pair is the whole reproducible context.  Saving it in the
middle of a session and restoring it later resumes the exact same sequence.

``RandomState`` is the immutable value; ``GameRNG`` is the small mutable
holder a generation session owns and passes explicitly to every function that
needs randomness.
"""

import random
from dataclasses import dataclass
from typing import Any, Dict, MutableSequence, Optional, Sequence, Tuple

import structlog

log = structlog.get_logger()

MASK64 = 0xFFFFFFFFFFFFFFFF
GOLDEN64 = 0x9E3779B97F4A7C15
MIX_MUL_1 = 0xBF58476D1CE4E5B9
MIX_MUL_2 = 0x94D049BB133111EB


def splitmix64(z: int) -> int:
    """Two-round xor-shift-multiply avalanche with a final xor-shift."""
    z = ((z ^ (z >> 30)) * MIX_MUL_1) & MASK64
    z = ((z ^ (z >> 27)) * MIX_MUL_2) & MASK64
    return z ^ (z >> 31)


def random_seed() -> int:
    """Return a non-deterministic, non-zero 64-bit seed."""
    return random.SystemRandom().randint(1, MASK64)


@dataclass(frozen=True)
class RandomState:
    seed: int
    counter: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.seed <= MASK64:
            raise ValueError(f"seed out of 64-bit range: {self.seed}")
        if not 0 <= self.counter <= MASK64:
            raise ValueError(f"counter out of 64-bit range: {self.counter}")

    def next(self) -> Tuple[int, "RandomState"]:
        """Return ``(value, successor_state)``; ``self`` is left untouched."""
        x = (self.seed + self.counter * GOLDEN64) & MASK64
        return splitmix64(x), RandomState(self.seed, (self.counter + 1) & MASK64)


class GameRNG:
    def __init__(self, seed: Optional[int] = None, counter: int = 0) -> None:
        if not seed:
            seed = random_seed()
            log.debug("Substituted non-deterministic seed", seed=seed)
        self.state = RandomState(seed & MASK64, counter)

    @classmethod
    def restore(cls, seed: int, counter: int) -> "GameRNG":
        """Rebuild a generator from a saved ``(seed, counter)`` verbatim."""
        rng = cls.__new__(cls)
        rng.state = RandomState(seed, counter)
        return rng

    @property
    def seed(self) -> int:
        return self.state.seed

    @property
    def counter(self) -> int:
        return self.state.counter

    # ------------------------------------------------------------------
    # basic random helpers
    # ------------------------------------------------------------------
    def next_u64(self) -> int:
        value, self.state = self.state.next()
        return value

    def get_below(self, bound: int) -> int:
        """Uniform integer in ``[0, bound)``.

        Raw values under ``2**64 mod bound`` are rejected so every residue is
        equally likely; for the small bounds used here a rejection is
        vanishingly rare.
        """
        if bound <= 0:
            raise ValueError("bound must be positive")
        threshold = (MASK64 + 1 - bound) % bound
        while True:
            value = self.next_u64()
            if value >= threshold:
                return value % bound

    def get_int(self, a: int, b: int) -> int:
        if a > b:
            raise ValueError("a <= b")
        return a + self.get_below(b - a + 1)

    # ------------------------------------------------------------------
    # sequence utilities
    # ------------------------------------------------------------------
    def choice(self, items: Sequence[Any]) -> Any:
        if not items:
            raise ValueError("items empty")
        return items[self.get_below(len(items))]

    def shuffle(self, seq: MutableSequence[Any]) -> None:
        # Fisher-Yates, swapping from the end; draws are taken for
        # i = n-1 down to 1.
        for i in range(len(seq) - 1, 0, -1):
            j = self.get_below(i + 1)
            seq[i], seq[j] = seq[j], seq[i]

    # ------------------------------------------------------------------
    # state management
    # ------------------------------------------------------------------
    def get_state(self) -> Dict[str, int]:
        return {"seed": self.state.seed, "counter": self.state.counter}

    def set_state(self, state: Dict[str, int]) -> None:
        self.state = RandomState(int(state["seed"]), int(state["counter"]))

    def __repr__(self) -> str:
        return f"GameRNG(seed={self.state.seed}, counter={self.state.counter})"


__all__ = ["GameRNG", "RandomState", "splitmix64", "GOLDEN64"]
