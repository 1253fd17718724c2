"""
Seeded random source: deterministic, platform independent.

Everything procedural in the simulation derives from one integer seed.
Two flavours of draw are provided:

  SeededRandom.next()          sequential stream (splitmix64 over a counter)
  SeededRandom.field(slot, n)  counter-based draws, one per body index

The field draws are a pure function of (seed, slot, index): body i can be
regenerated alone and comes out identical to a full pass. All arithmetic is
unsigned 64-bit integer math, so the sequence never depends on the host.

Usage:
    rng = SeededRandom(1337)
    u = rng.next()
    xs = rng.field(SLOT_X, 250_000)
    child = rng.fork(42)              # == SeededRandom(sub_seed(1337, 42))
"""

from __future__ import annotations
from typing import Optional, Sequence

import numpy as np


MASK64 = 0xFFFFFFFFFFFFFFFF
MASK53 = (1 << 53) - 1

_GOLDEN_GAMMA = 0x9E3779B97F4A7C15
_MIX_1 = 0xBF58476D1CE4E5B9
_MIX_2 = 0x94D049BB133111EB

_U53_SCALE = 1.0 / (1 << 53)


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------

def splitmix64(x: int) -> int:
    x = (x + _GOLDEN_GAMMA) & MASK64
    z = x
    z = (z ^ (z >> 30)) * _MIX_1 & MASK64
    z = (z ^ (z >> 27)) * _MIX_2 & MASK64
    return (z ^ (z >> 31)) & MASK64


def u01_from_u64(u: int) -> float:
    return (u >> 11) * _U53_SCALE


def hash_u64(*vals: int) -> int:
    x = 0xA5A5A5A5A5A5A5A5
    for v in vals:
        x ^= (int(v) & MASK64)
        x = splitmix64(x)
    return x


def sub_seed(parent_seed: int, index: int) -> int:
    """Seed of child `index` nested inside `parent_seed` (53-bit)."""
    return hash_u64(parent_seed, 0x5EED, index) & MASK53


# ---------------------------------------------------------------------------
# Vectorised helpers (numpy uint64 arrays wrap on overflow)
# ---------------------------------------------------------------------------

def splitmix64_array(x: np.ndarray) -> np.ndarray:
    z = x + np.uint64(_GOLDEN_GAMMA)
    z = (z ^ (z >> np.uint64(30))) * np.uint64(_MIX_1)
    z = (z ^ (z >> np.uint64(27))) * np.uint64(_MIX_2)
    return z ^ (z >> np.uint64(31))


def u01_from_u64_array(u: np.ndarray) -> np.ndarray:
    return (u >> np.uint64(11)).astype(np.float64) * _U53_SCALE


# ---------------------------------------------------------------------------
# SeededRandom
# ---------------------------------------------------------------------------

class SeededRandom:
    """
    Restartable PRNG keyed by an integer seed.

    The scalar stream is splitmix64 evaluated over an internal counter;
    restart() rewinds the counter so the same sequence is produced again.
    """

    def __init__(self, seed: int):
        self.seed = int(seed) & MASK64
        self._base = hash_u64(self.seed)
        self._counter = 0

    def __repr__(self) -> str:
        return f"<SeededRandom seed=0x{self.seed:X} drawn={self._counter}>"

    # ── Stream ───────────────────────────────────────────────────────────────

    def next(self) -> float:
        """Next float in [0, 1)."""
        x = (self._base + self._counter * _GOLDEN_GAMMA) & MASK64
        self._counter += 1
        return u01_from_u64(splitmix64(x))

    def index(self, n: int) -> int:
        """Random integer in [0, n)."""
        return min(int(self.next() * n), n - 1)

    def restart(self) -> None:
        self._counter = 0

    @property
    def drawn(self) -> int:
        return self._counter

    def fork(self, index: int) -> "SeededRandom":
        return SeededRandom(sub_seed(self.seed, index))

    # ── Counter-based field ─────────────────────────────────────────────────

    def field(self, slot: int, count: Optional[int] = None,
              indices: Optional[Sequence[int]] = None) -> np.ndarray:
        """
        One draw in [0, 1) per body for draw slot `slot`.

        Either `count` (bodies 0..count-1) or explicit `indices` must be
        given. Element i depends only on (seed, slot, index).
        """
        if indices is None:
            if count is None:
                raise ValueError("field() needs count or indices")
            idx = np.arange(count, dtype=np.uint64)
        else:
            idx = np.asarray(indices, dtype=np.int64).astype(np.uint64)
        base = np.uint64(hash_u64(self.seed, slot))
        x = base + idx * np.uint64(_GOLDEN_GAMMA)
        return u01_from_u64_array(splitmix64_array(x))

    def field_value(self, slot: int, index: int) -> float:
        """Scalar equivalent of field(slot, indices=[index])[0]."""
        x = (hash_u64(self.seed, slot) + index * _GOLDEN_GAMMA) & MASK64
        return u01_from_u64(splitmix64(x))
