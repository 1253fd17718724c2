"""
Celestial classification and lifecycle.

Static tables:
  STAR_CLASSES       spectral classes O..M plus remnants (BH, N, WD)
  GalaxyMorphology   galaxy types shown at the universe tier

Evaluators (pure, re-derivable at any time):
  classify(draw)                          → CelestialClass
  evaluate_lifecycle(cls, age[, draw])    → LifecycleResult
  classify_galaxy(universe_age, a, b)     → GalaxyMorphology

Vectorised twins (classify_many, evaluate_lifecycle_many) work on numpy
arrays of class indices and agree element-wise with the scalar versions.

Ages and lifespans are in billions of years (Gyr), masses in M☉,
radii in R☉.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple

import numpy as np

from core.coords import hex_to_rgb
from core.rng import hash_u64, u01_from_u64


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class LifecycleState(IntEnum):
    PROTO         = 0
    MAIN_SEQUENCE = 1
    GIANT         = 2
    REMNANT       = 3

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]


_STATE_LABELS = {
    LifecycleState.PROTO:         "PROTO-STAR",
    LifecycleState.MAIN_SEQUENCE: "MAIN SEQUENCE",
    LifecycleState.GIANT:         "RED GIANT",
    LifecycleState.REMNANT:       "REMNANT",
}


class Fate(Enum):
    """What happens to a class once its lifespan is over."""
    COLLAPSE    = "collapse"      # black hole or neutron star
    WHITE_DWARF = "white_dwarf"
    STABLE      = "stable"        # outlives the simulated universe
    REMNANT     = "remnant"       # already a remnant


# ---------------------------------------------------------------------------
# Star classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CelestialClass:
    id: str
    probability: float
    color_hex: int
    temperature_range: str
    mass: float
    radius: float
    luminosity: str
    lifespan: float
    fate: Fate

    @property
    def base_color(self) -> Tuple[float, float, float]:
        return hex_to_rgb(self.color_hex)

    @property
    def is_remnant(self) -> bool:
        return self.fate is Fate.REMNANT


STAR_CLASSES: Tuple[CelestialClass, ...] = (
    CelestialClass("O",  0.0001, 0x9999FF, "30,000+",       60.0, 8.0,  "30,000+",   0.01,   Fate.COLLAPSE),
    CelestialClass("B",  0.0013, 0xAAAAFF, "10,000-30,000", 10.0, 5.0,  "25-30,000", 0.1,    Fate.COLLAPSE),
    CelestialClass("A",  0.006,  0xFFFFFF, "7,500-10,000",  3.0,  2.5,  "5-25",      1.0,    Fate.WHITE_DWARF),
    CelestialClass("F",  0.03,   0xFFFFEE, "6,000-7,500",   1.5,  1.3,  "1.5-5",     4.0,    Fate.WHITE_DWARF),
    CelestialClass("G",  0.076,  0xFFDD00, "5,200-6,000",   1.0,  1.0,  "0.6-1.5",   10.0,   Fate.WHITE_DWARF),
    CelestialClass("K",  0.121,  0xFFAA22, "3,700-5,200",   0.7,  0.8,  "0.08-0.6",  30.0,   Fate.STABLE),
    CelestialClass("M",  0.7645, 0xFF3300, "2,400-3,700",   0.3,  0.4,  "< 0.08",    1000.0, Fate.STABLE),
    CelestialClass("BH", 0.0,    0x000000, "UNDEFINED",     20.0, 0.05, "0",         9999.0, Fate.REMNANT),
    CelestialClass("N",  0.0,    0x00FFFF, "600,000",       2.5,  0.02, "0.001",     9999.0, Fate.REMNANT),
    CelestialClass("WD", 0.0,    0xBBFFFF, "100,000",       0.9,  0.1,  "0.01",      9999.0, Fate.REMNANT),
)

CLASS_INDEX = {c.id: i for i, c in enumerate(STAR_CLASSES)}

BLACK_HOLE   = STAR_CLASSES[CLASS_INDEX["BH"]]
NEUTRON_STAR = STAR_CLASSES[CLASS_INDEX["N"]]
WHITE_DWARF  = STAR_CLASSES[CLASS_INDEX["WD"]]

# Classes reachable by a random draw (probability > 0), in table order
_DRAWN = tuple(i for i, c in enumerate(STAR_CLASSES) if c.probability > 0.0)
_CUMULATIVE = np.cumsum([STAR_CLASSES[i].probability for i in _DRAWN])

# Lifecycle thresholds as fractions of the main-sequence lifespan
PROTO_FRACTION = 0.05
GIANT_FRACTION = 1.1

# Column arrays for the vectorised evaluator
_LIFESPANS = np.array([c.lifespan for c in STAR_CLASSES])
_FATES = np.array([list(Fate).index(c.fate) for c in STAR_CLASSES])
_FATE_COLLAPSE = list(Fate).index(Fate.COLLAPSE)
_FATE_WD = list(Fate).index(Fate.WHITE_DWARF)
_FATE_STABLE = list(Fate).index(Fate.STABLE)
_FATE_REMNANT = list(Fate).index(Fate.REMNANT)


def get_class(class_id: str) -> CelestialClass:
    return STAR_CLASSES[CLASS_INDEX[class_id]]


def classify(draw: float) -> CelestialClass:
    """Walk the cumulative table; draws past the total fall back to the last class."""
    cumulative = 0.0
    for i in _DRAWN:
        cumulative += STAR_CLASSES[i].probability
        if draw < cumulative:
            return STAR_CLASSES[i]
    return STAR_CLASSES[_DRAWN[-1]]


def classify_many(draws: np.ndarray) -> np.ndarray:
    """Class indices (into STAR_CLASSES) for an array of draws."""
    pos = np.searchsorted(_CUMULATIVE, np.asarray(draws, dtype=np.float64), side="right")
    pos = np.minimum(pos, len(_DRAWN) - 1)
    return np.asarray(_DRAWN, dtype=np.int16)[pos]


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LifecycleResult:
    state: LifecycleState
    effective_class: CelestialClass
    age: float


def default_remnant_draw(cls: CelestialClass, age: float) -> float:
    """Deterministic coin for the collapse outcome, keyed on (class, age)."""
    age_bits = int(np.array([age], dtype=np.float64).view(np.uint64)[0])
    return u01_from_u64(hash_u64(CLASS_INDEX[cls.id], age_bits))


def evaluate_lifecycle(cls: CelestialClass, age: float,
                       remnant_draw: Optional[float] = None) -> LifecycleResult:
    if cls.is_remnant:
        return LifecycleResult(LifecycleState.REMNANT, cls, age)

    lifespan = cls.lifespan
    if age < PROTO_FRACTION * lifespan:
        return LifecycleResult(LifecycleState.PROTO, cls, age)
    if age < lifespan or cls.fate is Fate.STABLE:
        # Low-mass classes never leave the main sequence
        return LifecycleResult(LifecycleState.MAIN_SEQUENCE, cls, age)
    if age < GIANT_FRACTION * lifespan:
        return LifecycleResult(LifecycleState.GIANT, cls, age)

    if cls.fate is Fate.COLLAPSE:
        if remnant_draw is None:
            remnant_draw = default_remnant_draw(cls, age)
        remnant = BLACK_HOLE if remnant_draw > 0.5 else NEUTRON_STAR
    else:
        remnant = WHITE_DWARF
    return LifecycleResult(LifecycleState.REMNANT, remnant, age)


def evaluate_lifecycle_many(class_idx: np.ndarray, ages: np.ndarray,
                            remnant_draws: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vectorised evaluate_lifecycle.

    Returns (state codes as int8, effective class indices as int16).
    """
    class_idx = np.asarray(class_idx, dtype=np.int64)
    ages = np.asarray(ages, dtype=np.float64)
    lifespan = _LIFESPANS[class_idx]
    fate = _FATES[class_idx]

    is_remnant_class = fate == _FATE_REMNANT
    proto = ~is_remnant_class & (ages < PROTO_FRACTION * lifespan)
    main = ~is_remnant_class & ~proto & ((ages < lifespan) | (fate == _FATE_STABLE))
    giant = ~is_remnant_class & ~proto & ~main & (ages < GIANT_FRACTION * lifespan)
    dead = ~is_remnant_class & ~proto & ~main & ~giant

    states = np.select(
        [proto, main, giant],
        [int(LifecycleState.PROTO), int(LifecycleState.MAIN_SEQUENCE),
         int(LifecycleState.GIANT)],
        default=int(LifecycleState.REMNANT),
    ).astype(np.int8)

    collapsed = np.where(np.asarray(remnant_draws) > 0.5,
                         CLASS_INDEX["BH"], CLASS_INDEX["N"])
    effective = class_idx.copy()
    effective = np.where(dead & (fate == _FATE_COLLAPSE), collapsed, effective)
    effective = np.where(dead & (fate == _FATE_WD), CLASS_INDEX["WD"], effective)
    return states, effective.astype(np.int16)


# ---------------------------------------------------------------------------
# Galaxy morphology (universe tier)
# ---------------------------------------------------------------------------

class GalaxyLayout(IntEnum):
    """Placement rule used by the galaxy pass."""
    SPIRAL     = 0
    ELLIPTICAL = 1
    PROTO      = 2


class GalaxyMorphology(Enum):
    SPIRAL     = ("SPIRAL GALAXY",     GalaxyLayout.SPIRAL)
    ELLIPTICAL = ("ELLIPTICAL GALAXY", GalaxyLayout.ELLIPTICAL)
    LENTICULAR = ("LENTICULAR GALAXY", GalaxyLayout.ELLIPTICAL)
    IRREGULAR  = ("IRREGULAR GALAXY",  GalaxyLayout.PROTO)
    QUASAR     = ("QUASAR (AGN)",      GalaxyLayout.PROTO)
    PROTO      = ("PROTO-GALAXY",      GalaxyLayout.PROTO)

    def __init__(self, label: str, layout: GalaxyLayout):
        self.label = label
        self.layout = layout

    @property
    def is_active_nucleus(self) -> bool:
        return self is GalaxyMorphology.QUASAR


YOUNG_UNIVERSE_GYR = 3.0
OLD_UNIVERSE_GYR = 10.0


def classify_galaxy(universe_age: float, draw_a: float, draw_b: float) -> GalaxyMorphology:
    """Young universes host irregular/proto galaxies, old ones ellipticals."""
    if universe_age < YOUNG_UNIVERSE_GYR:
        if draw_a > 0.3:
            return GalaxyMorphology.IRREGULAR
        return GalaxyMorphology.QUASAR if draw_b > 0.5 else GalaxyMorphology.PROTO
    if universe_age > OLD_UNIVERSE_GYR:
        return GalaxyMorphology.ELLIPTICAL if draw_a > 0.4 else GalaxyMorphology.LENTICULAR
    return GalaxyMorphology.SPIRAL
