"""
Target descriptions: the records shown in the target / location panel.

Every summary is a pure function of the body's seed (or the parent
designation) and the current universe time, so selecting the same body
twice yields the same record.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from core.config import UNIVERSE_SCALE
from core.rng import SeededRandom
from universe.classification import (
    BLACK_HOLE,
    CelestialClass,
    GalaxyMorphology,
    LifecycleResult,
    LifecycleState,
    classify_galaxy,
)


TRACE_ELEMENTS = ("O", "C", "Ne", "Fe", "N", "Si", "Mg", "S")


@dataclass(frozen=True)
class TargetSummary:
    designation: str
    kind: str
    age: float                                  # Gyr
    class_id: Optional[str] = None
    lifecycle_state: Optional[LifecycleState] = None
    mass: Optional[float] = None
    mass_unit: str = "M☉"
    radius: Optional[float] = None
    radius_unit: str = "R☉"
    luminosity: str = "VAR"
    composition: str = "ANALYZING..."
    morphology: Optional[GalaxyMorphology] = None
    color: Tuple[float, float, float] = (0.0, 1.0, 0.0)

    @property
    def is_stellar(self) -> bool:
        return self.class_id is not None


def composition(seed: int, is_star: bool) -> str:
    rng = SeededRandom(seed)
    if is_star:
        h = 70.0 + rng.next() * 10.0
        he = 24.0 + rng.next() * 4.0
    else:
        h = 74.0 + rng.next() * 5.0
        he = 23.0 + rng.next() * 2.0
    met = max(0.0, 100.0 - (h + he))
    trace = TRACE_ELEMENTS[rng.index(len(TRACE_ELEMENTS))]
    return (f"COMPOSITION:\nH: {h:.2f}% | He: {he:.2f}% | Met: {met:.2f}%\n"
            f"Trace: {trace}")


def designation_hash(text: str) -> int:
    """31-multiplier string hash, 32-bit."""
    acc = 0
    for ch in text:
        acc = (acc * 31 + ord(ch)) & 0xFFFFFFFF
    return acc


# ---------------------------------------------------------------------------
# Per tier
# ---------------------------------------------------------------------------

def universe_summary(seed: int, star_count: int, universe_time: float) -> TargetSummary:
    return TargetSummary(
        designation=f"UNIVERSE 0x{seed:X}",
        kind="COSMIC WEB",
        age=universe_time,
        mass=float(star_count),
        mass_unit="OBJECTS",
        radius=UNIVERSE_SCALE / 1_000_000,
        radius_unit="MLY",
        luminosity="N/A",
        composition=f"SEED: 0x{seed:X}\nOBJECTS: {star_count:,}",
    )


def galaxy_summary(seed: int, universe_time: float) -> TargetSummary:
    """A galaxy picked at the universe tier; morphology depends on the universe age."""
    rng = SeededRandom(seed)
    morphology = classify_galaxy(universe_time, rng.next(), rng.next())
    return TargetSummary(
        designation=f"NGC-{rng.index(5000)}",
        kind=morphology.label,
        age=universe_time,
        mass=(rng.next() * 50.0 + 10.0) * 1e9,
        radius=rng.next() * 50.0 + 20.0,
        radius_unit="kly",
        luminosity="HIGH",
        composition=composition(seed, is_star=False),
        morphology=morphology,
    )


def star_summary(seed: int, life: LifecycleResult) -> TargetSummary:
    """A galaxy-tier star; `life` is its evaluated lifecycle at the current time."""
    rng = SeededRandom(seed)
    cls: CelestialClass = life.effective_class
    return TargetSummary(
        designation=f"HIP-{rng.index(100000)}",
        kind="STAR",
        age=life.age,
        class_id=cls.id,
        lifecycle_state=life.state,
        mass=cls.mass,
        radius=cls.radius,
        luminosity=cls.luminosity,
        composition=composition(seed, is_star=True),
        color=cls.base_color,
    )


def core_summary(galaxy: Optional[TargetSummary], seed: int,
                 universe_time: float) -> TargetSummary:
    """The supermassive black hole at the centre of the resident galaxy."""
    if galaxy is not None:
        h = designation_hash(galaxy.designation)
        quasar = galaxy.morphology is not None and galaxy.morphology.is_active_nucleus
        designation = f"{galaxy.designation} {'QUASAR' if quasar else 'CORE'}"
    else:
        h = designation_hash(f"SEED-{seed}")
        quasar = False
        designation = "GALACTIC CORE"
    mass = 1_000_000 + h % 9_000_000
    if quasar:
        text = f"AGN: ACTIVE (QUASAR)\nACCRETION: EXTREME\nMASS: {mass:,} M☉"
    else:
        text = f"EVENT HORIZON: STABLE\nACCRETION: ACTIVE\nMASS: {mass:,} M☉"
    return TargetSummary(
        designation=designation,
        kind="GALACTIC CORE",
        age=universe_time,
        class_id=BLACK_HOLE.id,
        lifecycle_state=LifecycleState.REMNANT,
        mass=float(mass),
        radius=0.02 + (h % 400) / 10_000,
        luminosity="ACTIVE" if quasar else "0",
        composition=text,
    )


def planet_summary(label: str, gas_giant: bool, universe_time: float,
                   mass: float, radius: float,
                   color: Tuple[float, float, float]) -> TargetSummary:
    return TargetSummary(
        designation=label,
        kind="GAS GIANT" if gas_giant else "ROCKY",
        age=universe_time,
        mass=mass,
        mass_unit="",
        radius=radius,
        radius_unit="",
        luminosity="REFLECTIVE",
        composition="H2/He ENVELOPE" if gas_giant else "SILICATES/ICE",
        color=color,
    )
