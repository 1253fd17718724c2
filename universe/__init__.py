"""
Universe module: procedural cosmos, three tiers deep.

Usage:
    from universe import ProceduralGenerator, ViewLevel
    gen = ProceduralGenerator(SimConfig())
    universe = gen.generate(ViewLevel.UNIVERSE, seed=1337)

    # Per-body records
    body = universe.body(42)
    galaxy = generate_galaxy(sub_seed(1337, 42), 250_000, GalaxyLayout.SPIRAL, 13.8)
"""

from core.rng import SeededRandom, sub_seed
from core.types import BodyKind, GeneratedBody, ViewLevel

from .classification import (
    STAR_CLASSES,
    CelestialClass,
    GalaxyLayout,
    GalaxyMorphology,
    LifecycleResult,
    LifecycleState,
    classify,
    classify_galaxy,
    classify_many,
    evaluate_lifecycle,
    evaluate_lifecycle_many,
    get_class,
)
from .population import Population
from .generator import (
    GeneratorContractError,
    ProceduralGenerator,
    generate_galaxy,
    generate_nebulae,
    generate_system,
    generate_universe,
)

__all__ = [
    "SeededRandom",
    "sub_seed",
    "BodyKind",
    "GeneratedBody",
    "ViewLevel",
    "STAR_CLASSES",
    "CelestialClass",
    "GalaxyLayout",
    "GalaxyMorphology",
    "LifecycleResult",
    "LifecycleState",
    "classify",
    "classify_galaxy",
    "classify_many",
    "evaluate_lifecycle",
    "evaluate_lifecycle_many",
    "get_class",
    "Population",
    "GeneratorContractError",
    "ProceduralGenerator",
    "generate_galaxy",
    "generate_nebulae",
    "generate_system",
    "generate_universe",
]

# Dynamics and descriptions
from .orbital import (
    MIN_RADIUS,
    advance,
    cooling_factor,
    inflation_factor,
    rotate_disk,
)
from .describe import (
    TargetSummary,
    core_summary,
    galaxy_summary,
    planet_summary,
    star_summary,
    universe_summary,
)
from .space_weather import SpaceWeather

__all__ += [
    "MIN_RADIUS",
    "advance",
    "cooling_factor",
    "inflation_factor",
    "rotate_disk",
    "TargetSummary",
    "core_summary",
    "galaxy_summary",
    "planet_summary",
    "star_summary",
    "universe_summary",
    "SpaceWeather",
]
