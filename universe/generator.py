"""
Multi-scale procedural generator.

Three deterministic passes, one per tier:

  generate_universe()  filament star field (galaxies seen from afar)
  generate_galaxy()    spiral / elliptical / proto layouts with orbit elements
  generate_system()    1-3 stars and 3-8 planets with initial velocities

plus generate_nebulae(), the gas clouds dressing a galaxy.

Every per-body value is read from the counter-based field of a SeededRandom
(see core/rng.py): draw slot k for body i depends only on (seed, k, i).
The fixed order per body is anchors → placement → colour → size →
classification, and each pass is a handful of numpy operations, linear in
the number of bodies.

ProceduralGenerator binds the passes to a SimConfig and dispatches by tier:

    gen = ProceduralGenerator(config)
    universe = gen.generate(ViewLevel.UNIVERSE, config.seed)
"""

from __future__ import annotations
import logging
import math
import time
from typing import Optional

import numpy as np

from core.config import (
    GALAXY_SCALE,
    GRAVITY,
    MAX_PLANETS,
    MIN_PLANETS,
    SYSTEM_SCALE,
    UNIVERSE_SCALE,
    SimConfig,
)
from core.coords import ease_in_out_quad, hex_to_rgb, hsl_to_rgb, isotropic
from core.rng import SeededRandom, sub_seed
from core.types import BodyKind, ViewLevel
from universe.classification import (
    CLASS_INDEX,
    STAR_CLASSES,
    CelestialClass,
    GalaxyLayout,
    classify_many,
)
from universe.population import Population

logger = logging.getLogger(__name__)


class GeneratorContractError(RuntimeError):
    """A finer tier was requested without a valid parent sub-seed."""


# ---------------------------------------------------------------------------
# Draw slots
# ---------------------------------------------------------------------------

# Universe pass
U_ANCHOR_R, U_ANCHOR_THETA, U_ANCHOR_PHI = 0x101, 0x102, 0x103
U_FIRST = 0x110
U_TRY = (0x111, 0x112, 0x113)
U_BLEND = 0x120
U_JITTER_R, U_JITTER_THETA, U_JITTER_PHI = 0x121, 0x122, 0x123
U_PALETTE, U_PALETTE_T = 0x130, 0x131
U_SIZE = 0x140

# Galaxy pass
G_BULGE = 0x201
G_R_A, G_R_B = 0x202, 0x203
G_THETA, G_PHI = 0x204, 0x205
G_SCATTER_X, G_SCATTER_Y, G_SCATTER_Z = 0x206, 0x207, 0x208
G_ATTR_X, G_ATTR_Y, G_ATTR_Z = 0x210, 0x211, 0x212
G_COLOR = 0x230
G_SIZE = 0x240
G_CLASS, G_FORMATION, G_REMNANT = 0x250, 0x251, 0x252

# Nebula pass
N_R, N_ANGLE, N_HEIGHT, N_SIZE = 0x301, 0x302, 0x303, 0x304

# System pass
S_MULTIPLE, S_TRINARY = 0x401, 0x402
S_STAR_SIZE = 0x403
S_PLANET_COUNT = 0x410
S_ORBIT_JITTER, S_RADIUS, S_GAS, S_HUE, S_ANGLE = 0x411, 0x412, 0x413, 0x414, 0x415


# Palette endpoints of the universe star field
_PALETTE = np.array([hex_to_rgb(0x4488FF), hex_to_rgb(0xFFAAEE), hex_to_rgb(0xFFDDAA)])

_BULGE_COLOR = (1.0, 0.8, 0.4)
_ARM_BLUE = (0.6, 0.7, 1.0)
_ARM_WHITE = (1.0, 1.0, 1.0)
_ELLIPTICAL_COLOR = (1.0, 0.7, 0.3)
_PROTO_BLUE = (0.6, 0.8, 1.0)
_PROTO_RED = (1.0, 0.2, 0.1)
_NEBULA_COLOR = (0.4, 0.1, 0.6)
_ACCRETION_COLOR = hex_to_rgb(0xFF6600)

SPIRAL_ARMS = 2
SPIRAL_WINDING = 7.0
PROTO_ATTRACTORS = 4
STAR_BASE_MASS = 1000.0


def _pick(u: np.ndarray, n: int) -> np.ndarray:
    return np.minimum((u * n).astype(np.int64), n - 1)


def resolve_sub_seed(child_seed: Optional[int], parent_seed: int, strict: bool) -> int:
    """
    Seed for a finer tier. A missing child seed is a caller bug: fail fast
    in strict mode, otherwise fall back to the parent's first child.
    """
    if child_seed is not None and child_seed >= 0:
        return int(child_seed)
    if strict:
        raise GeneratorContractError(
            f"finer tier requested without a parent sub-seed (parent 0x{parent_seed:X})")
    logger.warning("Missing sub-seed under parent 0x%X, defaulting to child 0", parent_seed)
    return sub_seed(parent_seed, 0)


# ---------------------------------------------------------------------------
# Universe pass
# ---------------------------------------------------------------------------

def filament_anchors(rng: SeededRandom, cluster_count: int,
                     scale: float = UNIVERSE_SCALE) -> np.ndarray:
    """Anchor points, r = sqrt(u) * scale: denser toward the rim than uniform-in-r."""
    r = np.sqrt(rng.field(U_ANCHOR_R, cluster_count)) * scale
    d = isotropic(rng.field(U_ANCHOR_THETA, cluster_count),
                  rng.field(U_ANCHOR_PHI, cluster_count))
    return d * r[:, None]


def generate_universe(seed: int, star_count: int, cluster_count: int,
                      filament_scatter: float,
                      scale: float = UNIVERSE_SCALE) -> Population:
    rng = SeededRandom(seed)
    n = star_count
    rows = np.arange(n)
    anchors = filament_anchors(rng, cluster_count, scale)

    # Pair every star's anchor with the nearest of three random candidates
    first = _pick(rng.field(U_FIRST, n), cluster_count)
    tries = np.stack([_pick(rng.field(slot, n), cluster_count) for slot in U_TRY], axis=1)
    d2 = np.sum((anchors[tries] - anchors[first][:, None, :]) ** 2, axis=-1)
    d2[tries == first[:, None]] = np.inf
    best = np.argmin(d2, axis=1)
    second = np.where(np.isinf(d2[rows, best]), first, tries[rows, best])

    t = ease_in_out_quad(rng.field(U_BLEND, n))
    a, b = anchors[first], anchors[second]
    base = a + (b - a) * t[:, None]

    jitter = rng.field(U_JITTER_R, n) * (scale * filament_scatter)
    direction = isotropic(rng.field(U_JITTER_THETA, n), rng.field(U_JITTER_PHI, n))
    positions = base + direction * jitter[:, None]

    # A→B, B→C or C→A, picked in thirds
    mix = rng.field(U_PALETTE, n)
    which = np.where(mix < 0.33, 0, np.where(mix < 0.66, 1, 2))
    start = _PALETTE[which]
    end = _PALETTE[(which + 1) % 3]
    colors = start + (end - start) * rng.field(U_PALETTE_T, n)[:, None]

    sizes = rng.field(U_SIZE, n) * 40000.0 + 10000.0

    return Population(
        name="universe",
        tier=ViewLevel.UNIVERSE,
        seed=seed,
        kind=BodyKind.GALAXY,
        positions=positions,
        colors=colors.astype(np.float32),
        sizes=sizes.astype(np.float32),
        metadata={
            "cluster_count": cluster_count,
            "filament_scatter": filament_scatter,
            "anchors": anchors,
        },
    )


# ---------------------------------------------------------------------------
# Galaxy pass
# ---------------------------------------------------------------------------

def _spiral(rng: SeededRandom, n: int, radius: float):
    rows = np.arange(n)
    bulge = rng.field(G_BULGE, n) < 0.2
    u_a, u_b = rng.field(G_R_A, n), rng.field(G_R_B, n)

    # Bulge: flattened sphere
    r_bulge = u_a * radius * 0.25
    d = isotropic(rng.field(G_THETA, n), rng.field(G_PHI, n))
    bulge_pos = d * r_bulge[:, None]
    bulge_pos[:, 1] *= 0.8

    # Disk: logarithmic arms
    r = (u_a * 0.1 + u_b ** 2 * 0.9) * radius
    arm_offset = (2.0 * math.pi / SPIRAL_ARMS) * (rows % SPIRAL_ARMS)
    angle = arm_offset + SPIRAL_WINDING * np.log(r / radius * 10.0 + 1.0)
    disk_pos = np.empty((n, 3))
    disk_pos[:, 0] = np.cos(angle) * r + (rng.field(G_SCATTER_X, n) - 0.5) * radius * 0.1
    disk_pos[:, 2] = np.sin(angle) * r + (rng.field(G_SCATTER_Z, n) - 0.5) * radius * 0.1
    disk_pos[:, 1] = (rng.field(G_SCATTER_Y, n) - 0.5) * radius * 0.02 * (1.0 + r / radius)

    positions = np.where(bulge[:, None], bulge_pos, disk_pos)
    speed = np.where(bulge, 1.0, np.sqrt(1.0 / (r / radius + 0.1)))

    disk_color = np.where((rng.field(G_COLOR, n) > 0.3)[:, None], _ARM_BLUE, _ARM_WHITE)
    colors = np.where(bulge[:, None], _BULGE_COLOR, disk_color)
    sizes = rng.field(G_SIZE, n) * 4000.0 + 1000.0
    return positions, colors, sizes, speed


def _elliptical(rng: SeededRandom, n: int, radius: float):
    r = rng.field(G_R_A, n) ** 2.5 * radius * 0.6
    d = isotropic(rng.field(G_THETA, n), rng.field(G_PHI, n))
    positions = d * r[:, None] * np.array([0.8, 0.6, 0.8])
    colors = np.broadcast_to(np.array(_ELLIPTICAL_COLOR), (n, 3))
    sizes = rng.field(G_SIZE, n) * 4000.0 + 1000.0
    return positions, colors, sizes, np.full(n, 0.1)


def proto_attractors(rng: SeededRandom, radius: float) -> np.ndarray:
    k = PROTO_ATTRACTORS
    return np.stack((
        (rng.field(G_ATTR_X, k) - 0.5) * radius * 1.2,
        (rng.field(G_ATTR_Y, k) - 0.5) * radius * 0.8,
        (rng.field(G_ATTR_Z, k) - 0.5) * radius * 1.2,
    ), axis=-1)


def _proto(rng: SeededRandom, n: int, radius: float):
    attractors = proto_attractors(rng, radius)
    home = attractors[np.arange(n) % PROTO_ATTRACTORS]
    local_r = rng.field(G_R_A, n) * radius * 0.3
    d = isotropic(rng.field(G_THETA, n), rng.field(G_PHI, n))
    positions = home + d * local_r[:, None]

    giant = rng.field(G_COLOR, n) > 0.9
    colors = np.where(giant[:, None], _PROTO_RED, _PROTO_BLUE)
    u_size = rng.field(G_SIZE, n)
    sizes = np.where(giant, u_size * 8000.0 + 4000.0, u_size * 4000.0 + 1000.0)
    return positions, colors, sizes, np.full(n, 0.5)


_LAYOUTS = {
    GalaxyLayout.SPIRAL: _spiral,
    GalaxyLayout.ELLIPTICAL: _elliptical,
    GalaxyLayout.PROTO: _proto,
}


def generate_galaxy(seed: int, count: int, layout: GalaxyLayout,
                    universe_time: float,
                    radius: float = GALAXY_SCALE) -> Population:
    """
    Star positions, colours and classes for one galaxy.

    Orbit elements (radius in the disk plane, speed factor, initial angle)
    are recorded for universe.orbital.rotate_disk; this pass does not
    advance time.
    """
    rng = SeededRandom(seed)
    layout = GalaxyLayout(layout)
    positions, colors, sizes, speed = _LAYOUTS[layout](rng, count, radius)

    x, z = positions[:, 0], positions[:, 2]
    orbits = np.stack((np.hypot(x, z), speed, np.arctan2(z, x)), axis=-1)

    return Population(
        name="galaxy",
        tier=ViewLevel.GALAXY,
        seed=seed,
        kind=BodyKind.STAR,
        positions=np.array(positions, dtype=np.float64),
        colors=np.array(colors, dtype=np.float32),
        sizes=sizes.astype(np.float32),
        class_ids=classify_many(rng.field(G_CLASS, count)),
        formation_times=rng.field(G_FORMATION, count) * universe_time,
        remnant_draws=rng.field(G_REMNANT, count),
        orbits=orbits,
        metadata={"layout": layout, "radius": radius},
    )


def generate_nebulae(seed: int, layout: GalaxyLayout,
                     radius: float = GALAXY_SCALE) -> Optional[Population]:
    """Gas clouds for spiral (30) and proto (60) galaxies; ellipticals have none."""
    layout = GalaxyLayout(layout)
    if layout is GalaxyLayout.ELLIPTICAL:
        return None
    n = 60 if layout is GalaxyLayout.PROTO else 30
    rng = SeededRandom(sub_seed(seed, 0x4E42))

    r = rng.field(N_R, n) * radius * 0.8
    angle = rng.field(N_ANGLE, n) * 2.0 * math.pi
    positions = np.stack((
        r * np.cos(angle),
        (rng.field(N_HEIGHT, n) - 0.5) * radius * 0.2,
        r * np.sin(angle),
    ), axis=-1)
    return Population(
        name="nebulae",
        tier=ViewLevel.GALAXY,
        seed=rng.seed,
        kind=BodyKind.NEBULA,
        positions=positions,
        colors=np.tile(np.array(_NEBULA_COLOR, dtype=np.float32), (n, 1)),
        sizes=(rng.field(N_SIZE, n) * 800000.0 + 400000.0).astype(np.float32),
    )


# ---------------------------------------------------------------------------
# System pass
# ---------------------------------------------------------------------------

def generate_system(seed: int, star_class: CelestialClass,
                    planet_count_max: int = MAX_PLANETS,
                    scale: float = SYSTEM_SCALE,
                    gravity: float = GRAVITY) -> Population:
    """
    Stars and planets of one system, in the system frame (barycentre at 0).

    Multiple stars sit symmetrically on a circle of radius 0.4*scale and
    share one tangential speed sqrt(G*m0 / (n*d)). Planets start on
    circular orbits, v = sqrt(G*M/r) with M the total stellar mass.
    """
    rng = SeededRandom(seed)
    draw = rng.field_value
    is_black_hole = star_class.id == "BH"

    if is_black_hole:
        n_stars = 1
    elif draw(S_MULTIPLE, 0) > 0.6:
        n_stars = 3 if draw(S_TRINARY, 0) > 0.9 else 2
    else:
        n_stars = 1

    base_radius = scale * (0.1 if is_black_hole else 0.25)
    star_color = _ACCRETION_COLOR if is_black_hole else star_class.base_color

    positions, velocities, colors, sizes, masses, orbit_radii, labels = [], [], [], [], [], [], []
    star_distance = scale * 0.4
    primary_mass = STAR_BASE_MASS
    shared_speed = math.sqrt(gravity * primary_mass / (n_stars * star_distance))

    for i in range(n_stars):
        size_mod = 1.0 if i == 0 else 0.5 + draw(S_STAR_SIZE, i) * 0.5
        if n_stars == 1:
            pos, vel, orbit_r = (0.0, 0.0, 0.0), (0.0, 0.0, 0.0), 0.0
        else:
            a = 2.0 * math.pi * i / n_stars
            pos = (math.cos(a) * star_distance, 0.0, math.sin(a) * star_distance)
            vel = (-math.sin(a) * shared_speed, 0.0, math.cos(a) * shared_speed)
            orbit_r = star_distance
        positions.append(pos)
        velocities.append(vel)
        colors.append(star_color)
        sizes.append(base_radius * size_mod)
        masses.append(STAR_BASE_MASS * size_mod)
        orbit_radii.append(orbit_r)
        labels.append("PRIMARY" if i == 0 else f"COMPANION {'ABC'[i]}")

    central_mass = float(sum(masses))

    n_planets = MIN_PLANETS + int(draw(S_PLANET_COUNT, 0) * (planet_count_max - MIN_PLANETS + 1))
    n_planets = min(n_planets, planet_count_max, MAX_PLANETS)
    orbit_base = scale * (0.8 if n_stars > 1 else 0.3)
    gas_giant = []
    for i in range(n_planets):
        dist = orbit_base + i * scale * 0.2 + draw(S_ORBIT_JITTER, i) * scale * 0.1
        rad = scale * 0.01 + draw(S_RADIUS, i) * scale * 0.02
        is_gas = i > 2 and draw(S_GAS, i) > 0.3
        ang = draw(S_ANGLE, i) * 2.0 * math.pi
        v = math.sqrt(gravity * central_mass / dist)

        positions.append((math.cos(ang) * dist, 0.0, math.sin(ang) * dist))
        velocities.append((-math.sin(ang) * v, 0.0, math.cos(ang) * v))
        colors.append(hsl_to_rgb(draw(S_HUE, i), 0.8 if is_gas else 0.2, 0.5))
        sizes.append(rad)
        masses.append(rad * 10.0)
        orbit_radii.append(dist)
        gas_giant.append(is_gas)
        labels.append(f"PLANET {chr(65 + i)}")

    is_star = np.zeros(n_stars + n_planets, dtype=bool)
    is_star[:n_stars] = True

    return Population(
        name="system",
        tier=ViewLevel.SYSTEM,
        seed=seed,
        kind=BodyKind.PLANET,
        positions=np.array(positions, dtype=np.float64),
        colors=np.array(colors, dtype=np.float32),
        sizes=np.array(sizes, dtype=np.float32),
        velocities=np.array(velocities, dtype=np.float64),
        masses=np.array(masses, dtype=np.float64),
        orbit_radii=np.array(orbit_radii, dtype=np.float64),
        is_star=is_star,
        gas_giant=np.concatenate((np.zeros(n_stars, dtype=bool), np.array(gas_giant, dtype=bool))),
        central_mass=central_mass,
        labels=labels,
        metadata={"star_class": star_class.id, "star_count": n_stars,
                  "black_hole": is_black_hole, "gravity": gravity},
    )


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

class ProceduralGenerator:
    """
    Binds the passes to a SimConfig.

    Each tier is generated from its own seed: the universe from config.seed,
    finer tiers from sub_seed(parent_seed, body index).
    """

    def __init__(self, config: SimConfig):
        self.config = config

    def generate(self, level: ViewLevel, seed: int, **params) -> Population:
        t0 = time.perf_counter()
        if level == ViewLevel.UNIVERSE:
            pop = generate_universe(seed, self.config.star_count,
                                    self.config.cluster_count,
                                    self.config.filament_scatter)
        elif level == ViewLevel.GALAXY:
            pop = generate_galaxy(seed, self.config.galaxy_star_count,
                                  params["layout"], params.get("universe_time", 0.0))
        else:
            cls = params.get("star_class") or STAR_CLASSES[CLASS_INDEX["G"]]
            pop = generate_system(seed, cls, self.config.planet_count_max)
        logger.info("Generated %r in %.1f ms", pop, (time.perf_counter() - t0) * 1000.0)
        return pop
