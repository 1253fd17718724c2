"""
Simplified orbital mechanics for the three tiers.

  advance(pop, dt)            system tier: planets under a central inverse-square
                              pull, companion stars on kinematic circles
  rotate_disk(pop, t)         galaxy tier: differential disk rotation
  inflation_factor(t)         universe tier: expansion from the singularity
  cooling_factor(t)           universe tier: colour heat, 1 at t=0

All positions are CPU-side; the renderer only receives the results.
The barycentre of a system is its population origin, so recentring the
frame does not disturb the orbits.
"""

from __future__ import annotations

import numpy as np

from core.config import GRAVITY
from universe.population import Population


# Smallest radius used in the inverse-square law (world units)
MIN_RADIUS = 1.0

SUBSTEPS = 2

# Galaxy disk angular rate per unit of galaxy time and speed factor
DISK_RATE = 0.005


def advance(pop: Population, dt: float, gravity: float = GRAVITY) -> None:
    """Step a system population by dt in place."""
    if dt <= 0.0 or pop.velocities is None:
        return
    _advance_stars(pop, dt)
    _advance_planets(pop, dt, gravity)


def _advance_stars(pop: Population, dt: float) -> None:
    stars = pop.is_star & (pop.orbit_radii > 0.0)
    if not stars.any():
        return
    rel = pop.positions[stars] - pop.origin
    vel = pop.velocities[stars]
    rel = rel + vel * dt

    # Back onto the circle, velocity tangent again with unchanged speed
    r = np.linalg.norm(rel, axis=1)
    r = np.maximum(r, MIN_RADIUS)
    radius = pop.orbit_radii[stars]
    rel = rel * (radius / r)[:, None]
    speed = np.linalg.norm(vel, axis=1)
    tangent = np.stack((-rel[:, 2], np.zeros(len(rel)), rel[:, 0]), axis=-1)
    tangent /= np.maximum(np.linalg.norm(tangent, axis=1), MIN_RADIUS)[:, None]
    # Keep the sense of rotation
    sense = np.sign(np.sum(tangent * vel, axis=1))
    sense[sense == 0] = 1.0
    pop.positions[stars] = rel + pop.origin
    pop.velocities[stars] = tangent * (speed * sense)[:, None]


def _advance_planets(pop: Population, dt: float, gravity: float) -> None:
    planets = ~pop.is_star
    if not planets.any():
        return
    gm = gravity * pop.central_mass
    rel = pop.positions[planets] - pop.origin
    vel = pop.velocities[planets]
    h = dt / SUBSTEPS
    for _ in range(SUBSTEPS):
        r = np.maximum(np.linalg.norm(rel, axis=1), MIN_RADIUS)
        acc = -rel * (gm / r ** 3)[:, None]
        vel = vel + acc * h
        rel = rel + vel * h
    pop.positions[planets] = rel + pop.origin
    pop.velocities[planets] = vel


def orbit_radii_now(pop: Population) -> np.ndarray:
    return np.linalg.norm(pop.positions - pop.origin, axis=1)


# ---------------------------------------------------------------------------
# Galaxy tier
# ---------------------------------------------------------------------------

def disk_positions(orbits: np.ndarray, heights: np.ndarray, galaxy_time: float) -> np.ndarray:
    radius, speed, angle0 = orbits[:, 0], orbits[:, 1], orbits[:, 2]
    angle = angle0 + galaxy_time * speed * DISK_RATE
    return np.stack((np.cos(angle) * radius, heights, np.sin(angle) * radius), axis=-1)


def rotate_disk(pop: Population, galaxy_time: float) -> None:
    """Rewrite galaxy star positions for the given galaxy time."""
    if pop.orbits is None:
        return
    heights = pop.positions[:, 1] - pop.origin[1]
    pop.positions[:] = disk_positions(pop.orbits, heights, galaxy_time) + pop.origin


# ---------------------------------------------------------------------------
# Universe tier
# ---------------------------------------------------------------------------

def inflation_factor(universe_time: float) -> float:
    return float(1.0 - np.exp(-2.0 * universe_time))


def cooling_factor(universe_time: float) -> float:
    return float(np.exp(-0.5 * universe_time))
