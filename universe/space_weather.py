"""
Space weather of the resident system: coronal mass ejections and aurorae.

Every unpaused system frame has a small chance of launching a CME from one
of the system's stars. A CME travels in a straight line at constant speed
and fades after a fixed lifetime. While any CME is in flight, each planet
within reach of a CME lights its aurora fully; planets out of reach see
their aurora decay by a constant factor per CME per frame.

Draws come from a SeededRandom forked from the system seed, so the same
system stepped with the same frames produces the same weather.
"""

from __future__ import annotations
import logging
import math
from typing import Dict

import numpy as np

from core.rng import SeededRandom
from core.types import BodyKind, ViewLevel
from universe.population import Population

logger = logging.getLogger(__name__)


SPAWN_CHANCE = 0.005     # per unpaused frame
CME_SPEED    = 20.0      # world units per unit of sim time
CME_LIFETIME = 10.0
CME_RADIUS   = 5.0
CME_GROWTH   = 2.0       # display scale gained per unit of age
AURORA_REACH = 30.0
AURORA_DECAY = 0.98

# Fork index of the weather stream within the system seed
WEATHER_STREAM = 0xC3E

_CME_COLOR = (1.0, 0.27, 0.0)


class SpaceWeather:
    """CMEs in flight plus the aurora intensity of every body of a system."""

    def __init__(self, system: Population, spawn_chance: float = SPAWN_CHANCE):
        self.spawn_chance = spawn_chance
        self.rng = SeededRandom(system.seed).fork(WEATHER_STREAM)
        self.positions = np.zeros((0, 3))
        self.directions = np.zeros((0, 3))
        self.ages = np.zeros(0)
        self.aurora = np.zeros(len(system))
        self.launched = 0

    def __len__(self) -> int:
        return len(self.positions)

    def __repr__(self) -> str:
        return f"<SpaceWeather {len(self)} CMEs, launched={self.launched}>"

    def recenter(self, delta: np.ndarray) -> None:
        self.positions -= delta

    # ── Events ───────────────────────────────────────────────────────────────

    def launch(self, origin: np.ndarray) -> None:
        """Emit one CME from `origin` in an isotropic random direction."""
        theta = self.rng.next() * 2.0 * math.pi
        phi = self.rng.next() * math.pi
        direction = np.array([math.sin(phi) * math.cos(theta),
                              math.cos(phi),
                              math.sin(phi) * math.sin(theta)])
        self.positions = np.vstack((self.positions, np.asarray(origin, dtype=np.float64)))
        self.directions = np.vstack((self.directions, direction))
        self.ages = np.append(self.ages, 0.0)
        self.launched += 1
        logger.debug("CME launched from %s", np.array2string(np.asarray(origin), precision=1))

    def step(self, system: Population, dt: float) -> None:
        """Advance by sim time dt. Nothing happens while paused (dt == 0)."""
        if dt <= 0.0:
            return
        stars = np.flatnonzero(system.is_star) if system.is_star is not None else []
        if len(stars) and self.rng.next() < self.spawn_chance:
            star = stars[self.rng.index(len(stars))]
            self.launch(system.positions[star])
        if not len(self):
            return

        self.ages = self.ages + dt
        self.positions = self.positions + self.directions * (CME_SPEED * dt)

        planets = ~system.is_star if system.is_star is not None else np.ones(len(system), bool)
        for cme in self.positions:
            near = np.linalg.norm(system.positions - cme, axis=1) < AURORA_REACH
            self.aurora[planets & near] = 1.0
            self.aurora[planets & ~near] *= AURORA_DECAY

        alive = self.ages <= CME_LIFETIME
        if not alive.all():
            self.positions = self.positions[alive]
            self.directions = self.directions[alive]
            self.ages = self.ages[alive]

    # ── Queries ──────────────────────────────────────────────────────────────

    def aurora_levels(self, system: Population) -> Dict[str, float]:
        """Aurora intensity in [0, 1] per planet label."""
        return {system.labels[i]: float(self.aurora[i]) for i in system.planet_indices()}

    def as_population(self) -> Population:
        """CMEs in flight as a renderer population."""
        n = len(self)
        return Population(
            name="cme",
            tier=ViewLevel.SYSTEM,
            seed=self.rng.seed,
            kind=BodyKind.CME,
            positions=self.positions.copy(),
            colors=np.tile(np.array(_CME_COLOR, dtype=np.float32), (n, 1)),
            sizes=CME_RADIUS * (1.0 + self.ages * CME_GROWTH),
        )
