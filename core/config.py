"""
Simulation configuration.

SimConfig holds every recognised option. A config is validated as a whole
at the boundary (SimConfig.validate); the simulation keeps its previous
config when a change is rejected. Changes only take effect at the next full
regeneration, never on the population already resident.
"""

from __future__ import annotations
import dataclasses
import math
from dataclasses import dataclass
from typing import Dict


# ---------------------------------------------------------------------------
# Scales (world units) and physics constants
# ---------------------------------------------------------------------------

UNIVERSE_SCALE = 100_000_000.0
GALAXY_SCALE   = 1_000_000.0
SYSTEM_SCALE   = 500.0

# Empirical gravitational constant for the system tier
GRAVITY = 50.0

# Seconds of wall time a scale transition lasts
TRANSITION_DURATION = 3.0

# Largest frame dt accepted by the simulation step (seconds)
MAX_FRAME_DT = 0.1

# System-tier physics runs this much faster than the shared time scale
SYSTEM_TIME_MULTIPLIER = 5.0

# Planets per system
MIN_PLANETS = 3
MAX_PLANETS = 8


QUALITY_PRESETS: Dict[str, Dict[str, int]] = {
    "LOW":   {"star_count": 100_000,   "cluster_count": 200},
    "MED":   {"star_count": 250_000,   "cluster_count": 300},
    "HIGH":  {"star_count": 500_000,   "cluster_count": 400},
    "ULTRA": {"star_count": 1_000_000, "cluster_count": 500},
}


class ConfigError(ValueError):
    """Rejected configuration value."""


@dataclass(frozen=True)
class SimConfig:
    seed: int = 1337
    star_count: int = 250_000          # universe tier
    cluster_count: int = 300           # filament anchors
    filament_scatter: float = 0.04     # jitter as fraction of UNIVERSE_SCALE
    time_scale: float = 0.1
    galaxy_star_count: int = 250_000
    planet_count_max: int = MAX_PLANETS  # system tier draws 3..planet_count_max
    systems_per_galaxy: int = 3        # autopilot tour quota per galaxy
    strict_contracts: bool = __debug__

    def validate(self) -> "SimConfig":
        if isinstance(self.seed, bool) or not isinstance(self.seed, int):
            raise ConfigError(f"seed must be an integer, got {self.seed!r}")
        if self.seed < 0:
            raise ConfigError(f"seed must be non-negative, got {self.seed}")
        for name in ("star_count", "galaxy_star_count", "systems_per_galaxy",
                     "cluster_count", "planet_count_max"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if self.cluster_count < 2:
            raise ConfigError(f"cluster_count must be >= 2, got {self.cluster_count}")
        if not MIN_PLANETS <= self.planet_count_max <= MAX_PLANETS:
            raise ConfigError(f"planet_count_max must be in [{MIN_PLANETS}, {MAX_PLANETS}], "
                              f"got {self.planet_count_max}")
        if not 0.0 <= self.filament_scatter <= 1.0:
            raise ConfigError(f"filament_scatter must be in [0, 1], got {self.filament_scatter}")
        if not (math.isfinite(self.time_scale) and self.time_scale >= 0.0):
            raise ConfigError(f"time_scale must be finite and >= 0, got {self.time_scale}")
        return self

    def replace(self, **changes) -> "SimConfig":
        """New validated config; raises ConfigError and leaves self untouched."""
        try:
            return dataclasses.replace(self, **changes).validate()
        except TypeError as e:
            raise ConfigError(str(e)) from e

    def with_quality(self, preset: str) -> "SimConfig":
        q = QUALITY_PRESETS.get(preset.upper())
        if q is None:
            raise ConfigError(f"Unknown quality preset: {preset}")
        return self.replace(**q)
