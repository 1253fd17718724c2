"""
Simulation context: the explicit state every subsystem is handed.

One SimulationContext per running simulation. Each component owns its
sub-struct (store, camera, clock, transition, autopilot state); nothing
lives in module globals.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from core.config import SimConfig
from core.time_controller import SimClock
from core.types import BodyKind, SpatialOwner, ViewLevel
from game.camera import CameraRig
from game.store import PopulationStore
from universe.classification import CelestialClass
from universe.describe import TargetSummary
from universe.space_weather import SpaceWeather


@dataclass
class Target:
    """A selectable body, captured at selection time."""
    level: ViewLevel                      # tier the body lives in
    index: int
    kind: BodyKind
    position: np.ndarray                  # current frame
    summary: TargetSummary
    seed: Optional[int] = None            # sub-seed of the finer tier, if any
    star_class: Optional[CelestialClass] = None


@dataclass
class TransitionState:
    from_level: ViewLevel
    to_level: ViewLevel
    target: Target
    progress: float = 0.0

    @property
    def descending(self) -> bool:
        return self.to_level > self.from_level


@dataclass
class SimulationContext:
    config: SimConfig
    clock: SimClock
    store: PopulationStore = field(default_factory=PopulationStore)
    camera: CameraRig = field(default_factory=CameraRig)

    level: ViewLevel = ViewLevel.UNIVERSE
    transition: Optional[TransitionState] = None
    world_offset: np.ndarray = field(default_factory=lambda: np.zeros(3))

    selected: Optional[Target] = None
    inspecting: Optional[Target] = None
    # Summary of the galaxy / system the camera currently sits in
    active_summaries: Dict[ViewLevel, TargetSummary] = field(default_factory=dict)
    # CMEs and aurorae of the resident system
    space_weather: Optional[SpaceWeather] = None

    # Extra owners following the floating origin (renderer-side helpers, tests)
    extra_owners: List[SpatialOwner] = field(default_factory=list)

    @property
    def transitioning(self) -> bool:
        return self.transition is not None

    def spatial_owners(self) -> List[SpatialOwner]:
        owners: List[SpatialOwner] = [*self.store, self.camera, *self.extra_owners]
        if self.space_weather is not None:
            owners.append(self.space_weather)
        return owners

    def recenter(self, delta: np.ndarray) -> None:
        """Shift every spatial owner once and accumulate the world offset."""
        delta = np.asarray(delta, dtype=np.float64)
        for owner in self.spatial_owners():
            owner.recenter(delta)
        self.world_offset = self.world_offset + delta
