"""
Population: a fixed-size, ordered body set produced by one generator pass.

Bulk data is kept column-wise in numpy arrays (positions, colours, sizes,
classification columns, orbit elements); GeneratedBody records are
materialised on demand with body(i).

Every population lives in a local frame whose centre is `origin`. The
floating-origin recentring moves positions and origin together through
recenter(delta), so frame-relative quantities (orbit radii, velocities)
never change.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from core.types import BodyKind, GeneratedBody, ViewLevel
from universe.classification import (
    STAR_CLASSES,
    LifecycleState,
    evaluate_lifecycle_many,
)


@dataclass(eq=False)
class Population:
    name: str                       # renderer population id
    tier: ViewLevel
    seed: int
    kind: BodyKind                  # default kind of every body
    positions: np.ndarray           # (n, 3) float64, current frame
    colors: np.ndarray              # (n, 3) float32 in [0, 1]
    sizes: np.ndarray               # (n,)
    origin: np.ndarray = field(default_factory=lambda: np.zeros(3))

    # Classification columns (stars only; class index -1 = unclassified)
    class_ids: Optional[np.ndarray] = None
    formation_times: Optional[np.ndarray] = None
    remnant_draws: Optional[np.ndarray] = None

    # Galaxy tier: (radius, speed factor, initial angle) per body
    orbits: Optional[np.ndarray] = None

    # System tier
    velocities: Optional[np.ndarray] = None
    masses: Optional[np.ndarray] = None
    orbit_radii: Optional[np.ndarray] = None
    is_star: Optional[np.ndarray] = None
    gas_giant: Optional[np.ndarray] = None
    central_mass: float = 0.0
    labels: List[str] = field(default_factory=list)

    metadata: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.positions)

    def __repr__(self) -> str:
        return (f"<Population {self.name}: {len(self)} bodies, "
                f"tier={self.tier.name}, seed=0x{self.seed:X}>")

    # -----------------------------------------------------------------------
    # Floating origin
    # -----------------------------------------------------------------------

    def recenter(self, delta: np.ndarray) -> None:
        self.positions -= delta
        self.origin = self.origin - delta

    def absolute_positions(self, world_offset: np.ndarray) -> np.ndarray:
        return self.positions + world_offset

    # -----------------------------------------------------------------------
    # Access
    # -----------------------------------------------------------------------

    def position_of(self, index: int) -> np.ndarray:
        return self.positions[index].copy()

    def kind_of(self, index: int) -> BodyKind:
        if self.is_star is not None and self.is_star[index]:
            return BodyKind.STAR
        if self.gas_giant is not None:
            return BodyKind.GAS_GIANT if self.gas_giant[index] else BodyKind.PLANET
        return self.kind

    def body(self, index: int, sim_time: float = 0.0) -> GeneratedBody:
        index = int(index)
        class_id = None
        state = None
        if self.class_ids is not None and self.class_ids[index] >= 0:
            states, effective = evaluate_lifecycle_many(
                self.class_ids[index:index + 1],
                sim_time - self.formation_times[index:index + 1],
                self.remnant_draws[index:index + 1],
            )
            class_id = STAR_CLASSES[int(effective[0])].id
            state = LifecycleState(int(states[0])).name

        return GeneratedBody(
            index=index,
            kind=self.kind_of(index),
            position=tuple(float(v) for v in self.positions[index]),
            color=tuple(float(v) for v in self.colors[index]),
            size=float(self.sizes[index]),
            designation=self.labels[index] if index < len(self.labels) else "",
            class_id=class_id,
            lifecycle_state=state,
            mass=float(self.masses[index]) if self.masses is not None else 0.0,
            orbit=tuple(float(v) for v in self.orbits[index]) if self.orbits is not None else None,
            velocity=(tuple(float(v) for v in self.velocities[index])
                      if self.velocities is not None else None),
        )

    def planet_indices(self) -> List[int]:
        if self.is_star is None:
            return []
        return [int(i) for i in np.flatnonzero(~self.is_star)]
