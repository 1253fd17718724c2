
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Protocol, Tuple

import numpy as np


class ViewLevel(IntEnum):
    UNIVERSE = 0
    GALAXY   = 1
    SYSTEM   = 2

    @property
    def finer(self) -> Optional["ViewLevel"]:
        return ViewLevel(self + 1) if self < ViewLevel.SYSTEM else None

    @property
    def coarser(self) -> Optional["ViewLevel"]:
        return ViewLevel(self - 1) if self > ViewLevel.UNIVERSE else None


class BodyKind(Enum):
    GALAXY    = "GALAXY"
    STAR      = "STAR"
    NEBULA    = "NEBULA"
    CORE      = "GALACTIC CORE"
    PLANET    = "ROCKY"
    GAS_GIANT = "GAS GIANT"
    CME       = "CORONAL MASS EJECTION"


class SpatialOwner(Protocol):
    """Anything holding positions that must follow the floating origin."""

    def recenter(self, delta: np.ndarray) -> None: ...


@dataclass(slots=True)
class GeneratedBody:
    index: int
    kind: BodyKind
    position: Tuple[float, float, float]
    color: Tuple[float, float, float]
    size: float
    designation: str = ""
    class_id: Optional[str] = None
    lifecycle_state: Optional[str] = None
    mass: float = 0.0
    # (radius, speed factor, initial angle) for galaxy-tier bodies
    orbit: Optional[Tuple[float, float, float]] = None
    velocity: Optional[Tuple[float, float, float]] = None
