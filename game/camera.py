"""
CameraRig: camera pose owned by the simulation.

The external orbit-control widget is only allowed to move the camera while
`input_enabled` is True; during a scale transition the rig is driven by
approach() and input is locked.
"""

from __future__ import annotations
import math
from typing import Optional

import numpy as np

from core.config import GALAXY_SCALE, SYSTEM_SCALE, UNIVERSE_SCALE
from core.types import ViewLevel


# Fraction of the remaining distance closed per 1/60 s frame
APPROACH_RATE = 0.05
REFERENCE_FPS = 60.0


# (height, distance) of the default framing per tier, in world units
FRAMING = {
    ViewLevel.UNIVERSE: (UNIVERSE_SCALE * 0.1, UNIVERSE_SCALE * 0.2),
    ViewLevel.GALAXY:   (GALAXY_SCALE * 0.8, GALAXY_SCALE * 0.4),
    ViewLevel.SYSTEM:   (SYSTEM_SCALE * 0.4, SYSTEM_SCALE * 0.8),
}

TOUR_DISTANCE = {
    ViewLevel.GALAXY: GALAXY_SCALE * 1.5,
    ViewLevel.SYSTEM: SYSTEM_SCALE * 1.5,
}

# Zoom limits per tier (min, max distance)
ZOOM_LIMITS = {
    ViewLevel.UNIVERSE: (1000.0, UNIVERSE_SCALE * 2.0),
    ViewLevel.GALAXY:   (100.0, GALAXY_SCALE * 3.0),
    ViewLevel.SYSTEM:   (10.0, SYSTEM_SCALE * 4.0),
}


class CameraRig:

    def __init__(self):
        height, dist = FRAMING[ViewLevel.UNIVERSE]
        self.position = np.array([0.0, height, dist])
        self.look_at = np.zeros(3)
        self.input_enabled = True
        self.level = ViewLevel.UNIVERSE

    def __repr__(self) -> str:
        p = self.position
        return f"<CameraRig ({p[0]:.1f}, {p[1]:.1f}, {p[2]:.1f}) input={self.input_enabled}>"

    def recenter(self, delta: np.ndarray) -> None:
        self.position = self.position - delta
        self.look_at = self.look_at - delta

    @property
    def distance(self) -> float:
        return float(np.linalg.norm(self.position - self.look_at))

    def approach(self, target: np.ndarray, dt: float) -> None:
        """Exponential glide of both eye and look-at toward `target`."""
        frac = 1.0 - (1.0 - APPROACH_RATE) ** (dt * REFERENCE_FPS)
        self.position = self.position + (target - self.position) * frac
        self.look_at = self.look_at + (target - self.look_at) * frac

    def frame_level(self, level: ViewLevel,
                    u_theta: Optional[float] = None, u_phi: Optional[float] = None) -> None:
        """
        Default pose for a freshly entered tier, looking at the frame origin.
        With two draws (autopilot) the eye is placed on a random high orbit.
        """
        self.level = level
        self.look_at = np.zeros(3)
        if u_theta is not None and u_phi is not None and level in TOUR_DISTANCE:
            dist = TOUR_DISTANCE[level]
            theta = u_theta * 2.0 * math.pi
            phi = u_phi * math.pi * 0.5 + 0.1
            self.position = np.array([
                dist * math.sin(phi) * math.cos(theta),
                dist * math.cos(phi),
                dist * math.sin(phi) * math.sin(theta),
            ])
        else:
            height, dist = FRAMING[level]
            self.position = np.array([0.0, height, dist])

    def point_at(self, target: np.ndarray) -> None:
        self.look_at = np.array(target, dtype=np.float64)

    def zoom(self, factor: float) -> None:
        """Dolly along the view axis, kept inside the tier's limits."""
        if not self.input_enabled:
            return
        lo, hi = ZOOM_LIMITS[self.level]
        offset = self.position - self.look_at
        dist = float(np.linalg.norm(offset))
        if dist == 0.0:
            return
        new_dist = min(max(dist * factor, lo), hi)
        self.position = self.look_at + offset * (new_dist / dist)

    def orbit(self, d_yaw: float, d_pitch: float) -> None:
        """Rotate the eye around look_at (radians)."""
        if not self.input_enabled:
            return
        x, y, z = self.position - self.look_at
        r = math.sqrt(x * x + y * y + z * z)
        if r == 0.0:
            return
        yaw = math.atan2(z, x) + d_yaw
        pitch = math.asin(max(-1.0, min(1.0, y / r))) + d_pitch
        pitch = max(-1.5, min(1.5, pitch))
        self.position = self.look_at + r * np.array([
            math.cos(pitch) * math.cos(yaw),
            math.sin(pitch),
            math.cos(pitch) * math.sin(yaw),
        ])
