"""
PygameRenderer: reference RendererPort drawing point clouds with pygame.

Bodies are splatted into a float RGB buffer with a pinhole projection,
softened with a gaussian glow and blitted through surfarray. Screen-space
picking uses a KD-tree over the projected points of one population.
"""

from __future__ import annotations
import logging
import math
from typing import Dict, List, Optional, Tuple

import numpy as np
import pygame
from scipy.spatial import cKDTree

logger = logging.getLogger(__name__)


# HUD palette (phosphor green on near-black)
BG_DARK = (0, 12, 10)
FG_PRIMARY = (0, 255, 120)
FG_DIM = (0, 180, 80)
ACCENT_YELLOW = (255, 255, 0)
ACCENT_RED = (255, 60, 60)

NEAR_PLANE = 1e-3
PICK_RADIUS_PX = 14.0


class PygameRenderer:
    """
    Args:
        size: (width, height) of the drawing surface
        fov_deg: vertical field of view
        glow: gaussian sigma (pixels) of the point glow, 0 disables it
    """

    def __init__(self, size: Tuple[int, int] = (1280, 800),
                 fov_deg: float = 60.0, glow: float = 1.2):
        self.size = size
        self.fov_deg = fov_deg
        self.glow = glow
        self.positions: Dict[str, np.ndarray] = {}
        self.colors: Dict[str, np.ndarray] = {}
        self.eye = np.array([0.0, 0.0, 1.0])
        self.look_at = np.zeros(3)
        self.input_enabled = True

    # ── RendererPort ─────────────────────────────────────────────────────────

    def upload_positions(self, population_id: str, positions: np.ndarray) -> None:
        if len(positions) == 0:
            self.positions.pop(population_id, None)
        else:
            self.positions[population_id] = np.asarray(positions, dtype=np.float64)

    def upload_colors(self, population_id: str, colors: np.ndarray) -> None:
        if len(colors) == 0:
            self.colors.pop(population_id, None)
        else:
            self.colors[population_id] = np.asarray(colors, dtype=np.float32)

    def set_camera_pose(self, position: np.ndarray, look_at: np.ndarray) -> None:
        self.eye = np.asarray(position, dtype=np.float64)
        self.look_at = np.asarray(look_at, dtype=np.float64)

    def set_camera_input_enabled(self, enabled: bool) -> None:
        self.input_enabled = enabled

    # ── Projection ───────────────────────────────────────────────────────────

    def resize(self, size: Tuple[int, int]) -> None:
        self.size = size

    def _basis(self):
        forward = self.look_at - self.eye
        n = np.linalg.norm(forward)
        forward = forward / n if n > 0 else np.array([0.0, 0.0, -1.0])
        up = np.array([0.0, 1.0, 0.0])
        if abs(float(forward @ up)) > 0.999:
            up = np.array([0.0, 0.0, -1.0])
        right = np.cross(forward, up)
        right /= np.linalg.norm(right)
        return right, np.cross(right, forward), forward

    def project(self, positions: np.ndarray):
        """(screen xy (n,2), depth (n,), in-front mask (n,))."""
        w, h = self.size
        right, up, forward = self._basis()
        rel = positions - self.eye
        z = rel @ forward
        front = z > NEAR_PLANE
        safe_z = np.where(front, z, 1.0)
        f = (h / 2.0) / math.tan(math.radians(self.fov_deg) / 2.0)
        sx = w / 2.0 + f * (rel @ right) / safe_z
        sy = h / 2.0 - f * (rel @ up) / safe_z
        return np.stack((sx, sy), axis=-1), z, front

    def pick(self, population_id: str, screen_xy: Tuple[float, float],
             radius_px: float = PICK_RADIUS_PX) -> Optional[int]:
        """Index of the body drawn nearest to screen_xy, within radius_px."""
        pos = self.positions.get(population_id)
        if pos is None:
            return None
        xy, _, front = self.project(pos)
        idx = np.flatnonzero(front)
        if len(idx) == 0:
            return None
        tree = cKDTree(xy[idx])
        dist, k = tree.query(screen_xy, distance_upper_bound=radius_px)
        if not np.isfinite(dist):
            return None
        return int(idx[k])

    # ── Drawing ──────────────────────────────────────────────────────────────

    def render(self, surface: pygame.Surface, flash: float = 0.0) -> None:
        w, h = self.size
        buf = np.zeros((h, w, 3), dtype=np.float32)
        for name, pos in self.positions.items():
            col = self.colors.get(name)
            if col is None or len(col) != len(pos):
                continue
            xy, z, front = self.project(pos)
            px = xy[:, 0].astype(np.int64)
            py = xy[:, 1].astype(np.int64)
            ok = front & (px >= 0) & (px < w) & (py >= 0) & (py < h)
            np.add.at(buf, (py[ok], px[ok]), col[ok])

        if self.glow > 0:
            from scipy.ndimage import gaussian_filter
            halo = gaussian_filter(buf, sigma=(self.glow, self.glow, 0))
            buf = buf + halo * 2.0
        if flash > 0:
            buf = buf + flash

        u8 = (np.clip(buf, 0.0, 1.0) * 255).astype(np.uint8)
        surf = pygame.surfarray.make_surface(u8.swapaxes(0, 1))
        surface.blit(surf, (0, 0))

    @staticmethod
    def draw_text(surface: pygame.Surface, font: pygame.font.Font,
                  lines: List[str], pos: Tuple[int, int],
                  color=FG_PRIMARY) -> None:
        x, y = pos
        for line in lines:
            surface.blit(font.render(line, False, color), (x, y))
            y += font.get_linesize()
