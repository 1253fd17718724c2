"""Vector and colour helpers shared by the generator and the panels."""
from __future__ import annotations
import colorsys
import math

import numpy as np


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x

def isotropic(u_theta: np.ndarray, u_phi: np.ndarray) -> np.ndarray:
    """
    Unit vectors uniformly distributed on the sphere from two uniform draws.
    theta = 2*pi*u, phi = acos(2u - 1).  Returns shape (n, 3).
    """
    theta = np.asarray(u_theta) * (2.0 * math.pi)
    phi = np.arccos(2.0 * np.asarray(u_phi) - 1.0)
    s = np.sin(phi)
    return np.stack((s * np.cos(theta), s * np.sin(theta), np.cos(phi)), axis=-1)

def ease_in_out_quad(t: np.ndarray) -> np.ndarray:
    """2t^2 below 0.5, -1 + (4 - 2t)t above."""
    t = np.asarray(t, dtype=np.float64)
    return np.where(t < 0.5, 2.0 * t * t, -1.0 + (4.0 - 2.0 * t) * t)

def hex_to_rgb(value: int) -> tuple[float, float, float]:
    return (((value >> 16) & 0xFF) / 255.0,
            ((value >> 8) & 0xFF) / 255.0,
            (value & 0xFF) / 255.0)

def rgb_to_hex(rgb) -> int:
    r, g, b = (int(round(clamp(float(c), 0.0, 1.0) * 255)) for c in rgb)
    return (r << 16) | (g << 8) | b

def hsl_to_rgb(h: float, s: float, l: float) -> tuple[float, float, float]:
    # colorsys takes HLS ordering
    return colorsys.hls_to_rgb(h % 1.0, l, s)

def format_coord(value: float) -> str:
    """Compact coordinate readout: exponent above 1e7, grouped above 1e4."""
    a = abs(value)
    if a >= 1e7:
        return f"{value:.2e}"
    if a >= 1e4:
        return f"{round(value):,}"
    return f"{value:.1f}"
