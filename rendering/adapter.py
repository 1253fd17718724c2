"""
Presentation adapter: the only code that talks to the renderer.

RendererPort is the boundary the external 3D engine implements. The adapter
turns resident populations into position / colour uploads (applying the
universe tier's inflation and colour cooling at upload time), forwards the
camera pose and the input lock, and formats target summaries into the
strings the UI panels show.
"""

from __future__ import annotations
import logging
from typing import Dict, List, Optional, Protocol, Set, Tuple

import numpy as np

from core.coords import format_coord, rgb_to_hex
from core.rng import SeededRandom
from core.types import ViewLevel
from universe.classification import LifecycleState
from universe.describe import TargetSummary
from universe.orbital import cooling_factor, inflation_factor
from universe.population import Population

logger = logging.getLogger(__name__)


class RendererPort(Protocol):

    def upload_positions(self, population_id: str, positions: np.ndarray) -> None: ...

    def upload_colors(self, population_id: str, colors: np.ndarray) -> None: ...

    def set_camera_pose(self, position: np.ndarray, look_at: np.ndarray) -> None: ...

    def set_camera_input_enabled(self, enabled: bool) -> None: ...


# Spectrograph palette, red → violet
SPECTRUM_PALETTE = (0xFF0000, 0xFF8800, 0xFFFF00, 0x00FF00, 0x00FFFF, 0x0088FF, 0xFF00FF)

STATE_SUFFIX = {
    LifecycleState.PROTO:   " (PROTO-STAR)",
    LifecycleState.GIANT:   " (RED GIANT)",
    LifecycleState.REMNANT: " (REMNANT)",
}

LOCATION_MESSAGES = {
    ViewLevel.UNIVERSE: "INTERGALACTIC SPACE",
    ViewLevel.GALAXY:   "ARRIVED AT LOCAL GALAXY",
    ViewLevel.SYSTEM:   "SYSTEM ORBIT STABLE",
}

BACK_LABELS = {
    ViewLevel.UNIVERSE: "RETURN TO ORBIT",
    ViewLevel.GALAXY:   "BACK TO UNIVERSE",
    ViewLevel.SYSTEM:   "BACK TO GALAXY",
}


def _format_quantity(value: Optional[float], unit: str) -> str:
    if value is None:
        return "VAR"
    if value >= 1e9:
        text = f"{value / 1e9:.1f} Billion"
    elif value >= 1e4:
        text = f"{round(value):,}"
    else:
        text = f"{value:g}"
    return f"{text} {unit}".rstrip()


def summary_fields(summary: TargetSummary) -> Dict[str, str]:
    """Display strings for the target panel."""
    if summary.class_id is not None:
        kind = f"CLASS {summary.class_id}{STATE_SUFFIX.get(summary.lifecycle_state, '')}"
        color = 0x00FF00 if summary.class_id == "BH" else rgb_to_hex(summary.color)
        lum = f"{summary.luminosity} L☉"
    else:
        kind = summary.kind
        color = 0x00FF00
        lum = summary.luminosity
    return {
        "designation": summary.designation,
        "type": kind,
        "type_color": f"#{color:06x}",
        "age": f"{summary.age:.3f} Bn YR" if summary.class_id else f"{summary.age:.2f} Bn YR",
        "mass": _format_quantity(summary.mass, summary.mass_unit),
        "radius": _format_quantity(summary.radius, summary.radius_unit),
        "luminosity": lum,
        "composition": summary.composition,
    }


def spectrum_lines(designation: str) -> List[Tuple[int, int]]:
    """(position %, colour) of the absorption lines drawn for a designation."""
    rng = SeededRandom(sum(ord(c) for c in designation))
    lines = []
    for _ in range(5 + rng.index(8)):
        pos = int(rng.next() * 95 / 5) * 5
        lines.append((pos, SPECTRUM_PALETTE[int(pos / 100 * len(SPECTRUM_PALETTE))]))
    return lines


def transition_banner(level: ViewLevel, descending: bool,
                      target_position: np.ndarray) -> Tuple[str, str]:
    if not descending:
        return "LEAVING GRAVITY WELL", "ACCELERATING TO ESCAPE VELOCITY..."
    sector = format(int(abs(target_position[0] + target_position[1])), "X")
    if level == ViewLevel.GALAXY:
        return "APPROACHING GALAXY", f"SECTOR {sector} :: HYPERDRIVE ENGAGED"
    return "APPROACHING SYSTEM", f"STAR {sector} :: ORBITAL INSERTION"


def coordinate_readout(camera_position: np.ndarray, world_offset: np.ndarray) -> Tuple[str, str, str]:
    p = np.asarray(camera_position) + np.asarray(world_offset)
    return format_coord(p[0]), format_coord(p[1]), format_coord(p[2])


class PresentationAdapter:
    """
    Pushes simulation state to a RendererPort.

    Colours are re-uploaded only when a population first appears (or, at the
    universe tier, while the cooling factor is still visibly changing);
    positions of dynamic tiers are uploaded every sync.
    """

    COOLING_EPSILON = 1e-3

    def __init__(self, renderer: Optional[RendererPort] = None):
        self.renderer = renderer
        self._resident: Set[str] = set()
        self._static_sent: Dict[str, Population] = {}
        self._last_cooling: Optional[float] = None

    # ── Camera ───────────────────────────────────────────────────────────────

    def set_camera_input_enabled(self, enabled: bool) -> None:
        if self.renderer is not None:
            self.renderer.set_camera_input_enabled(enabled)

    def push_camera(self, position: np.ndarray, look_at: np.ndarray) -> None:
        if self.renderer is not None:
            self.renderer.set_camera_pose(position, look_at)

    # ── Populations ─────────────────────────────────────────────────────────

    @staticmethod
    def display_positions(pop: Population, universe_time: float) -> np.ndarray:
        if pop.tier == ViewLevel.UNIVERSE:
            return pop.origin + (pop.positions - pop.origin) * inflation_factor(universe_time)
        return pop.positions

    @staticmethod
    def display_colors(pop: Population, universe_time: float) -> np.ndarray:
        if pop.tier == ViewLevel.UNIVERSE:
            heat = cooling_factor(universe_time)
            return (pop.colors + (1.0 - pop.colors) * heat).astype(np.float32)
        return pop.colors

    def sync(self, populations: List[Population], universe_time: float) -> None:
        if self.renderer is None:
            return
        names = {p.name for p in populations}
        for gone in self._resident - names:
            self.renderer.upload_positions(gone, np.zeros((0, 3)))
            self.renderer.upload_colors(gone, np.zeros((0, 3), dtype=np.float32))
            self._static_sent.pop(gone, None)
            logger.debug("Released renderer population %s", gone)
        self._resident = names

        heat = cooling_factor(universe_time)
        recool = (self._last_cooling is None
                  or abs(heat - self._last_cooling) > self.COOLING_EPSILON)
        for pop in populations:
            self.renderer.upload_positions(pop.name, self.display_positions(pop, universe_time))
            first = self._static_sent.get(pop.name) is not pop
            if first or (pop.tier == ViewLevel.UNIVERSE and recool):
                self.renderer.upload_colors(pop.name, self.display_colors(pop, universe_time))
                self._static_sent[pop.name] = pop
        if recool:
            self._last_cooling = heat
