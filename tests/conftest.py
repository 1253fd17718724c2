"""
Pytest fixtures shared by the test modules.

Provides small configurations (fast generation), a recording renderer and
helpers to run the simulation for a given amount of wall time.
"""

from typing import Dict, List, Tuple

import numpy as np
import pytest

from core.config import MAX_FRAME_DT, SimConfig
from game.simulation import Simulation


class RecordingRenderer:
    """RendererPort that keeps every call for inspection."""

    def __init__(self):
        self.positions: Dict[str, np.ndarray] = {}
        self.colors: Dict[str, np.ndarray] = {}
        self.poses: List[Tuple[np.ndarray, np.ndarray]] = []
        self.input_calls: List[bool] = []

    def upload_positions(self, population_id, positions):
        self.positions[population_id] = np.array(positions)

    def upload_colors(self, population_id, colors):
        self.colors[population_id] = np.array(colors)

    def set_camera_pose(self, position, look_at):
        self.poses.append((np.array(position), np.array(look_at)))

    def set_camera_input_enabled(self, enabled):
        self.input_calls.append(enabled)

    def resident(self) -> List[str]:
        return sorted(name for name, pos in self.positions.items() if len(pos))


class CountingOwner:
    """Spatial owner recording every recenter() call."""

    def __init__(self):
        self.deltas: List[np.ndarray] = []

    def recenter(self, delta):
        self.deltas.append(np.array(delta))


def run_for(sim: Simulation, seconds: float) -> None:
    """Step the simulation with full-size frames for `seconds` of wall time."""
    for _ in range(int(round(seconds / MAX_FRAME_DT))):
        sim.step(MAX_FRAME_DT)


def run_until_arrived(sim: Simulation, max_seconds: float = 5.0) -> None:
    for _ in range(int(max_seconds / MAX_FRAME_DT)):
        if not sim.is_transitioning:
            return
        sim.step(MAX_FRAME_DT)
    assert not sim.is_transitioning, "transition did not complete"


@pytest.fixture
def small_config() -> SimConfig:
    return SimConfig(
        seed=1337,
        star_count=2_000,
        cluster_count=20,
        galaxy_star_count=3_000,
        strict_contracts=True,
    )


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def sim(small_config, renderer) -> Simulation:
    return Simulation(small_config, renderer=renderer)
