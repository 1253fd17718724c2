"""
Coronal mass ejections and planetary aurorae of the system tier.
"""

import numpy as np
import pytest

from core.rng import sub_seed
from universe.classification import get_class
from universe.generator import generate_system
from universe.space_weather import (
    AURORA_DECAY,
    CME_LIFETIME,
    CME_SPEED,
    SpaceWeather,
)


@pytest.fixture
def system():
    return generate_system(sub_seed(1337, 7), get_class("G"))


def quiet(system):
    """Weather that never launches on its own."""
    return SpaceWeather(system, spawn_chance=0.0)


class TestLaunch:
    """Spawning CMEs."""

    def test_launch_direction_is_unit(self, system):
        weather = quiet(system)
        weather.launch(np.zeros(3))
        assert len(weather) == 1
        assert weather.launched == 1
        assert weather.ages[0] == 0.0
        assert np.linalg.norm(weather.directions[0]) == pytest.approx(1.0)

    def test_spawns_from_a_star(self, system):
        weather = SpaceWeather(system, spawn_chance=1.0)
        weather.step(system, 0.01)
        assert weather.launched == 1
        stars = system.positions[system.is_star]
        distance = np.linalg.norm(stars - weather.positions[0], axis=1).min()
        assert distance == pytest.approx(CME_SPEED * 0.01)

    def test_no_spawn_while_paused(self, system):
        weather = SpaceWeather(system, spawn_chance=1.0)
        weather.step(system, 0.0)
        assert weather.launched == 0

    def test_same_system_same_weather(self, system):
        a = SpaceWeather(system, spawn_chance=1.0)
        b = SpaceWeather(system, spawn_chance=1.0)
        for _ in range(5):
            a.step(system, 0.1)
            b.step(system, 0.1)
        np.testing.assert_array_equal(a.positions, b.positions)
        np.testing.assert_array_equal(a.directions, b.directions)

    def test_default_chance_is_rare(self, system):
        weather = SpaceWeather(system)
        for _ in range(100):
            weather.step(system, 0.01)
        assert weather.launched < 10


class TestMotion:
    """Flight and expiry."""

    def test_moves_at_constant_speed(self, system):
        weather = quiet(system)
        weather.launch(np.zeros(3))
        weather.step(system, 0.5)
        assert np.linalg.norm(weather.positions[0]) == pytest.approx(CME_SPEED * 0.5)
        assert weather.ages[0] == pytest.approx(0.5)

    def test_expires_after_lifetime(self, system):
        weather = quiet(system)
        weather.launch(np.zeros(3))
        steps = int(CME_LIFETIME / 0.5)
        for _ in range(steps):
            weather.step(system, 0.5)
        assert len(weather) == 1
        weather.step(system, 0.5)
        assert len(weather) == 0
        assert weather.launched == 1

    def test_recenter_shifts_positions(self, system):
        weather = quiet(system)
        weather.launch(np.array([10.0, 0.0, 0.0]))
        weather.recenter(np.array([4.0, 0.0, 0.0]))
        np.testing.assert_allclose(weather.positions[0], [6.0, 0.0, 0.0])

    def test_renderer_population(self, system):
        weather = quiet(system)
        assert len(weather.as_population()) == 0
        weather.launch(np.zeros(3))
        weather.step(system, 1.0)
        pop = weather.as_population()
        assert pop.name == "cme"
        assert pop.colors.shape == (1, 3)
        assert pop.sizes[0] > 5.0


class TestAurora:
    """Aurora intensity per planet."""

    def test_starts_dark(self, system):
        levels = quiet(system).aurora_levels(system)
        assert set(levels) == {system.labels[i] for i in system.planet_indices()}
        assert all(v == 0.0 for v in levels.values())

    def test_lit_by_nearby_cme(self, system):
        weather = quiet(system)
        planet = system.planet_indices()[0]
        weather.launch(system.positions[planet])
        weather.step(system, 0.01)
        assert weather.aurora_levels(system)[system.labels[planet]] == 1.0

    def test_decays_when_out_of_reach(self, system):
        weather = quiet(system)
        weather.aurora[:] = 1.0
        weather.launch(np.array([1e6, 0.0, 0.0]))
        weather.step(system, 0.01)
        for value in weather.aurora_levels(system).values():
            assert value == pytest.approx(AURORA_DECAY)

    def test_stars_have_no_aurora(self, system):
        weather = quiet(system)
        weather.launch(system.positions[0])
        weather.step(system, 0.01)
        assert not weather.aurora[system.is_star].any()

    def test_no_decay_without_cmes(self, system):
        weather = quiet(system)
        weather.aurora[:] = 0.5
        weather.step(system, 0.1)
        assert weather.aurora.max() == 0.5
