"""
Autopilot tests.
"""

import pytest

from core.types import BodyKind, ViewLevel
from game.simulation import Simulation

from conftest import run_for, run_until_arrived


def run_until_level(sim, level, max_seconds=15.0):
    for _ in range(int(max_seconds / 0.1)):
        if sim.get_current_level() == level and not sim.is_transitioning:
            return
        sim.step(0.1)
    assert sim.get_current_level() == level


class TestTiming:
    """Delays and the young-universe wait."""

    def test_waits_for_one_gyr(self, small_config, renderer):
        sim = Simulation(small_config, renderer=renderer, autopilot=True, big_bang=True)
        run_for(sim, 5.0)
        assert sim.ctx.clock.universe_time < 1.0
        assert not sim.is_transitioning
        run_for(sim, 6.0)
        assert sim.ctx.clock.universe_time >= 1.0
        assert sim.is_transitioning

    def test_acts_on_first_frame_after_enabling(self, sim):
        sim.set_autopilot_enabled(True)
        sim.step(0.1)
        assert sim.is_transitioning
        assert sim.ctx.transition.to_level == ViewLevel.GALAXY

    def test_next_delay_is_randomised_around_base(self, sim):
        sim.set_autopilot_enabled(True)
        for _ in range(20):
            assert sim.autopilot.update(0.1) or sim.is_transitioning
            assert 3.75 <= sim.autopilot.state.next_action_delay <= 6.25
            sim.nav.finish()
            sim.autopilot.state.next_action_delay = 0.0

    def test_idle_while_transitioning(self, sim):
        sim.set_autopilot_enabled(True)
        sim.step(0.1)
        assert sim.is_transitioning
        timer = sim.autopilot.state.timer
        assert sim.autopilot.update(0.1) is False
        assert sim.autopilot.state.timer == timer

    def test_same_seed_same_choices(self, small_config):
        picks = []
        for _ in range(2):
            sim = Simulation(small_config, autopilot=False)
            sim.set_autopilot_enabled(True)
            sim.step(0.1)
            picks.append(sim.ctx.transition.target.index)
        assert picks[0] == picks[1]


class TestTour:
    """What the autopilot does on each tier."""

    def test_core_visited_first(self, sim):
        sim.set_autopilot_enabled(True)
        sim.step(0.1)
        run_until_arrived(sim)
        assert sim.get_current_level() == ViewLevel.GALAXY
        queued = sim.autopilot.state.priority_targets
        assert len(queued) == 1 and queued[0].kind == BodyKind.CORE

        run_until_level(sim, ViewLevel.SYSTEM)
        system = sim.ctx.store.get(ViewLevel.SYSTEM)
        assert system.metadata["black_hole"]
        assert int(system.is_star.sum()) == 1

    def test_goes_back_after_quota(self, sim):
        sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        sim.set_autopilot_enabled(True)
        assert sim.autopilot.state.priority_targets == []
        sim.autopilot.state.visited_systems = sim.config.systems_per_galaxy
        sim.step(0.1)
        assert sim.is_transitioning
        assert sim.ctx.transition.to_level == ViewLevel.UNIVERSE

    def test_random_star_counts_toward_quota(self, sim):
        sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        sim.set_autopilot_enabled(True)
        sim.step(0.1)
        assert sim.autopilot.state.visited_systems == 1
        assert sim.ctx.transition.to_level == ViewLevel.SYSTEM

    def test_planet_tour_then_back(self, sim):
        sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        sim.select(3)
        sim.travel_to()
        run_until_arrived(sim)
        planets = sim.ctx.store.get(ViewLevel.SYSTEM).planet_indices()

        sim.set_autopilot_enabled(True)
        for i, planet in enumerate(planets):
            sim.autopilot.state.next_action_delay = 0.0
            sim.step(0.1)
            assert not sim.is_transitioning
            assert sim.ctx.selected.index == planet
            assert sim.autopilot.state.tour_index == i + 1

        sim.autopilot.state.next_action_delay = 0.0
        sim.step(0.1)
        assert sim.is_transitioning
        assert sim.ctx.transition.to_level == ViewLevel.GALAXY


class TestOverride:
    """User actions take precedence."""

    def test_user_selection_disables(self, sim):
        sim.set_autopilot_enabled(True)
        sim.select(3)
        assert not sim.autopilot.enabled

    def test_disable_mid_transition(self, sim):
        sim.set_autopilot_enabled(True)
        sim.step(0.1)
        assert sim.is_transitioning
        sim.set_autopilot_enabled(False)
        run_until_arrived(sim)
        assert sim.get_current_level() == ViewLevel.GALAXY
        run_for(sim, 10.0)
        assert sim.get_current_level() == ViewLevel.GALAXY
        assert not sim.is_transitioning

    @pytest.mark.parametrize("level", [ViewLevel.UNIVERSE, ViewLevel.GALAXY])
    def test_disabled_never_acts(self, sim, level):
        if level == ViewLevel.GALAXY:
            sim.select(42)
            sim.travel_to()
            run_until_arrived(sim)
        run_for(sim, 12.0)
        assert sim.get_current_level() == level
        assert not sim.is_transitioning
