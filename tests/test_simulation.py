"""
Facade tests: configuration, clock, selection callbacks, renderer uploads.
"""

import numpy as np
import pytest

from core.config import MAX_FRAME_DT, ConfigError, SimConfig
from core.time_controller import PRESENT_DAY_GYR, TIME_SCALES, SimClock
from core.types import BodyKind, ViewLevel
from game.simulation import Simulation
from universe.classification import LifecycleState

from conftest import RecordingRenderer, run_for, run_until_arrived


class TestConfig:
    """Validation and rejection."""

    def test_defaults_validate(self):
        config = SimConfig().validate()
        assert config.seed == 1337
        assert config.star_count == 250_000

    @pytest.mark.parametrize("changes", [
        {"seed": -1},
        {"seed": "abc"},
        {"star_count": 0},
        {"cluster_count": 1},
        {"planet_count_max": 2},
        {"planet_count_max": 9},
        {"filament_scatter": 1.5},
        {"time_scale": -0.1},
        {"time_scale": float("inf")},
        {"time_scale": float("nan")},
        {"star_count": True},
        {"cluster_count": True},
        {"no_such_option": 3},
    ])
    def test_invalid_changes_raise(self, changes):
        with pytest.raises(ConfigError):
            SimConfig().replace(**changes)

    def test_rejection_keeps_previous_config(self, sim, caplog):
        before = sim.config
        assert not sim.configure(star_count=-5)
        assert sim.config is before
        assert "Configuration rejected" in caplog.text

    def test_quality_preset(self, sim):
        assert sim.set_quality("low")
        assert sim.config.star_count == 100_000
        assert sim.config.cluster_count == 200
        assert not sim.set_quality("EXTREME")

    def test_density_applies_at_next_regeneration(self, sim):
        resident = len(sim.ctx.store.get(ViewLevel.UNIVERSE))
        assert sim.set_population_density(ViewLevel.UNIVERSE, 500)
        assert len(sim.ctx.store.get(ViewLevel.UNIVERSE)) == resident
        sim.reseed()
        assert len(sim.ctx.store.get(ViewLevel.UNIVERSE)) == 500

    def test_planet_density_capped(self, sim):
        before = sim.config
        assert not sim.set_population_density(ViewLevel.SYSTEM, 30)
        assert sim.config is before
        assert sim.set_population_density(ViewLevel.SYSTEM, 8)
        assert sim.config.planet_count_max == 8

    def test_unknown_density_tier_rejected(self, sim, caplog):
        before = sim.config
        assert not sim.set_population_density(7, 100)
        assert sim.config is before
        assert "unknown tier" in caplog.text

    def test_set_seed_regenerates(self, sim):
        before = sim.ctx.store.get(ViewLevel.UNIVERSE).positions.copy()
        assert sim.set_seed(4242)
        after = sim.ctx.store.get(ViewLevel.UNIVERSE)
        assert after.seed == 4242
        assert not np.array_equal(before, after.positions)
        assert not sim.set_seed(-3)
        assert sim.config.seed == 4242


class TestClock:
    """Simulated time."""

    def test_clamp(self):
        assert SimClock.clamp_dt(5.0) == MAX_FRAME_DT
        assert SimClock.clamp_dt(-1.0) == 0.0

    def test_universe_time_advances_only_at_universe(self):
        clock = SimClock(time_scale=0.5, universe_time=1.0)
        assert clock.step(0.1, ViewLevel.UNIVERSE) == pytest.approx(0.05)
        assert clock.universe_time == pytest.approx(1.05)
        clock.step(0.1, ViewLevel.GALAXY)
        assert clock.universe_time == pytest.approx(1.05)
        assert clock.galaxy_time == pytest.approx(0.05)

    def test_system_multiplier(self):
        clock = SimClock(time_scale=1.0)
        assert clock.step(0.1, ViewLevel.SYSTEM) == pytest.approx(0.5)

    def test_pause(self, sim):
        t0 = sim.ctx.clock.universe_time
        assert sim.toggle_pause() is True
        run_for(sim, 1.0)
        assert sim.ctx.clock.universe_time == t0
        assert sim.toggle_pause() is False
        run_for(sim, 1.0)
        assert sim.ctx.clock.universe_time > t0

    def test_speed_steps(self):
        clock = SimClock(time_scale=0.1)
        clock.speed_up()
        assert clock.time_scale == 0.25
        clock.speed_down()
        clock.speed_down()
        assert clock.time_scale == 0.05
        for _ in range(20):
            clock.speed_up()
        assert clock.time_scale == TIME_SCALES[-1]

    def test_speed_up_resumes(self):
        clock = SimClock(time_scale=0.1)
        clock.toggle_pause()
        clock.speed_up()
        assert not clock.paused
        assert clock.time_scale == 0.1

    def test_big_bang(self, sim, renderer):
        sim.big_bang()
        assert sim.ctx.clock.universe_time == 0.0
        assert sim.ctx.clock.flash == 1.0
        assert sim.get_current_level() == ViewLevel.UNIVERSE
        sim.ctx.clock.paused = True
        sim.step(0.1)
        assert sim.ctx.clock.flash < 1.0
        # Age 0: every body drawn at the origin
        np.testing.assert_allclose(renderer.positions["universe"], 0.0, atol=1e-3)

    def test_galaxy_clock_restarts_per_galaxy(self, sim):
        sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        run_for(sim, 2.0)
        assert sim.ctx.clock.galaxy_time > 0.0
        sim.go_back()
        run_until_arrived(sim)
        sim.select(43)
        sim.travel_to()
        run_until_arrived(sim)
        assert sim.ctx.clock.galaxy_time < 0.05


class TestSelection:
    """Selection queries and callbacks."""

    def test_select_notifies(self, sim):
        seen = []
        sim.on_select(seen.append)
        summary = sim.select(42)
        assert seen == [summary]
        assert sim.get_selected_target_summary() is summary

    def test_selection_cleared_on_arrival(self, sim):
        seen = []
        sim.on_select(seen.append)
        sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        assert sim.get_selected_target_summary() is None
        assert seen[-1] is None

    def test_select_ignored_while_transitioning(self, sim):
        sim.select(42)
        sim.travel_to()
        assert sim.select(7) is None
        assert sim.ctx.selected.index == 42

    def test_location_summary(self, sim):
        assert sim.location_summary().designation == "UNIVERSE 0x539"
        galaxy = sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        assert sim.location_summary() == galaxy

    def test_location_describes_resident_universe(self, sim):
        assert sim.configure(seed=99, star_count=500)
        summary = sim.location_summary()
        assert summary.designation == "UNIVERSE 0x539"
        assert summary.mass == 2000

    def test_return_target_describes_resident_universe(self, sim):
        sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        assert sim.configure(seed=99, star_count=500)
        assert sim.go_back()
        summary = sim.ctx.transition.target.summary
        assert summary.designation == "UNIVERSE 0x539"
        assert summary.mass == 2000

    def test_core_fallback_ignores_pending_seed(self, sim):
        sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        del sim.ctx.active_summaries[ViewLevel.GALAXY]
        before = sim.select_core()
        assert sim.configure(seed=99)
        assert sim.select_core() == before

    def test_selected_body_record(self, sim):
        assert sim.get_selected_body() is None
        sim.select(42)
        body = sim.get_selected_body()
        universe = sim.ctx.store.get(ViewLevel.UNIVERSE)
        assert body.index == 42
        assert body.kind == BodyKind.GALAXY
        assert body.position == tuple(universe.positions[42])

    def test_selected_star_record_has_lifecycle(self, sim):
        sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        sim.select(7)
        body = sim.get_selected_body()
        assert body.kind == BodyKind.STAR
        assert body.class_id == sim.ctx.selected.star_class.id
        assert body.lifecycle_state in {s.name for s in LifecycleState}
        assert body.orbit is not None
        assert sim.select_core() is not None
        assert sim.get_selected_body() is None

    def test_select_core_only_in_galaxy(self, sim):
        assert sim.select_core() is None
        sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        core = sim.select_core()
        assert core.kind == "GALACTIC CORE"


class TestRendererSync:
    """What reaches the renderer."""

    def test_uploads_after_first_step(self, sim, renderer):
        sim.step(0.1)
        assert renderer.resident() == ["universe"]
        assert renderer.colors["universe"].shape == (2000, 3)
        assert renderer.poses

    def test_static_colors_sent_once(self, sim, renderer):
        sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        sim.step(0.1)
        galaxy_colors = renderer.colors["galaxy"]
        run_for(sim, 1.0)
        assert renderer.colors["galaxy"] is galaxy_colors

    def test_released_on_go_back(self, sim, renderer):
        sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        sim.step(0.1)
        assert "galaxy" in renderer.resident()
        sim.go_back()
        run_until_arrived(sim)
        sim.step(0.1)
        assert renderer.resident() == ["universe"]

    def test_reseed_from_galaxy_releases_galaxy(self, sim, renderer):
        sim.select(42)
        sim.travel_to()
        run_until_arrived(sim)
        sim.step(0.1)
        sim.reseed()
        sim.step(0.1)
        assert renderer.resident() == ["universe"]
        assert sim.get_current_level() == ViewLevel.UNIVERSE

    def test_no_renderer_is_fine(self, small_config):
        sim = Simulation(small_config)
        run_for(sim, 0.5)
        assert sim.ctx.clock.universe_time > PRESENT_DAY_GYR


class TestEndToEnd:
    """Full-size universe, one galaxy and back."""

    def test_universe_to_galaxy_and_back(self):
        config = SimConfig(seed=1337, star_count=250_000, galaxy_star_count=20_000,
                           strict_contracts=True)
        renderer = RecordingRenderer()
        sim = Simulation(config, renderer=renderer)
        assert len(sim.ctx.store.get(ViewLevel.UNIVERSE)) == 250_000

        summary = sim.select(42)
        assert summary is not None
        assert sim.travel_to()
        run_for(sim, 1.0)
        # Ignored mid-flight
        assert not sim.go_back()
        run_until_arrived(sim)
        assert sim.get_current_level() == ViewLevel.GALAXY
        assert len(sim.ctx.store.get(ViewLevel.GALAXY)) == 20_000

        assert sim.go_back()
        run_until_arrived(sim)
        sim.step(0.1)
        assert sim.get_current_level() == ViewLevel.UNIVERSE
        assert sim.ctx.store.get(ViewLevel.GALAXY) is None
        assert "galaxy" not in renderer.resident()
