"""
Simulation: the UI-facing facade.

Owns the SimulationContext and wires the subsystems together:

    clock → physics / disk rotation → transition machine → autopilot → renderer

State-changing calls return True when they took effect and False when they
were ignored (illegal transition, rejected configuration), the same way
screen navigation reports a refused go_back.
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, List, Optional

from core.config import SYSTEM_TIME_MULTIPLIER, ConfigError, SimConfig
from core.time_controller import PRESENT_DAY_GYR, SimClock
from core.types import GeneratedBody, ViewLevel
from game.autopilot import Autopilot
from game.context import SimulationContext, Target
from game.navigation import ScaleTransitionMachine
from rendering.adapter import PresentationAdapter, RendererPort
from universe.describe import TargetSummary, universe_summary
from universe.generator import ProceduralGenerator
from universe.orbital import advance, rotate_disk

logger = logging.getLogger(__name__)


SelectCallback = Callable[[Optional[TargetSummary]], None]

# Tier → config field holding its body count
DENSITY_FIELDS = {
    ViewLevel.UNIVERSE: "star_count",
    ViewLevel.GALAXY:   "galaxy_star_count",
    ViewLevel.SYSTEM:   "planet_count_max",
}


class Simulation:
    """
    Frame-driven simulation. Call step(dt) once per rendered frame.

    Args:
        config: initial configuration (validated; ConfigError if invalid)
        renderer: optional RendererPort receiving uploads
        autopilot: start with the autopilot engaged
        big_bang: start from universe age 0 instead of the present day
    """

    def __init__(self, config: Optional[SimConfig] = None,
                 renderer: Optional[RendererPort] = None,
                 autopilot: bool = False, big_bang: bool = False):
        config = (config or SimConfig()).validate()
        self.ctx = SimulationContext(config=config, clock=SimClock(config.time_scale))
        self.adapter = PresentationAdapter(renderer)
        self.generator = ProceduralGenerator(config)
        self.nav = ScaleTransitionMachine(self.ctx, self.generator, self.adapter)
        self.autopilot = Autopilot(self.ctx, self.nav, enabled=autopilot)
        self._select_callbacks: List[SelectCallback] = []
        self._regenerate(big_bang=big_bang)

    def __repr__(self) -> str:
        return (f"<Simulation seed={self.ctx.config.seed} level={self.ctx.level.name} "
                f"{self.ctx.clock!r}>")

    @property
    def config(self) -> SimConfig:
        return self.ctx.config

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def get_current_level(self) -> ViewLevel:
        return self.ctx.level

    def get_selected_target_summary(self) -> Optional[TargetSummary]:
        return self.ctx.selected.summary if self.ctx.selected is not None else None

    def get_selected_body(self) -> Optional[GeneratedBody]:
        """Full record of the selected body, evaluated at the current universe time."""
        target = self.ctx.selected
        if target is None:
            return None
        pop = self.ctx.store.get(target.level)
        if pop is None or not 0 <= target.index < len(pop):
            return None
        return pop.body(target.index, self.ctx.clock.universe_time)

    def aurora_levels(self) -> Dict[str, float]:
        """Aurora intensity per planet of the resident system (empty elsewhere)."""
        system = self.ctx.store.get(ViewLevel.SYSTEM)
        if system is None or self.ctx.space_weather is None:
            return {}
        return self.ctx.space_weather.aurora_levels(system)

    @property
    def is_transitioning(self) -> bool:
        return self.ctx.transitioning

    def location_summary(self) -> Optional[TargetSummary]:
        """Where the camera currently is, for the CURRENT LOCATION panel."""
        ctx = self.ctx
        if ctx.level == ViewLevel.UNIVERSE:
            universe = ctx.store.get(ViewLevel.UNIVERSE)
            if universe is None:
                return None
            return universe_summary(universe.seed, len(universe), ctx.clock.universe_time)
        if ctx.level == ViewLevel.SYSTEM and ctx.inspecting is not None:
            return ctx.inspecting.summary
        return ctx.active_summaries.get(ctx.level)

    # -----------------------------------------------------------------------
    # Selection & travel
    # -----------------------------------------------------------------------

    def on_select(self, callback: SelectCallback) -> None:
        self._select_callbacks.append(callback)

    def _notify_select(self) -> None:
        summary = self.get_selected_target_summary()
        for callback in self._select_callbacks:
            callback(summary)

    def select(self, index: int) -> Optional[TargetSummary]:
        """User selection of body `index` of the current tier."""
        if self.ctx.transitioning:
            return None
        target = self.nav.select_target(index)
        if target is None:
            return None
        self.autopilot.set_enabled(False)
        self.ctx.selected = target
        self._notify_select()
        return target.summary

    def select_core(self) -> Optional[TargetSummary]:
        core = self.nav.core_index()
        if core is None or self.ctx.level != ViewLevel.GALAXY:
            return None
        return self.select(core)

    def travel_to(self, target: Optional[Target] = None) -> bool:
        """
        Travel one tier deeper toward `target` (default: the selection).
        At the system tier this inspects the body instead.
        """
        target = target if target is not None else self.ctx.selected
        if target is None:
            return False
        self.autopilot.set_enabled(False)
        if self.ctx.level == ViewLevel.SYSTEM:
            return self.nav.inspect(target.index)
        return self.nav.travel_to(target)

    def go_back(self) -> bool:
        return self.nav.go_back()

    def set_autopilot_enabled(self, enabled: bool) -> None:
        self.autopilot.set_enabled(enabled)

    # -----------------------------------------------------------------------
    # Configuration
    # -----------------------------------------------------------------------

    def configure(self, **changes) -> bool:
        """
        Apply configuration changes; they take effect at the next
        regeneration. On rejection the previous configuration is kept.
        """
        try:
            config = self.ctx.config.replace(**changes)
        except ConfigError as e:
            logger.warning("Configuration rejected: %s", e)
            return False
        self.ctx.config = config
        self.generator.config = config
        if "time_scale" in changes:
            self.ctx.clock.time_scale = config.time_scale
        logger.debug("Configuration updated: %s", changes)
        return True

    def set_quality(self, preset: str) -> bool:
        try:
            config = self.ctx.config.with_quality(preset)
        except ConfigError as e:
            logger.warning("Configuration rejected: %s", e)
            return False
        return self.configure(star_count=config.star_count,
                              cluster_count=config.cluster_count)

    def set_population_density(self, tier: ViewLevel, count: int) -> bool:
        try:
            name = DENSITY_FIELDS[ViewLevel(tier)]
        except (ValueError, KeyError):
            logger.warning("Configuration rejected: unknown tier %r", tier)
            return False
        return self.configure(**{name: count})

    def set_seed(self, seed: int) -> bool:
        """New seed, then a full regeneration from it."""
        if not self.configure(seed=seed):
            return False
        self.reseed()
        return True

    def reseed(self) -> None:
        self._regenerate(big_bang=False)

    def big_bang(self) -> None:
        """Regenerate and restart the universe clock from age 0."""
        self._regenerate(big_bang=True)

    def _regenerate(self, big_bang: bool) -> None:
        ctx = self.ctx
        ctx.store.clear()
        if big_bang:
            ctx.clock.big_bang()
        else:
            ctx.clock.reset(PRESENT_DAY_GYR)
        ctx.store.put(self.generator.generate(ViewLevel.UNIVERSE, ctx.config.seed))
        self.nav.reset()
        self.autopilot.reset(ctx.config.seed)
        logger.info("Universe 0x%X ready (%s stars, age %.2f Gyr)",
                    ctx.config.seed, f"{ctx.config.star_count:,}", ctx.clock.universe_time)
        self._notify_select()

    # -----------------------------------------------------------------------
    # Time
    # -----------------------------------------------------------------------

    def toggle_pause(self) -> bool:
        return self.ctx.clock.toggle_pause()

    def speed_up(self) -> None:
        self.ctx.clock.speed_up()

    def speed_down(self) -> None:
        self.ctx.clock.speed_down()

    # -----------------------------------------------------------------------
    # Frame
    # -----------------------------------------------------------------------

    def step(self, dt: float) -> None:
        ctx = self.ctx
        dt = ctx.clock.clamp_dt(dt)
        sim_dt = ctx.clock.step(dt, ctx.level)

        if ctx.level == ViewLevel.GALAXY:
            galaxy = ctx.store.get(ViewLevel.GALAXY)
            if galaxy is not None and sim_dt > 0.0:
                rotate_disk(galaxy, ctx.clock.galaxy_time)
        elif ctx.level == ViewLevel.SYSTEM:
            system = ctx.store.get(ViewLevel.SYSTEM)
            if system is not None:
                advance(system, sim_dt)
                if ctx.space_weather is not None:
                    ctx.space_weather.step(system, sim_dt / SYSTEM_TIME_MULTIPLIER)
            self.nav.follow_inspected()

        level_before = ctx.level
        self.nav.tick(dt)
        if ctx.level != level_before:
            self._notify_select()
        self.autopilot.update(dt)

        populations = list(ctx.store)
        if ctx.space_weather is not None:
            populations.append(ctx.space_weather.as_population())
        self.adapter.sync(populations, ctx.clock.universe_time)
        self.adapter.push_camera(ctx.camera.position, ctx.camera.look_at)
