"""
Autopilot: automatic exploration on top of the transition machine.

Two states: Idle (counting down a randomised delay) and Acting (exactly
one action, then the delay is re-armed). Nothing is issued while a
transition is in flight.

Per tier:
    UNIVERSE  wait until the universe is 1 Gyr old, pick a random galaxy
    GALAXY    visit the galactic core first, then random stars;
              go back once `systems_per_galaxy` systems were toured
    SYSTEM    look at each planet in turn, go back when the tour is over
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from core.rng import SeededRandom
from core.types import ViewLevel
from game.context import SimulationContext, Target
from game.navigation import ScaleTransitionMachine

logger = logging.getLogger(__name__)


INITIAL_DELAY = 2.0
BASE_DELAY = 5.0
MIN_UNIVERSE_AGE = 1.0      # Gyr

# Stream index of the autopilot's private random source under the universe seed
AUTOPILOT_STREAM = 0xA070


@dataclass
class AutopilotState:
    enabled: bool = False
    timer: float = 0.0
    next_action_delay: float = INITIAL_DELAY
    tour_index: int = 0
    visited_systems: int = 0
    priority_targets: List[Target] = field(default_factory=list)


class Autopilot:

    def __init__(self, ctx: SimulationContext, nav: ScaleTransitionMachine,
                 enabled: bool = False):
        self.ctx = ctx
        self.nav = nav
        self.state = AutopilotState(enabled=enabled)
        self.rng = SeededRandom(ctx.config.seed).fork(AUTOPILOT_STREAM)
        nav.on_arrival(self._on_arrival)
        nav.tour_framing = self._tour_framing

    def __repr__(self) -> str:
        s = self.state
        return (f"<Autopilot {'ON' if s.enabled else 'OFF'} t={s.timer:.1f}/"
                f"{s.next_action_delay:.1f} tour={s.tour_index} visited={s.visited_systems}>")

    @property
    def enabled(self) -> bool:
        return self.state.enabled

    def set_enabled(self, enabled: bool) -> None:
        s = self.state
        if enabled and not s.enabled:
            # Act on the next eligible frame
            s.timer = 0.0
            s.next_action_delay = 0.0
        s.enabled = enabled
        logger.info("Autopilot %s", "engaged" if enabled else "disengaged")

    def reset(self, seed: int) -> None:
        """New universe: fresh random source and counters, enabled flag kept."""
        enabled = self.state.enabled
        self.state = AutopilotState(enabled=enabled)
        self.rng = SeededRandom(seed).fork(AUTOPILOT_STREAM)

    # -----------------------------------------------------------------------
    # Frame update
    # -----------------------------------------------------------------------

    def update(self, dt: float) -> bool:
        """Returns True when an action was issued this frame."""
        s = self.state
        ctx = self.ctx
        if not s.enabled or ctx.transitioning:
            return False
        s.timer += dt
        if ctx.level == ViewLevel.UNIVERSE and ctx.clock.universe_time < MIN_UNIVERSE_AGE:
            return False
        if s.timer <= s.next_action_delay and s.next_action_delay > 0.0:
            return False

        s.timer = 0.0
        s.next_action_delay = BASE_DELAY * (0.75 + 0.5 * self.rng.next())
        self._act()
        return True

    def _act(self) -> None:
        ctx = self.ctx
        s = self.state
        level = ctx.level
        pop = ctx.store.get(level)
        if pop is None:
            return

        if level == ViewLevel.UNIVERSE:
            target = self.nav.select_target(self.rng.index(len(pop)))
            s.visited_systems = 0
            self._travel(target)

        elif level == ViewLevel.GALAXY:
            if s.priority_targets:
                self._travel(s.priority_targets.pop(0))
            elif s.visited_systems >= ctx.config.systems_per_galaxy:
                self.nav.go_back()
            else:
                s.visited_systems += 1
                self._travel(self.nav.select_target(self.rng.index(len(pop))))

        else:
            planets = pop.planet_indices()
            if s.tour_index < len(planets):
                target = self.nav.select_target(planets[s.tour_index])
                ctx.selected = target
                ctx.camera.point_at(target.position)
                s.tour_index += 1
            else:
                self.nav.go_back()

    def _travel(self, target: Optional[Target]) -> None:
        if target is None:
            return
        self.ctx.selected = target
        self.nav.travel_to(target)

    # -----------------------------------------------------------------------
    # Transition hooks
    # -----------------------------------------------------------------------

    def _on_arrival(self, level: ViewLevel, from_level: ViewLevel) -> None:
        s = self.state
        if level == ViewLevel.SYSTEM:
            s.tour_index = 0
        elif level == ViewLevel.GALAXY and from_level == ViewLevel.UNIVERSE:
            s.priority_targets = []
            if s.enabled:
                core = self.nav.core_index()
                target = self.nav.select_target(core) if core is not None else None
                if target is not None:
                    s.priority_targets.append(target)
        elif level == ViewLevel.UNIVERSE:
            s.priority_targets = []

    def _tour_framing(self):
        if not self.state.enabled:
            return None, None
        return self.rng.next(), self.rng.next()
