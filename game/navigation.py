"""
Scale-transition state machine.

States: UNIVERSE, GALAXY, SYSTEM, plus the transient Transitioning state
held in ctx.transition. While a transition is in flight every other
travel / back request is a no-op (returns False).

Arrival order:
    1. level = to_level
    2. drop tiers finer than the destination's parent
    3. floating-origin recentring (one recenter() per spatial owner)
    4. descending only: generate the new tier in the recentred frame
    5. re-enable camera input, frame the camera
    6. clear the transition, notify arrival listeners
"""

from __future__ import annotations
import logging
from typing import Callable, List, Optional

import numpy as np

from core.config import TRANSITION_DURATION
from core.rng import sub_seed
from core.types import BodyKind, ViewLevel
from game.context import SimulationContext, Target, TransitionState
from rendering.adapter import PresentationAdapter
from universe.classification import (
    BLACK_HOLE,
    STAR_CLASSES,
    GalaxyLayout,
    evaluate_lifecycle,
)
from universe.describe import (
    TargetSummary,
    core_summary,
    galaxy_summary,
    planet_summary,
    star_summary,
    universe_summary,
)
from universe.generator import ProceduralGenerator, generate_nebulae, resolve_sub_seed
from universe.orbital import inflation_factor
from universe.space_weather import SpaceWeather

logger = logging.getLogger(__name__)


ArrivalListener = Callable[[ViewLevel, ViewLevel], None]


def default_layout(universe_time: float) -> GalaxyLayout:
    """Placement rule by universe age, for targets without a morphology."""
    if universe_time < 3.0:
        return GalaxyLayout.PROTO
    if universe_time > 10.0:
        return GalaxyLayout.ELLIPTICAL
    return GalaxyLayout.SPIRAL


class ScaleTransitionMachine:

    def __init__(self, ctx: SimulationContext,
                 generator: Optional[ProceduralGenerator] = None,
                 adapter: Optional[PresentationAdapter] = None):
        self.ctx = ctx
        self.generator = generator or ProceduralGenerator(ctx.config)
        self.adapter = adapter or PresentationAdapter()
        self._arrival_listeners: List[ArrivalListener] = []
        # Set by the autopilot so arrivals can use a random tour framing
        self.tour_framing: Optional[Callable[[], tuple]] = None

    def on_arrival(self, callback: ArrivalListener) -> None:
        self._arrival_listeners.append(callback)

    # -----------------------------------------------------------------------
    # Selection
    # -----------------------------------------------------------------------

    def core_index(self) -> Optional[int]:
        """Index addressing the galactic core (one past the last star)."""
        galaxy = self.ctx.store.get(ViewLevel.GALAXY)
        return len(galaxy) if galaxy is not None else None

    def select_target(self, index: int) -> Optional[Target]:
        """
        Describe body `index` of the current tier. Pure read: nothing in the
        context changes. Returns None for an out-of-range index.
        """
        ctx = self.ctx
        level = ctx.level
        pop = ctx.store.get(level)
        if pop is None or index < 0:
            return None
        t_univ = ctx.clock.universe_time

        if level == ViewLevel.UNIVERSE:
            if index >= len(pop):
                return None
            seed = sub_seed(pop.seed, index)
            grow = inflation_factor(t_univ)
            position = pop.origin + (pop.positions[index] - pop.origin) * grow
            return Target(level, index, BodyKind.GALAXY, position,
                          galaxy_summary(seed, t_univ), seed=seed)

        if level == ViewLevel.GALAXY:
            if index == len(pop):
                seed = sub_seed(pop.seed, index)
                summary = core_summary(ctx.active_summaries.get(ViewLevel.GALAXY),
                                       pop.seed, t_univ)
                return Target(level, index, BodyKind.CORE, pop.origin.copy(), summary,
                              seed=seed, star_class=BLACK_HOLE)
            if index > len(pop):
                return None
            seed = sub_seed(pop.seed, index)
            cls = STAR_CLASSES[int(pop.class_ids[index])]
            life = evaluate_lifecycle(cls, t_univ - float(pop.formation_times[index]),
                                      float(pop.remnant_draws[index]))
            return Target(level, index, BodyKind.STAR, pop.position_of(index),
                          star_summary(seed, life), seed=seed,
                          star_class=life.effective_class)

        # System tier
        if index >= len(pop):
            return None
        kind = pop.kind_of(index)
        if kind == BodyKind.STAR:
            summary = ctx.active_summaries.get(ViewLevel.SYSTEM) or TargetSummary(
                designation=pop.labels[index], kind="STAR", age=t_univ)
        else:
            summary = planet_summary(pop.labels[index], bool(pop.gas_giant[index]), t_univ,
                                     float(pop.masses[index]), float(pop.sizes[index]),
                                     tuple(float(c) for c in pop.colors[index]))
        return Target(level, index, kind, pop.position_of(index), summary)

    # -----------------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------------

    def travel_to(self, target: Target, level_delta: int = 1) -> bool:
        ctx = self.ctx
        if ctx.transitioning:
            logger.debug("travel_to ignored: transition in flight")
            return False
        dest = int(ctx.level) + level_delta
        if level_delta == 0 or not ViewLevel.UNIVERSE <= dest <= ViewLevel.SYSTEM:
            logger.debug("travel_to ignored: level %d out of range", dest)
            return False

        ctx.inspecting = None
        ctx.camera.input_enabled = False
        ctx.transition = TransitionState(ctx.level, ViewLevel(dest), target)
        self.adapter.set_camera_input_enabled(False)
        logger.info("Transition %s → %s (target %d)",
                    ctx.level.name, ViewLevel(dest).name, target.index)
        return True

    def go_back(self) -> bool:
        ctx = self.ctx
        if ctx.transitioning:
            logger.debug("go_back ignored: transition in flight")
            return False
        if ctx.inspecting is not None:
            return self.leave_orbit()
        coarser = ctx.level.coarser
        if coarser is None:
            logger.debug("go_back ignored: already at the coarsest level")
            return False
        parent = ctx.store.get(coarser)
        anchor = parent.origin.copy() if parent is not None else np.zeros(3)
        if coarser == ViewLevel.UNIVERSE:
            summary = universe_summary(parent.seed, len(parent), ctx.clock.universe_time)
            kind = BodyKind.GALAXY
        else:
            summary = ctx.active_summaries[coarser]
            kind = BodyKind.CORE
        target = Target(coarser, -1, kind, anchor, summary)
        return self.travel_to(target, level_delta=-1)

    def tick(self, dt: float) -> bool:
        """Advance the in-flight transition by wall time dt. True on arrival."""
        tr = self.ctx.transition
        if tr is None:
            return False
        tr.progress += dt
        self.ctx.camera.approach(tr.target.position, dt)
        if tr.progress >= TRANSITION_DURATION:
            self._arrive(tr)
            return True
        return False

    def finish(self) -> bool:
        """Skip the remaining animation."""
        tr = self.ctx.transition
        if tr is None:
            return False
        self._arrive(tr)
        return True

    def _arrive(self, tr: TransitionState) -> None:
        ctx = self.ctx
        ctx.level = tr.to_level
        keep = tr.from_level if tr.descending else tr.to_level
        ctx.store.discard_finer_than(keep)
        for lvl in [lv for lv in ctx.active_summaries if lv > keep]:
            del ctx.active_summaries[lvl]
        if keep < ViewLevel.SYSTEM:
            ctx.space_weather = None

        ctx.recenter(tr.target.position.copy())

        if tr.descending:
            self._generate_tier(tr)
            ctx.active_summaries[tr.to_level] = tr.target.summary

        ctx.selected = None
        ctx.inspecting = None
        ctx.camera.input_enabled = True
        self.adapter.set_camera_input_enabled(True)
        framing = self.tour_framing() if (tr.descending and self.tour_framing) else (None, None)
        ctx.camera.frame_level(tr.to_level, *framing)
        ctx.transition = None
        logger.info("Arrived at %s, world offset %s", tr.to_level.name,
                    np.array2string(ctx.world_offset, precision=1))
        for callback in self._arrival_listeners:
            callback(tr.to_level, tr.from_level)

    def _generate_tier(self, tr: TransitionState) -> None:
        ctx = self.ctx
        parent = ctx.store.get(tr.from_level)
        parent_seed = parent.seed if parent is not None else ctx.config.seed
        seed = resolve_sub_seed(tr.target.seed, parent_seed, ctx.config.strict_contracts)

        if tr.to_level == ViewLevel.GALAXY:
            morphology = tr.target.summary.morphology
            layout = morphology.layout if morphology is not None else default_layout(
                ctx.clock.universe_time)
            ctx.clock.galaxy_time = 0.0
            ctx.store.put(self.generator.generate(
                ViewLevel.GALAXY, seed, layout=layout,
                universe_time=ctx.clock.universe_time))
            nebulae = generate_nebulae(seed, layout)
            if nebulae is not None:
                ctx.store.put(nebulae)
        else:
            system = self.generator.generate(ViewLevel.SYSTEM, seed,
                                             star_class=tr.target.star_class)
            ctx.store.put(system)
            ctx.space_weather = SpaceWeather(system)

    # -----------------------------------------------------------------------
    # Orbit inspection (system tier)
    # -----------------------------------------------------------------------

    def inspect(self, index: int) -> bool:
        """Lock the camera onto a system body."""
        ctx = self.ctx
        if ctx.transitioning or ctx.level != ViewLevel.SYSTEM:
            return False
        target = self.select_target(index)
        if target is None:
            return False
        ctx.inspecting = target
        ctx.selected = target
        ctx.camera.point_at(target.position)
        return True

    def leave_orbit(self) -> bool:
        ctx = self.ctx
        if ctx.inspecting is None:
            return False
        ctx.inspecting = None
        ctx.camera.point_at(np.zeros(3))
        return True

    def follow_inspected(self) -> None:
        """Keep the camera locked on the inspected body as it moves."""
        ctx = self.ctx
        if ctx.inspecting is None:
            return
        pop = ctx.store.get(ViewLevel.SYSTEM)
        if pop is None:
            ctx.inspecting = None
            return
        ctx.inspecting.position = pop.position_of(ctx.inspecting.index)
        ctx.camera.point_at(ctx.inspecting.position)

    # -----------------------------------------------------------------------
    # Reset
    # -----------------------------------------------------------------------

    def reset(self) -> None:
        """Back to a fresh universe tier (store must already hold it)."""
        ctx = self.ctx
        ctx.transition = None
        ctx.level = ViewLevel.UNIVERSE
        ctx.world_offset = np.zeros(3)
        ctx.selected = None
        ctx.inspecting = None
        ctx.active_summaries.clear()
        ctx.space_weather = None
        ctx.camera.input_enabled = True
        ctx.camera.frame_level(ViewLevel.UNIVERSE)
        self.adapter.set_camera_input_enabled(True)
