"""
PopulationStore: the single owner of every resident population.

At most one population per tier plus the decorative nebula layer of the
resident galaxy. Navigation, physics and the presentation adapter query
the store; none of them hold their own arrays.

  store.put(pop)                     replaces whatever occupies the same id
  store.get(ViewLevel.GALAXY)        → Population | None
  store.discard_finer_than(level)    drops every tier below `level`
"""

from __future__ import annotations
import logging
from typing import Dict, Iterator, List, Optional

from core.types import ViewLevel
from universe.population import Population

logger = logging.getLogger(__name__)


class PopulationStore:

    def __init__(self):
        # population id → Population
        self._populations: Dict[str, Population] = {}

    def __len__(self) -> int:
        return len(self._populations)

    def __iter__(self) -> Iterator[Population]:
        return iter(list(self._populations.values()))

    def __contains__(self, name: str) -> bool:
        return name in self._populations

    # -----------------------------------------------------------------------
    # Mutation
    # -----------------------------------------------------------------------

    def put(self, pop: Population) -> None:
        self._populations[pop.name] = pop

    def discard_finer_than(self, level: ViewLevel) -> List[str]:
        dropped = [name for name, p in self._populations.items() if p.tier > level]
        for name in dropped:
            del self._populations[name]
        if dropped:
            logger.debug("Discarded populations: %s", ", ".join(dropped))
        return dropped

    def clear(self) -> None:
        self._populations.clear()

    # -----------------------------------------------------------------------
    # Query
    # -----------------------------------------------------------------------

    def get(self, level: ViewLevel) -> Optional[Population]:
        """Primary population (not decoration) of a tier."""
        for pop in self._populations.values():
            if pop.tier == level and pop.name != "nebulae":
                return pop
        return None
