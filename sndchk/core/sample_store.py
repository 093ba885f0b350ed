"""
sndchk - Sample store.

Holds the most recent sample set per category. Each update is a full
snapshot swap, never a merge.
"""

import logging

from sndchk.core.models import Category, SampleSet

logger = logging.getLogger(__name__)


class SampleStore:
    """Most recent sample set per category, keyed by entity name."""

    def __init__(self) -> None:
        self._sets: dict[Category, SampleSet] = {}

    def update(self, category: Category, new_set: SampleSet) -> SampleSet:
        """
        Replace the stored sample set for category and return the one it replaced
        (an empty mapping on the first call).
        """
        previous = self._sets.get(category, {})
        self._sets[category] = dict(new_set)
        logger.debug("Store %s: %d -> %d entities", category.value, len(previous), len(new_set))
        return previous

    def get(self, category: Category) -> SampleSet:
        """Return a copy of the current snapshot for category."""
        return dict(self._sets.get(category, {}))

    def has(self, category: Category) -> bool:
        return category in self._sets
