"""
sndchk - Delta detection for monotonic counters.

Compares the current sample set of a category (xruns, USB transfer
failures) against the previous one and produces INCREASE / RESET events.
"""

import logging

from sndchk.core.models import AnomalyEvent, Category, EventKind, SampleSet, Severity

logger = logging.getLogger(__name__)


class DeltaDetector:
    """
    Per-entity change detection between two consecutive sample sets.

    - value 0 → never reported
    - absent in previous → prior is 0
    - current > prior → INCREASE (+delta)
    - current < prior → RESET (counter restarted; delta counts from zero)
    Entities missing from the current set are dropped silently.
    """

    def compare(
        self,
        category: Category,
        previous: SampleSet,
        current: SampleSet,
    ) -> list[AnomalyEvent]:
        events: list[AnomalyEvent] = []
        for entity, value in current.items():
            if value == 0:
                continue
            prior = previous.get(entity, 0)
            if value == prior:
                continue
            if value > prior:
                events.append(
                    AnomalyEvent(
                        kind=EventKind.INCREASE,
                        category=category,
                        entity=entity,
                        previous=prior,
                        current=value,
                        delta=value - prior,
                        severity=Severity.WARNING,
                    )
                )
            else:
                logger.debug("%s %s went backwards: %d -> %d", category.value, entity, prior, value)
                events.append(
                    AnomalyEvent(
                        kind=EventKind.RESET,
                        category=category,
                        entity=entity,
                        previous=prior,
                        current=value,
                        delta=value,
                        severity=Severity.INFO,
                    )
                )
        return events

    def unavailable(self, category: Category, reason: str) -> AnomalyEvent:
        """Category-level event for a failed acquisition."""
        return AnomalyEvent(
            kind=EventKind.UNAVAILABLE,
            category=category,
            severity=Severity.WARNING,
            message=reason,
        )
