"""
sndchk - Interrupt rate baseline calibration and spike detection.

For the first N observed ticks the per-tick delta of each interrupt
counter is folded into an incremental mean. Once N ticks have been seen
the mean is frozen and every later delta is compared against
mean * multiplier. The baseline never re-calibrates.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sndchk.core.models import AnomalyEvent, Category, EventKind, Severity

logger = logging.getLogger(__name__)

# Ticks averaged before the baseline is frozen
DEFAULT_CALIBRATION_WINDOW = 10

# Spike: delta > baseline * this → anomaly
DEFAULT_THRESHOLD_MULTIPLIER = 1.5


@dataclass
class CalibratorConfig:
    """Configuration for irq baseline calibration."""

    calibration_window: int = DEFAULT_CALIBRATION_WINDOW
    """Number of observed ticks averaged into the baseline."""
    threshold_multiplier: float = DEFAULT_THRESHOLD_MULTIPLIER
    """Spike: delta > baseline * this."""


@dataclass
class RateState:
    """Calibration state for one interrupt counter."""

    previous_value: int
    sample_count: int = 0
    baseline: float = 0.0


class BaselineCalibrator:
    """
    Windowed baseline + spike detection per rate entity.
    All state is on the instance; owned by the monitor loop.
    """

    def __init__(self, config: Optional[CalibratorConfig] = None) -> None:
        self._config = config or CalibratorConfig()
        self._states: dict[str, RateState] = {}

    @property
    def config(self) -> CalibratorConfig:
        return self._config

    def state(self, entity: str) -> Optional[RateState]:
        return self._states.get(entity)

    def is_calibrated(self, entity: str) -> bool:
        st = self._states.get(entity)
        return st is not None and st.sample_count >= self._config.calibration_window

    def seed(self, entity: str, value: int) -> None:
        """Record the starting counter value; no delta is observed."""
        self._states[entity] = RateState(previous_value=value)

    def observe(self, category: Category, entity: str, value: int) -> list[AnomalyEvent]:
        """
        Fold one counter reading into the entity's state.
        Returns BASELINE (once, at the end of the window) or SPIKE events.
        """
        st = self._states.get(entity)
        if st is None:
            self.seed(entity, value)
            return []

        delta = value - st.previous_value
        st.previous_value = value
        if delta < 0:
            # counter reset; not a rate
            logger.info("%s counter went backwards (%d); skipping tick", entity, delta)
            return []

        window = self._config.calibration_window
        if st.sample_count < window:
            st.sample_count += 1
            st.baseline = (st.baseline * (st.sample_count - 1) + delta) / st.sample_count
            logger.debug(
                "%s calibrating %d/%d: delta=%d baseline=%.2f",
                entity, st.sample_count, window, delta, st.baseline,
            )
            if st.sample_count == window:
                return [
                    AnomalyEvent(
                        kind=EventKind.BASELINE,
                        category=category,
                        entity=entity,
                        baseline=st.baseline,
                        severity=Severity.INFO,
                    )
                ]
            return []

        if st.baseline <= 0:
            return []
        threshold = st.baseline * self._config.threshold_multiplier
        if delta > threshold:
            ratio = delta / st.baseline
            logger.debug("%s spike: delta=%d threshold=%.2f ratio=%.2f", entity, delta, threshold, ratio)
            return [
                AnomalyEvent(
                    kind=EventKind.SPIKE,
                    category=category,
                    entity=entity,
                    current=value,
                    delta=delta,
                    baseline=st.baseline,
                    ratio=ratio,
                    severity=Severity.CRITICAL,
                )
            ]
        return []
