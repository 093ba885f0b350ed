"""
sndchk - Monitoring loop.

Pipeline per tick:  acquire (xruns → usb → irq) → detect → report

The first tick seeds the sample store and the irq calibrator and is
reported as initial values. Every later tick sleeps for the interval,
acquires all enabled categories, diffs them against the stored snapshot
and reports anomalies. Cancellation is polled before and during the
sleep and after every acquisition; a cancelled tick reports nothing.
"""

import logging
import time
from collections import Counter
from typing import Any, Callable, Optional, Union

from sndchk.core.alerts import Reporter
from sndchk.core.baseline import BaselineCalibrator, CalibratorConfig
from sndchk.core.comparator import DeltaDetector
from sndchk.core.config_loader import enabled_categories
from sndchk.core.errors import SourceUnavailable
from sndchk.core.models import TICK_ORDER, AnomalyEvent, Category, EventKind, PcmDevice, SampleSet, Severity
from sndchk.core.sample_store import SampleStore
from sndchk.core.sources import CounterSource

logger = logging.getLogger(__name__)

# Longest single sleep between cancellation checks
_SLEEP_SLICE_SECONDS = 1.0

Acquired = dict[Category, Union[SampleSet, SourceUnavailable]]


class SoundMonitor:
    """
    Fixed-interval sampling loop for one pcm device. Owns the sample store
    and calibrator state; nothing here is shared with another thread.
    """

    def __init__(
        self,
        config: dict[str, Any],
        device: PcmDevice,
        source: CounterSource,
        reporter: Optional[Reporter] = None,
        stop_event: Optional[Callable[[], bool]] = None,
        categories: Optional[list[Category]] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.device = device
        self.source = source
        self.reporter = reporter or Reporter(interval=config["interval"])
        self.stop_event = stop_event or (lambda: False)
        selected = categories if categories is not None else enabled_categories(config)
        self.categories = [c for c in TICK_ORDER if c in selected]
        self.interval = float(config["interval"])
        self.store = SampleStore()
        self.detector = DeltaDetector()
        self.calibrator = BaselineCalibrator(
            CalibratorConfig(
                calibration_window=config["calibration_window"],
                threshold_multiplier=config["threshold_multiplier"],
            )
        )
        self._clock = clock
        self._sleep = sleep
        self._ticks = 0
        self._counts: Counter = Counter()

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def event_counts(self) -> dict[EventKind, int]:
        return dict(self._counts)

    def acquire(self) -> Optional[Acquired]:
        """
        Fetch every enabled category in tick order.
        Returns None if cancellation was requested while fetching.
        """
        acquired: Acquired = {}
        for category in self.categories:
            try:
                acquired[category] = self.source.fetch(category)
            except SourceUnavailable as e:
                logger.debug("%s unavailable: %s", category.value, e.reason)
                acquired[category] = e
            if self.stop_event():
                logger.debug("Stop requested during %s acquisition; dropping tick", category.value)
                return None
        return acquired

    def initial_tick(self) -> list[AnomalyEvent]:
        """Seed store and calibrator; report initial values without diffing."""
        ts = self._clock()
        acquired = self.acquire()
        if acquired is None:
            return []
        events: list[AnomalyEvent] = []
        for category, result in acquired.items():
            if isinstance(result, SourceUnavailable):
                events.append(self.detector.unavailable(category, result.reason))
                continue
            self.store.update(category, result)
            if category == Category.IRQ:
                for entity, value in result.items():
                    self.calibrator.seed(entity, value)
                events.append(AnomalyEvent(kind=EventKind.CALIBRATING, category=category, severity=Severity.INFO))
            else:
                events.append(
                    AnomalyEvent(
                        kind=EventKind.INITIAL,
                        category=category,
                        severity=Severity.INFO,
                        samples=dict(result),
                    )
                )
        self.reporter.emit_batch(ts, events)
        return events

    def tick(self) -> list[AnomalyEvent]:
        """One monitoring cycle after the initial one."""
        ts = self._clock()
        acquired = self.acquire()
        if acquired is None:
            return []
        events: list[AnomalyEvent] = []
        for category, result in acquired.items():
            if isinstance(result, SourceUnavailable):
                # keep last known good snapshot; calibration stalls
                events.append(self.detector.unavailable(category, result.reason))
                continue
            previous = self.store.update(category, result)
            if category == Category.IRQ:
                for entity, value in result.items():
                    events.extend(self.calibrator.observe(category, entity, value))
            else:
                events.extend(self.detector.compare(category, previous, result))
        self._ticks += 1
        self._counts.update(e.kind for e in events)
        self.reporter.emit_batch(ts, events)
        return events

    def _wait_interval(self) -> bool:
        """Sleep for the interval in slices; False if stop was requested."""
        remaining = self.interval
        while remaining > 0:
            if self.stop_event():
                return False
            step = min(_SLEEP_SLICE_SECONDS, remaining)
            self._sleep(step)
            remaining -= step
        return not self.stop_event()

    def run(self) -> None:
        logger.info(
            "Starting sndchk monitor on %s (interval=%.1fs, categories=%s)",
            self.device.name,
            self.interval,
            ",".join(c.value for c in self.categories),
        )
        self.reporter.header(self.device, show_usb=Category.USB in self.categories)
        try:
            try:
                self.initial_tick()
            except Exception as e:
                logger.exception("Monitor cycle failed: %s", e)
            while not self.stop_event():
                if not self._wait_interval():
                    break
                try:
                    self.tick()
                except Exception as e:
                    logger.exception("Monitor cycle failed: %s", e)
        finally:
            self.reporter.summary(self._ticks, self.event_counts)
        logger.info("sndchk monitor stopped.")
