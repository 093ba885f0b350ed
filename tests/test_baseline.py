from __future__ import annotations

import pytest

from sndchk.core.baseline import BaselineCalibrator, CalibratorConfig
from sndchk.core.models import Category, EventKind


def _calibrated(baseline_delta: int, window: int = 10, multiplier: float = 1.5) -> tuple[BaselineCalibrator, int]:
    cal = BaselineCalibrator(CalibratorConfig(calibration_window=window, threshold_multiplier=multiplier))
    value = 1000
    cal.seed("xhci0", value)
    for _ in range(window):
        value += baseline_delta
        cal.observe(Category.IRQ, "xhci0", value)
    return cal, value


def test_baseline_is_mean_of_window_and_fires_once() -> None:
    cal = BaselineCalibrator(CalibratorConfig(calibration_window=4))
    cal.seed("xhci0", 0)
    value = 0
    fired_at = []
    for tick, delta in enumerate([10, 20, 30, 45, 1000, 5], start=1):
        value += delta
        events = cal.observe(Category.IRQ, "xhci0", value)
        if any(e.kind == EventKind.BASELINE for e in events):
            fired_at.append(tick)
    assert fired_at == [4]
    assert cal.state("xhci0").baseline == pytest.approx(26.25)
    assert cal.is_calibrated("xhci0")


def test_baseline_event_carries_value() -> None:
    cal = BaselineCalibrator(CalibratorConfig(calibration_window=2))
    cal.seed("xhci0", 0)
    assert cal.observe(Category.IRQ, "xhci0", 100) == []
    events = cal.observe(Category.IRQ, "xhci0", 250)
    assert len(events) == 1
    assert events[0].kind == EventKind.BASELINE
    assert events[0].baseline == pytest.approx(125.0)


def test_spike_threshold_boundary() -> None:
    cal, value = _calibrated(100)
    assert cal.observe(Category.IRQ, "xhci0", value + 150) == []
    value += 150
    events = cal.observe(Category.IRQ, "xhci0", value + 151)
    assert len(events) == 1
    assert events[0].kind == EventKind.SPIKE
    assert events[0].ratio == pytest.approx(1.51)


def test_zero_baseline_never_spikes() -> None:
    cal, value = _calibrated(0)
    assert cal.state("xhci0").baseline == 0
    assert cal.observe(Category.IRQ, "xhci0", value + 10**9) == []


def test_baseline_frozen_after_window() -> None:
    cal, value = _calibrated(100)
    for _ in range(20):
        value += 500
        cal.observe(Category.IRQ, "xhci0", value)
    assert cal.state("xhci0").baseline == pytest.approx(100.0)
    assert cal.state("xhci0").sample_count == 10


def test_previous_value_updated_after_spike() -> None:
    cal, value = _calibrated(100)
    value += 400
    assert len(cal.observe(Category.IRQ, "xhci0", value)) == 1
    assert cal.state("xhci0").previous_value == value
    assert cal.observe(Category.IRQ, "xhci0", value + 100) == []


def test_counter_reset_does_not_advance_calibration() -> None:
    cal = BaselineCalibrator(CalibratorConfig(calibration_window=3))
    cal.seed("xhci0", 5000)
    cal.observe(Category.IRQ, "xhci0", 5100)
    assert cal.observe(Category.IRQ, "xhci0", 50) == []
    st = cal.state("xhci0")
    assert st.sample_count == 1
    assert st.previous_value == 50


def test_observe_without_seed_only_seeds() -> None:
    cal = BaselineCalibrator()
    assert cal.observe(Category.IRQ, "ehci0", 42) == []
    assert cal.state("ehci0").previous_value == 42
    assert cal.state("ehci0").sample_count == 0
