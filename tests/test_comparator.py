from __future__ import annotations

from sndchk.core.comparator import DeltaDetector
from sndchk.core.models import Category, EventKind


def test_zero_values_never_reported() -> None:
    det = DeltaDetector()
    events = det.compare(Category.XRUNS, {"pcm0.play.0": 7}, {"pcm0.play.0": 0, "pcm0.rec.0": 0})
    assert events == []


def test_new_entity_counts_from_zero() -> None:
    det = DeltaDetector()
    events = det.compare(Category.XRUNS, {}, {"pcm0.play.1": 4})
    assert len(events) == 1
    e = events[0]
    assert e.kind == EventKind.INCREASE
    assert (e.entity, e.previous, e.current, e.delta) == ("pcm0.play.1", 0, 4, 4)


def test_same_set_twice_is_silent() -> None:
    det = DeltaDetector()
    samples = {"pcm0.play.0": 3, "pcm0.rec.0": 2}
    det.compare(Category.XRUNS, {}, samples)
    assert det.compare(Category.XRUNS, samples, dict(samples)) == []


def test_vanished_entity_is_dropped_silently() -> None:
    det = DeltaDetector()
    assert det.compare(Category.XRUNS, {"pcm0.play.0": 3, "pcm0.play.1": 9}, {"pcm0.play.0": 3}) == []


def test_usb_sub_counters_report_independently() -> None:
    det = DeltaDetector()
    previous = {"UE_CONTROL_FAIL": 1, "UE_ISOCHRONOUS_FAIL": 10, "UE_BULK_FAIL": 0, "UE_INTERRUPT_FAIL": 0}
    current = {"UE_CONTROL_FAIL": 2, "UE_ISOCHRONOUS_FAIL": 15, "UE_BULK_FAIL": 0, "UE_INTERRUPT_FAIL": 0}
    events = det.compare(Category.USB, previous, current)
    assert [(e.entity, e.delta) for e in events] == [("UE_CONTROL_FAIL", 1), ("UE_ISOCHRONOUS_FAIL", 5)]
    assert all(e.category == Category.USB for e in events)


def test_counter_going_backwards_is_a_reset() -> None:
    det = DeltaDetector()
    events = det.compare(Category.XRUNS, {"pcm0.play.0": 12}, {"pcm0.play.0": 3})
    assert len(events) == 1
    e = events[0]
    assert e.kind == EventKind.RESET
    assert (e.previous, e.current, e.delta) == (12, 3, 3)


def test_unavailable_event() -> None:
    e = DeltaDetector().unavailable(Category.USB, "gone")
    assert e.kind == EventKind.UNAVAILABLE
    assert e.entity is None
    assert e.message == "gone"
