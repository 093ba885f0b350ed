from __future__ import annotations

from sndchk.core.models import Category
from sndchk.core.sample_store import SampleStore


def test_first_update_returns_empty() -> None:
    store = SampleStore()
    assert store.update(Category.XRUNS, {"pcm0.play.0": 5}) == {}
    assert store.get(Category.XRUNS) == {"pcm0.play.0": 5}


def test_update_is_full_snapshot_swap() -> None:
    store = SampleStore()
    store.update(Category.XRUNS, {"pcm0.play.0": 5, "pcm0.rec.0": 1})
    previous = store.update(Category.XRUNS, {"pcm0.play.0": 6})
    assert previous == {"pcm0.play.0": 5, "pcm0.rec.0": 1}
    assert store.get(Category.XRUNS) == {"pcm0.play.0": 6}


def test_categories_are_independent() -> None:
    store = SampleStore()
    store.update(Category.XRUNS, {"pcm0.play.0": 1})
    assert store.update(Category.USB, {"UE_BULK_FAIL": 2}) == {}
    assert store.has(Category.XRUNS)
    assert not store.has(Category.IRQ)


def test_stored_set_is_not_aliased() -> None:
    store = SampleStore()
    samples = {"pcm0.play.0": 1}
    store.update(Category.XRUNS, samples)
    samples["pcm0.play.0"] = 99
    assert store.get(Category.XRUNS) == {"pcm0.play.0": 1}
