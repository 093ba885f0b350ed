from __future__ import annotations

import io
from typing import Union

import pytest

from sndchk.core.alerts import Reporter
from sndchk.core.errors import SourceUnavailable
from sndchk.core.models import Category, PcmDevice, SampleSet


class ScriptedSource:
    """Counter source replaying one scripted result per fetch and category."""

    def __init__(self, script: dict[Category, list[Union[SampleSet, SourceUnavailable]]]) -> None:
        self.script = {c: list(results) for c, results in script.items()}
        self.calls: list[Category] = []

    def fetch(self, category: Category) -> SampleSet:
        self.calls.append(category)
        result = self.script[category].pop(0)
        if isinstance(result, SourceUnavailable):
            raise result
        return dict(result)


class FakeRunner:
    """
    CommandRunner stand-in keyed by the joined command line. A list value
    is replayed one output per call.
    """

    def __init__(self, outputs: dict[str, str | list[str]], sysctls: dict[str, str] | None = None, files=None) -> None:
        self.outputs = outputs
        self.sysctls = sysctls or {}
        self.files = files or {}
        self.commands: list[str] = []

    def run(self, args, category=None) -> str:
        cmd = " ".join(args)
        self.commands.append(cmd)
        if cmd not in self.outputs:
            raise SourceUnavailable(category, f"{args[0]} exited with status 1")
        output = self.outputs[cmd]
        if isinstance(output, list):
            return output.pop(0)
        return output

    def sysctl(self, name: str):
        return self.sysctls.get(name)

    def read_text(self, path) -> str:
        key = str(path)
        if key not in self.files:
            raise SourceUnavailable(None, f"cannot read {path}")
        return self.files[key]


def irq_counts(deltas: list[int], start: int = 1000) -> list[SampleSet]:
    """Cumulative irq samples (seed first) producing the given per-tick deltas."""
    values = [start]
    for d in deltas:
        values.append(values[-1] + d)
    return [{"xhci0": v} for v in values]


@pytest.fixture
def config() -> dict:
    return {
        "device": 0,
        "interval": 1.0,
        "playback_only": False,
        "categories": ["xruns", "usb"],
        "acquisition_timeout_seconds": 5.0,
        "threshold_multiplier": 1.5,
        "calibration_window": 10,
        "color": False,
        "min_severity": "INFO",
    }


@pytest.fixture
def usb_device() -> PcmDevice:
    return PcmDevice(
        unit=0,
        desc="<USB Audio> (play/rec) default",
        is_default=True,
        parent="uaudio0",
        ugen="0.4",
        controller="xhci0",
        irq="irq64",
    )


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def reporter(output) -> Reporter:
    return Reporter(stream=output, color=False)
