"""
sndchk - Counter sources.

A CounterSource returns the current sample set for a category or raises
SourceUnavailable. The FreeBSD source parses the text output of sndctl,
usbconfig and vmstat; parsing stays behind this interface.
"""

import logging
import re
from typing import Optional, Protocol

from sndchk.core.commands import CommandRunner
from sndchk.core.errors import SourceUnavailable
from sndchk.core.models import USB_FAIL_COUNTERS, Category, PcmDevice, SampleSet

logger = logging.getLogger(__name__)

_XRUNS_RE = re.compile(r"^\s*(?P<name>\S+?)\.xruns=(?P<value>\d+)")
_USB_FAIL_RE = re.compile(r"(?P<name>UE_[A-Z]+_FAIL)\s*:\s*(?P<value>\d+)")


class CounterSource(Protocol):
    def fetch(self, category: Category) -> SampleSet:
        ...


def parse_xruns(output: str, play_only: bool = False) -> SampleSet:
    """
    Parse `sndctl -v -o` output into channel → xruns.
    Channel names use the pcm prefix (dsp0.play.0 → pcm0.play.0).
    """
    result: SampleSet = {}
    for line in output.splitlines():
        m = _XRUNS_RE.match(line)
        if not m:
            continue
        name = m.group("name")
        if play_only and "play" not in name:
            continue
        if name.startswith("dsp"):
            name = "pcm" + name[3:]
        result[name] = int(m.group("value"))
    return result


def parse_usb_stats(output: str) -> SampleSet:
    """
    Parse `usbconfig dump_stats` output into the four UE_*_FAIL counters.
    Raises SourceUnavailable when the output is empty (device gone).
    """
    if not output.strip():
        raise SourceUnavailable(Category.USB, "Device disconnected or not responding")
    result: SampleSet = {name: 0 for name, _ in USB_FAIL_COUNTERS}
    for m in _USB_FAIL_RE.finditer(output):
        if m.group("name") in result:
            result[m.group("name")] = int(m.group("value"))
    return result


def parse_irq_count(output: str, irq: str) -> Optional[int]:
    """Total interrupt count for irq (e.g. "irq64") from `vmstat -i`, or None."""
    for line in output.splitlines():
        fields = line.split()
        if len(fields) < 4 or fields[0] != irq + ":":
            continue
        try:
            # irq64: xhci0 <total> <rate>
            return int(fields[-2])
        except ValueError:
            return None
    return None


class FreeBSDCounterSource:
    """
    Counter source for one pcm device on FreeBSD.
    xruns  → sndctl -f /dev/dspN -v -o
    usb    → usbconfig -d <ugen> dump_stats
    irq    → vmstat -i, keyed by controller name
    """

    def __init__(
        self,
        device: PcmDevice,
        runner: Optional[CommandRunner] = None,
        play_only: bool = False,
    ) -> None:
        self.device = device
        self.runner = runner or CommandRunner()
        self.play_only = play_only

    def fetch(self, category: Category) -> SampleSet:
        if category == Category.XRUNS:
            return self._fetch_xruns()
        if category == Category.USB:
            return self._fetch_usb()
        if category == Category.IRQ:
            return self._fetch_irq()
        raise ValueError(f"Unknown category: {category}")

    def _fetch_xruns(self) -> SampleSet:
        out = self.runner.run(
            ["sndctl", "-f", f"/dev/dsp{self.device.unit}", "-v", "-o"],
            category=Category.XRUNS,
        )
        return parse_xruns(out, play_only=self.play_only)

    def _fetch_usb(self) -> SampleSet:
        if not self.device.ugen:
            raise SourceUnavailable(Category.USB, f"{self.device.name} is not a USB device")
        out = self.runner.run(
            ["usbconfig", "-d", self.device.ugen, "dump_stats"],
            category=Category.USB,
        )
        return parse_usb_stats(out)

    def _fetch_irq(self) -> SampleSet:
        irq = self.device.irq
        if not irq:
            raise SourceUnavailable(Category.IRQ, f"no interrupt line known for {self.device.name}")
        out = self.runner.run(["vmstat", "-i"], category=Category.IRQ)
        count = parse_irq_count(out, irq)
        if count is None:
            raise SourceUnavailable(Category.IRQ, f"{irq} not listed by vmstat -i")
        return {self.device.controller or irq: count}
