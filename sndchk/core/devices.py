"""
sndchk - Sound device discovery.

Lists pcm devices from /dev/sndstat and resolves, for USB audio devices,
the chain pcmN → uaudioK → ugenB.A → usbus controller → interrupt line.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from sndchk.core.commands import CommandRunner
from sndchk.core.errors import EntityNotFound, SourceUnavailable
from sndchk.core.models import PcmDevice

logger = logging.getLogger(__name__)

SNDSTAT_PATH = Path("/dev/sndstat")

_PCM_LINE_RE = re.compile(r"^pcm(?P<unit>\d+):\s?(?P<desc>.*)$")
_UGEN_RE = re.compile(r"ugen=ugen(?P<ugen>\S+)")


def parse_sndstat(text: str) -> list[tuple[int, str]]:
    """Return (unit, description) for every pcmN line."""
    result = []
    for line in text.splitlines():
        m = _PCM_LINE_RE.match(line.rstrip())
        if m:
            result.append((int(m.group("unit")), m.group("desc")))
    return result


def parse_ugen_location(location: str) -> Optional[str]:
    """'... ugen=ugen0.4 ...' → '0.4'."""
    m = _UGEN_RE.search(location)
    return m.group("ugen") if m else None


def find_irq_for_controller(vmstat_output: str, controller: str) -> Optional[str]:
    """First `vmstat -i` interrupt line naming controller, e.g. 'irq64'."""
    for line in vmstat_output.splitlines():
        fields = line.split()
        if len(fields) < 2 or not fields[0].endswith(":"):
            continue
        if controller in fields[1:-2]:
            return fields[0][:-1]
    return None


class DeviceDiscovery:
    """Builds PcmDevice records using sysctl, vmstat and /dev/sndstat."""

    def __init__(self, runner: Optional[CommandRunner] = None, sndstat_path: Path = SNDSTAT_PATH) -> None:
        self.runner = runner or CommandRunner()
        self.sndstat_path = sndstat_path

    def default_unit(self) -> int:
        value = self.runner.sysctl("hw.snd.default_unit")
        try:
            unit = int(value) if value is not None else -1
        except ValueError:
            unit = -1
        return unit if unit >= 0 else 0

    def discover(self) -> list[PcmDevice]:
        try:
            text = self.runner.read_text(self.sndstat_path)
        except SourceUnavailable as e:
            logger.error("Cannot open %s: %s", self.sndstat_path, e.reason)
            return []
        default = self.default_unit()
        devices = []
        for unit, desc in parse_sndstat(text):
            dev = PcmDevice(unit=unit, desc=desc, is_default=(unit == default))
            self._resolve_usb(dev)
            devices.append(dev)
        logger.debug("Discovered %d pcm devices", len(devices))
        return devices

    def _resolve_usb(self, dev: PcmDevice) -> None:
        parent = self.runner.sysctl(f"dev.pcm.{dev.unit}.%parent")
        dev.parent = parent
        if not parent or not parent.startswith("uaudio"):
            return
        try:
            uaudio_num = int(parent[len("uaudio"):])
        except ValueError:
            return
        location = self.runner.sysctl(f"dev.uaudio.{uaudio_num}.%location")
        if not location:
            return
        dev.ugen = parse_ugen_location(location)
        if not dev.ugen:
            return
        try:
            bus = int(dev.ugen.split(".", 1)[0])
        except ValueError:
            return
        dev.controller = self.runner.sysctl(f"dev.usbus.{bus}.%parent")
        if not dev.controller:
            return
        try:
            vmstat = self.runner.run(["vmstat", "-i"])
        except SourceUnavailable as e:
            logger.debug("vmstat -i unavailable: %s", e.reason)
            return
        dev.irq = find_irq_for_controller(vmstat, dev.controller)
        logger.debug(
            "%s: parent=%s ugen=%s controller=%s irq=%s",
            dev.name, dev.parent, dev.ugen, dev.controller, dev.irq,
        )


def find_device(devices: list[PcmDevice], unit: int) -> PcmDevice:
    """Return the device with the given unit or raise EntityNotFound."""
    for dev in devices:
        if dev.unit == unit:
            return dev
    raise EntityNotFound(f"device pcm{unit} not found")
