"""
sndchk - Report lines.

Formats anomaly events as timestamped human-readable lines and writes
them to the console, coloured by severity with colorama.
"""

import logging
import sys
import time
from typing import Optional, TextIO

import colorama
from colorama import Fore, Style

from sndchk.core.models import USB_FAIL_COUNTERS, AnomalyEvent, Category, EventKind, PcmDevice, Severity

logger = logging.getLogger(__name__)

_colorama_init_done = False

_SEVERITY_ORDER = (Severity.INFO, Severity.WARNING, Severity.CRITICAL)


def _ensure_colorama() -> None:
    global _colorama_init_done
    if not _colorama_init_done:
        colorama.init()
        _colorama_init_done = True


def format_timestamp(ts: float) -> str:
    return time.strftime("%H:%M:%S", time.localtime(ts))


def _fmt_rate(value: float) -> str:
    return f"{value:.0f}"


class Reporter:
    """
    Writes one line per event: "[HH:MM:SS] <text>".
    Rates are shown per second (per-tick delta / interval).
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        color: bool = True,
        min_severity: Severity = Severity.INFO,
        interval: float = 1.0,
    ) -> None:
        if stream is None and color:
            # init() may replace sys.stdout with its wrapper
            _ensure_colorama()
        self._stream = stream or sys.stdout
        self._min_severity = min_severity
        self._interval = interval if interval > 0 else 1.0
        isatty = getattr(self._stream, "isatty", lambda: False)
        self.color = color and isatty()

    def _should_emit(self, severity: Severity) -> bool:
        return _SEVERITY_ORDER.index(severity) >= _SEVERITY_ORDER.index(self._min_severity)

    def _per_second(self, value: float) -> float:
        return value / self._interval

    def format_event(self, event: AnomalyEvent) -> str:
        kind = event.kind
        if kind == EventKind.INITIAL:
            if event.category == Category.USB:
                parts = [f"{short}={event.samples.get(name, 0)}" for name, short in USB_FAIL_COUNTERS]
                return "Initial USB: " + " ".join(parts)
            parts = [f" {name}={value}" for name, value in event.samples.items()]
            return "Initial xruns:" + "".join(parts)
        if kind == EventKind.CALIBRATING:
            return "Initial IRQ: calibrating..."
        if kind == EventKind.INCREASE:
            change = f"{event.previous} -> {event.current} (+{event.delta})"
            if event.category == Category.XRUNS:
                return f"{event.entity} xruns: {change}"
            return f"{event.entity}: {change}"
        if kind == EventKind.RESET:
            label = f"{event.entity} xruns" if event.category == Category.XRUNS else event.entity
            return f"{label}: reset {event.previous} -> {event.current}"
        if kind == EventKind.BASELINE:
            return f"{event.entity} baseline: {_fmt_rate(self._per_second(event.baseline or 0.0))}/s"
        if kind == EventKind.SPIKE:
            return "%s: %s -> %s/s (%.1fx)" % (
                event.entity,
                _fmt_rate(self._per_second(event.baseline or 0.0)),
                _fmt_rate(self._per_second(event.delta or 0)),
                event.ratio or 0.0,
            )
        if kind == EventKind.UNAVAILABLE:
            if event.category == Category.USB:
                return "USB WARNING: Device disconnected or not responding"
            return f"{event.category.value.upper()} WARNING: counter source unavailable ({event.message})"
        return event.message or kind.value

    def _colorize(self, line: str, severity: Severity) -> str:
        if not self.color:
            return line
        if severity == Severity.CRITICAL:
            prefix = Fore.RED
        elif severity == Severity.WARNING:
            prefix = Fore.YELLOW
        else:
            prefix = Fore.GREEN
        return f"{prefix}{line}{Style.RESET_ALL}"

    def write(self, line: str) -> None:
        try:
            self._stream.write(line + "\n")
            self._stream.flush()
        except (OSError, UnicodeEncodeError) as e:
            logger.warning("Failed to write report line: %s", e)

    def emit(self, timestamp: float, event: AnomalyEvent) -> None:
        """Write one event as a timestamped line."""
        if not self._should_emit(event.severity):
            return
        line = f"[{format_timestamp(timestamp)}] {self.format_event(event)}"
        self.write(self._colorize(line, event.severity))

    def emit_batch(self, timestamp: float, events: list[AnomalyEvent]) -> None:
        for event in events:
            self.emit(timestamp, event)

    def header(self, device: PcmDevice, show_usb: bool) -> None:
        self.write(f"Monitoring {device.name}: {device.desc}")
        if device.is_usb and show_usb:
            self.write(f"USB device: ugen{device.ugen}")
            if device.controller:
                self.write(f"USB controller: {device.controller} ({device.irq or 'no irq'})")
        self.write("-" * 40)

    def summary(self, ticks: int, counts: dict[EventKind, int]) -> None:
        detail = ", ".join(f"{kind.value.lower()}={n}" for kind, n in counts.items() if n)
        self.write("")
        self.write(f"Monitoring stopped. {ticks} ticks" + (f"; events: {detail}" if detail else "; no anomalies"))
