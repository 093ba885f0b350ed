"""
sndchk - Shared data models (categories, events, devices).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# entity name -> counter value, one category, one tick
SampleSet = dict[str, int]


class Category(str, Enum):
    """Counter categories sampled together on each tick."""

    XRUNS = "xruns"
    USB = "usb"
    IRQ = "irq"


# Acquisition order within a tick
TICK_ORDER = (Category.XRUNS, Category.USB, Category.IRQ)

# USB failure sub-counters, in dump_stats order, with their short labels
USB_FAIL_COUNTERS = (
    ("UE_CONTROL_FAIL", "CTRL"),
    ("UE_ISOCHRONOUS_FAIL", "ISO"),
    ("UE_BULK_FAIL", "BULK"),
    ("UE_INTERRUPT_FAIL", "INT"),
)


class EventKind(str, Enum):
    """Anomaly event kinds."""

    INITIAL = "INITIAL"
    INCREASE = "INCREASE"
    RESET = "RESET"
    CALIBRATING = "CALIBRATING"
    BASELINE = "BASELINE"
    SPIKE = "SPIKE"
    UNAVAILABLE = "UNAVAILABLE"


class Severity(str, Enum):
    """Alert severity levels."""

    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


@dataclass
class AnomalyEvent:
    """One reportable observation produced by comparing consecutive samples."""

    kind: EventKind
    category: Category
    entity: Optional[str] = None
    previous: Optional[int] = None
    current: Optional[int] = None
    delta: Optional[int] = None
    baseline: Optional[float] = None
    ratio: Optional[float] = None
    severity: Severity = Severity.WARNING
    message: Optional[str] = None
    samples: SampleSet = field(default_factory=dict)


@dataclass
class PcmDevice:
    """A sound device as listed by /dev/sndstat, with its USB topology."""

    unit: int
    desc: str = ""
    is_default: bool = False
    parent: Optional[str] = None
    ugen: Optional[str] = None
    controller: Optional[str] = None
    irq: Optional[str] = None

    @property
    def name(self) -> str:
        return f"pcm{self.unit}"

    @property
    def is_usb(self) -> bool:
        return self.ugen is not None
