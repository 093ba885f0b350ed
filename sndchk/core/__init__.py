"""
sndchk - Monitoring core.

Provides sampling, delta detection, baseline calibration and reporting
for real-time audio diagnostics on FreeBSD.
"""

from sndchk.core.alerts import Reporter
from sndchk.core.baseline import BaselineCalibrator, CalibratorConfig
from sndchk.core.comparator import DeltaDetector
from sndchk.core.devices import DeviceDiscovery
from sndchk.core.monitor import SoundMonitor
from sndchk.core.sample_store import SampleStore
from sndchk.core.sources import FreeBSDCounterSource

__all__ = [
    "BaselineCalibrator",
    "CalibratorConfig",
    "DeltaDetector",
    "DeviceDiscovery",
    "FreeBSDCounterSource",
    "Reporter",
    "SampleStore",
    "SoundMonitor",
]
