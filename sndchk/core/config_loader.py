"""
sndchk - Configuration loader.

Loads config.yaml, applies defaults and command-line overrides, and
validates the values the monitor consumes.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from sndchk.core.baseline import DEFAULT_CALIBRATION_WINDOW, DEFAULT_THRESHOLD_MULTIPLIER
from sndchk.core.commands import DEFAULT_TIMEOUT_SECONDS
from sndchk.core.errors import ConfigurationInvalid
from sndchk.core.models import Category, Severity

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "config.yaml"

# Selectable on the command line / in config; usb implies irq
_SELECTABLE = {Category.XRUNS.value, Category.USB.value}


def _require_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationInvalid(f"{name} must be true or false (got {value!r})")
    return value


def _require_int(value: Any, name: str) -> int:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationInvalid(f"{name} must be an integer (got {value!r})")
    return value


def load_config(config_path: Path, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    """
    Load YAML config and merge overrides (None values are ignored).

    Args:
        config_path: Path to config.yaml.
        overrides: Values from the command line, keyed like the returned dict.

    Returns:
        Flat config dict with defaults applied and values validated.
    """
    path = Path(config_path).resolve()
    if not path.is_file():
        raise FileNotFoundError(f"Config not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigurationInvalid(f"{path}: top level must be a mapping")

    monitoring = raw.get("monitoring") or {}
    irq_raw = raw.get("irq") or {}
    alerts_raw = raw.get("alerts") or {}

    try:
        device = monitoring.get("device")
        config: dict[str, Any] = {
            "device": _require_int(device, "device") if device is not None else None,
            "interval": float(monitoring.get("interval", 1)),
            "playback_only": _require_bool(monitoring.get("playback_only", False), "playback_only"),
            "categories": [str(c).lower() for c in monitoring.get("categories", ["xruns", "usb"])],
            "acquisition_timeout_seconds": float(
                monitoring.get("acquisition_timeout_seconds", DEFAULT_TIMEOUT_SECONDS)
            ),
            "threshold_multiplier": float(irq_raw.get("threshold_multiplier", DEFAULT_THRESHOLD_MULTIPLIER)),
            "calibration_window": _require_int(
                irq_raw.get("calibration_window", DEFAULT_CALIBRATION_WINDOW), "calibration_window"
            ),
            "color": _require_bool(alerts_raw.get("color", True), "color"),
            "min_severity": str(alerts_raw.get("min_severity", "INFO")).upper(),
        }
    except (TypeError, ValueError) as e:
        raise ConfigurationInvalid(f"{path}: {e}") from e

    for key, value in (overrides or {}).items():
        if value is not None:
            config[key] = value

    validate_config(config)
    logger.debug("Loaded config from %s: %s", path, config)
    return config


def validate_config(config: dict[str, Any]) -> None:
    """Raise ConfigurationInvalid for out-of-range or unknown values."""
    if config["interval"] <= 0:
        raise ConfigurationInvalid(f"interval must be positive (got {config['interval']})")
    if config["threshold_multiplier"] <= 0:
        raise ConfigurationInvalid(
            f"threshold multiplier must be positive (got {config['threshold_multiplier']})"
        )
    if config["calibration_window"] <= 0:
        raise ConfigurationInvalid(
            f"calibration_window must be a positive integer (got {config['calibration_window']})"
        )
    if config["acquisition_timeout_seconds"] <= 0:
        raise ConfigurationInvalid("acquisition_timeout_seconds must be positive")
    if config["device"] is not None and config["device"] < 0:
        raise ConfigurationInvalid(f"device unit must be >= 0 (got {config['device']})")
    categories = config["categories"]
    unknown = [c for c in categories if c not in _SELECTABLE]
    if unknown:
        raise ConfigurationInvalid(f"unknown categories: {', '.join(unknown)}")
    if not categories:
        raise ConfigurationInvalid("at least one category must be enabled")
    try:
        Severity(config["min_severity"])
    except ValueError:
        raise ConfigurationInvalid(f"unknown min_severity: {config['min_severity']}")


def enabled_categories(config: dict[str, Any]) -> list[Category]:
    """Categories to sample, in tick order. usb brings irq with it."""
    selected = set(config["categories"])
    result = []
    if Category.XRUNS.value in selected:
        result.append(Category.XRUNS)
    if Category.USB.value in selected:
        result.extend([Category.USB, Category.IRQ])
    return result
