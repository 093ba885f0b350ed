#!/usr/bin/env python3
"""
sndchk - CLI entry point.

Real-time audio diagnostics for FreeBSD: buffer xruns, USB transfer
errors and USB controller IRQ spikes. Exposed as the 'sndchk' console
command via pyproject.toml.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Optional

from rich import box
from rich.console import Console
from rich.table import Table


def setup_logging(verbose: bool = False) -> None:
    """Configure logging to stderr; report lines go to stdout."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Config overrides from command-line flags; None means not given."""
    categories = None
    if getattr(args, "xruns_only", False):
        categories = ["xruns"]
    elif getattr(args, "usb_only", False):
        categories = ["usb"]
    return {
        "device": getattr(args, "device", None),
        "interval": getattr(args, "interval", None),
        "threshold_multiplier": getattr(args, "threshold", None),
        "playback_only": True if getattr(args, "playback_only", False) else None,
        "categories": categories,
    }


def get_config(args: argparse.Namespace) -> dict:
    """Load config from file and apply command-line overrides."""
    from sndchk.core.config_loader import load_config

    config_path = Path(args.config)
    if not config_path.is_absolute():
        config_path = Path.cwd() / config_path
    return load_config(config_path.resolve(), overrides=_overrides(args))


def render_devices(devices: list, console: Optional[Console] = None) -> None:
    """Print the device list as a table."""
    console = console or Console()
    if not devices:
        console.print("No audio devices found.")
        return
    table = Table(title="Available audio devices", box=box.SIMPLE, title_justify="left")
    table.add_column("Device", style="bold")
    table.add_column("Default")
    table.add_column("USB")
    table.add_column("Controller")
    table.add_column("Description")
    for dev in devices:
        table.add_row(
            dev.name,
            "yes" if dev.is_default else "",
            f"ugen{dev.ugen}" if dev.is_usb else "",
            f"{dev.controller} ({dev.irq})" if dev.controller and dev.irq else (dev.controller or ""),
            dev.desc,
        )
    console.print(table)


def cmd_list(parser: argparse.ArgumentParser) -> int:
    """List devices, then show help."""
    from sndchk.core.devices import DeviceDiscovery

    try:
        devices = DeviceDiscovery().discover()
    except KeyboardInterrupt:
        return 130
    render_devices(devices)
    parser.print_help()
    return 0


def cmd_watch(config: dict) -> int:
    """Resolve the target device and run the monitoring loop until interrupted."""
    from sndchk.core.alerts import Reporter
    from sndchk.core.commands import CommandRunner
    from sndchk.core.config_loader import enabled_categories
    from sndchk.core.devices import DeviceDiscovery, find_device
    from sndchk.core.errors import EntityNotFound
    from sndchk.core.models import Category, Severity
    from sndchk.core.monitor import SoundMonitor
    from sndchk.core.sources import FreeBSDCounterSource

    log = logging.getLogger(__name__)
    shutdown = {"stop": False}

    def stop_event() -> bool:
        return shutdown["stop"]

    def on_signal(_signum, _frame) -> None:
        shutdown["stop"] = True

    # before discovery: sysctl / vmstat calls block
    signal.signal(signal.SIGINT, on_signal)
    signal.signal(signal.SIGTERM, on_signal)

    runner = CommandRunner(timeout=config["acquisition_timeout_seconds"])
    discovery = DeviceDiscovery(runner=runner)
    devices = discovery.discover()
    if stop_event():
        log.info("Interrupted during device discovery")
        return 0
    unit = config["device"] if config["device"] is not None else discovery.default_unit()
    try:
        device = find_device(devices, unit)
    except EntityNotFound as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    categories = enabled_categories(config)
    if Category.USB in categories and not device.is_usb:
        print(f"Warning: Could not find USB device for {device.name}", file=sys.stderr)
        print("USB monitoring disabled.", file=sys.stderr)
        categories = [c for c in categories if c not in (Category.USB, Category.IRQ)]
    if Category.IRQ in categories and not device.irq:
        log.warning("No interrupt line found for %s; IRQ monitoring disabled", device.controller)
        categories.remove(Category.IRQ)
    if not categories:
        log.error("Nothing left to monitor on %s", device.name)
        return 1

    source = FreeBSDCounterSource(device, runner=runner, play_only=config["playback_only"])
    reporter = Reporter(
        color=config["color"],
        min_severity=Severity(config["min_severity"]),
        interval=config["interval"],
    )
    monitor = SoundMonitor(
        config,
        device,
        source,
        reporter=reporter,
        stop_event=stop_event,
        categories=categories,
    )
    monitor.run()
    return 0


def _add_common_args(parser: argparse.ArgumentParser, default_config: Any, default_verbose: Any = False) -> None:
    """
    Add --config and -v. Subcommands pass argparse.SUPPRESS so a value given
    before the subcommand is not overwritten by the subparser's default.
    """
    parser.add_argument(
        "--config",
        type=str,
        default=default_config,
        help="Path to config.yaml (default: package config; use CWD-relative or absolute)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=default_verbose, help="Verbose logging")


def build_parser() -> argparse.ArgumentParser:
    from sndchk.core.config_loader import DEFAULT_CONFIG_PATH

    default_config = str(DEFAULT_CONFIG_PATH)
    parser = argparse.ArgumentParser(
        prog="sndchk",
        description="Real-time audio diagnostics for FreeBSD - xruns, USB transfer errors and IRQ spikes.",
        epilog="Without a command, lists available devices and exits.",
    )
    _add_common_args(parser, default_config)
    sub = parser.add_subparsers(dest="command")

    p_list = sub.add_parser("list", help="List available audio devices")
    _add_common_args(p_list, argparse.SUPPRESS, argparse.SUPPRESS)

    p_watch = sub.add_parser("watch", help="Start monitoring a device")
    _add_common_args(p_watch, argparse.SUPPRESS, argparse.SUPPRESS)
    p_watch.add_argument("-d", "--device", type=int, metavar="N", help="Monitor device pcmN (default: system default)")
    p_watch.add_argument(
        "-p", "--playback-only", action="store_true", dest="playback_only", help="Show only playback channels"
    )
    only = p_watch.add_mutually_exclusive_group()
    only.add_argument(
        "--xruns-only", action="store_true", dest="xruns_only",
        help="Show only xruns (no USB errors, no IRQ monitoring)",
    )
    only.add_argument(
        "--usb-only", action="store_true", dest="usb_only",
        help="Show only USB errors and IRQ monitoring (no xruns)",
    )
    p_watch.add_argument("-i", "--interval", type=float, metavar="SEC", help="Interval in seconds (default: 1)")
    p_watch.add_argument(
        "-t", "--threshold", type=float, metavar="N", help="IRQ spike threshold multiplier (default: 1.5)"
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """CLI logic."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose)

    if args.command in (None, "list"):
        return cmd_list(parser)

    from sndchk.core.errors import ConfigurationInvalid

    try:
        config = get_config(args)
    except FileNotFoundError as e:
        logging.getLogger(__name__).error("%s", e)
        return 1
    except ConfigurationInvalid as e:
        logging.getLogger(__name__).error("Invalid configuration: %s", e)
        parser.print_usage(sys.stderr)
        return 1

    return cmd_watch(config)


def cli() -> None:
    """Entry point for the sndchk console command."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
