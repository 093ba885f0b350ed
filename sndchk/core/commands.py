"""
sndchk - Host command execution.

Runs FreeBSD utilities (sndctl, usbconfig, vmstat, sysctl) with a timeout
and turns every failure mode into SourceUnavailable.
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from sndchk.core.errors import SourceUnavailable
from sndchk.core.models import Category

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


class CommandRunner:
    """Blocking subprocess runner; one call per acquisition."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.timeout = timeout

    def run(self, args: Sequence[str], category: Optional[Category] = None) -> str:
        """Run args and return stdout. Raises SourceUnavailable on any failure."""
        cmd = " ".join(args)
        try:
            proc = subprocess.run(
                list(args),
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning("Command timed out after %.1fs: %s", self.timeout, cmd)
            raise SourceUnavailable(category, f"{args[0]} timed out")
        except OSError as e:
            logger.debug("Command failed to start: %s (%s)", cmd, e)
            raise SourceUnavailable(category, f"{args[0]}: {e.strerror or e}")
        if proc.returncode != 0:
            logger.debug("Command exited %d: %s", proc.returncode, cmd)
            raise SourceUnavailable(category, f"{args[0]} exited with status {proc.returncode}")
        return proc.stdout

    def sysctl(self, name: str) -> Optional[str]:
        """Value of a sysctl string/int node, or None if it does not exist."""
        try:
            out = self.run(["sysctl", "-n", name])
        except SourceUnavailable:
            return None
        value = out.strip()
        return value or None

    def read_text(self, path: Path) -> str:
        try:
            return Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise SourceUnavailable(None, f"cannot read {path}: {e.strerror or e}")
