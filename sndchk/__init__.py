"""sndchk - Real-time audio diagnostics for FreeBSD."""

__version__ = "1.0.0"
