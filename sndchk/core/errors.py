"""
sndchk - Error types.
"""

from typing import Optional

from sndchk.core.models import Category


class SndchkError(Exception):
    """Base class for sndchk errors."""


class SourceUnavailable(SndchkError):
    """A counter source could not produce a sample set this tick."""

    def __init__(self, category: Optional[Category], reason: str) -> None:
        self.category = category
        self.reason = reason
        label = category.value if category is not None else "source"
        super().__init__(f"{label}: {reason}")


class EntityNotFound(SndchkError):
    """The requested device does not exist among discovered devices."""


class ConfigurationInvalid(SndchkError):
    """Configuration values are out of range or inconsistent."""
