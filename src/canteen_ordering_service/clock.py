"""Clock capability injected into the services.

Domain code never reads wall-clock time directly; services receive a
``Clock`` and pass ``now`` down to model mutators.
"""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)
