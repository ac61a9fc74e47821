"""Wall-clock access for derived timestamps.

Every "now" in polydata goes through :func:`now` so tests can pin time.
"""

from __future__ import annotations

from datetime import UTC, datetime

from polydata.config.settings import get_settings


def now() -> datetime:
    """Current time, aware UTC unless ``utc_timestamps`` is disabled."""
    if get_settings().utc_timestamps:
        return datetime.now(UTC)
    return datetime.now()
