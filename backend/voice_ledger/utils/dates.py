from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from voice_ledger.core.config import get_settings
from voice_ledger.schemas.transaction import DATE_FORMAT

logger = logging.getLogger(__name__)


def local_tz() -> tzinfo | None:
    """Configured ``LOCAL_TIMEZONE`` or ``None`` for the process's own zone."""
    name = (get_settings().local_timezone or "").strip()
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown LOCAL_TIMEZONE %r – using system local time", name)
        return None


def today(now: Callable[[], datetime] | None = None, tz: tzinfo | None = None) -> str:
    """Return today's local calendar date as ``YYYY-MM-DD``.

    ``now`` is a clock returning an aware or naive datetime; naive values are
    taken as already local. ``tz`` overrides the configured zone.
    """
    zone = tz if tz is not None else local_tz()
    if now is None:
        current = datetime.now(zone) if zone is not None else datetime.now().astimezone()
    else:
        current = now()
        if current.tzinfo is not None:
            current = current.astimezone(zone) if zone is not None else current.astimezone()
    return current.strftime(DATE_FORMAT)
