"""
One-time schedule self-adjustment.

The scheduler starts every collector instance with the same default cron
expression, so all installations would hit the monitoring API in the same
second. On the first run that still finds the unmodified default, the
instance rewrites its own schedule with a random seconds offset
(``"{0-59} */15 * * * *"``). Any other schedule, including an already
adjusted one, is left untouched.

CHANGELOG:
- 2026-03-05: Initial creation (STORY-110)

TODO:
- None
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from collector.src.errors import StoreError

if TYPE_CHECKING:
    from collector.src.store import StateStore

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULE = "*/15 * * * *"


def spread_schedule(seconds: int) -> str:
    """Return the default schedule with a fixed seconds field."""
    return f"{seconds} {DEFAULT_SCHEDULE}"


async def adjust_schedule(
    store: StateStore,
    rng: random.Random | None = None,
) -> bool:
    """Replace the default schedule with a randomly offset one.

    Store failures are logged and swallowed: the adjustment is retried on
    the next run.

    Args:
        store: State store holding this instance's metadata.
        rng: Random source for the seconds offset (module ``random`` if
            not given).

    Returns:
        ``True`` if the schedule was rewritten.
    """
    try:
        meta = await store.read_instance_metadata()
        common = meta.get("common") or {}
        if common.get("schedule") != DEFAULT_SCHEDULE:
            return False

        seconds = (rng or random).randint(0, 59)
        common["schedule"] = spread_schedule(seconds)
        meta["common"] = common
        await store.write_instance_metadata(meta)
    except StoreError as exc:
        logger.error("Could not check or adjust the schedule: %s", exc)
        return False

    logger.info("Default schedule found and adjusted to spread calls better over the minute")
    return True
