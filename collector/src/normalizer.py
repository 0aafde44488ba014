"""
Pure normalizer that maps an ``overview.json`` payload onto data point values.

Values pass through unchanged: the overview endpoint reports power in W and
energy in Wh, matching the units declared in the base catalog.

This is a pure function module: no side effects, no I/O, no clock.

CHANGELOG:
- 2026-03-03: Initial creation (STORY-107)

TODO:
- None
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from collector.src.errors import MalformedResponseError
from collector.src.models import SiteOverview


# ---------------------------------------------------------------------------
# Mapping from SiteOverview field name to the (object, field) path inside
# the ``overview`` object of the payload.
# ---------------------------------------------------------------------------

_ENERGY_PATHS: dict[str, tuple[str, str]] = {
    "current_power": ("currentPower", "power"),
    "life_time_energy": ("lifeTimeData", "energy"),
    "last_year_energy": ("lastYearData", "energy"),
    "last_month_energy": ("lastMonthData", "energy"),
    "last_day_energy": ("lastDayData", "energy"),
}


def _nested(overview: dict[str, Any], obj: str, field: str) -> Any:
    """Return ``overview[obj][field]`` or raise MalformedResponseError."""
    container = overview.get(obj)
    if not isinstance(container, dict) or container.get(field) is None:
        raise MalformedResponseError(f"overview.{obj}.{field} missing")
    return container[field]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_overview(payload: dict[str, Any]) -> SiteOverview:
    """Parse the ``overview.json`` payload into a SiteOverview.

    Raises:
        MalformedResponseError: If the ``overview`` object or any required
            nested field is absent.
    """
    overview = payload.get("overview")
    if not isinstance(overview, dict):
        raise MalformedResponseError("response has no 'overview' object")

    last_update_time = overview.get("lastUpdateTime")
    if last_update_time is None:
        raise MalformedResponseError("overview.lastUpdateTime missing")

    fields = {
        name: _nested(overview, obj, field)
        for name, (obj, field) in _ENERGY_PATHS.items()
    }
    try:
        return SiteOverview(last_update_time=str(last_update_time), **fields)
    except ValidationError as exc:
        raise MalformedResponseError(f"overview has non-numeric values: {exc}") from exc


def overview_values(overview: SiteOverview) -> dict[str, Any]:
    """Map a SiteOverview onto base catalog keys."""
    return {
        "lastUpdateTime": overview.last_update_time,
        "currentPower": overview.current_power,
        "lifeTimeData": overview.life_time_energy,
        "lastYearData": overview.last_year_energy,
        "lastMonthData": overview.last_month_energy,
        "lastDayData": overview.last_day_energy,
    }
