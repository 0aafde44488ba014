"""
Data point catalog -- single source of truth for every value slot the
collector owns in the state store.

Each :class:`DataPointDefinition` describes one typed, read-only value slot
(key, value type, unit, semantic role). The base catalog covers the site
overview endpoint and is always active; the power-flow catalog covers the
``currentPowerFlow`` endpoint and is only active when the site has the
power-flow feature enabled.

Units are fixed attributes of the definition: the overview endpoint reports
``W`` / ``Wh``, the power-flow endpoint reports ``kW``. Values are never
converted.

CHANGELOG:
- 2026-03-04: Add batteryCritical (STORAGE ``critical`` flag)
- 2026-03-02: Initial creation (STORY-101)

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------

VALUE_TYPES: frozenset[str] = frozenset({"number", "string", "boolean"})


@dataclass(frozen=True, slots=True)
class DataPointDefinition:
    """Definition of a single data point in the state store.

    Attributes:
        key: Unique identifier within the site namespace (e.g.
            ``"currentPower"``).
        value_type: One of ``"number"``, ``"string"``, ``"boolean"``.
        unit: Engineering unit string (e.g. ``"W"``, ``"kWh"``, ``"%"``);
            empty when not applicable.
        role: Semantic role understood by consumers of the store.
        name: Human-readable label.
        description: Free-text description.
        read_only: Whether consumers may write the value. Always ``True``
            for data points owned by this collector.
    """

    key: str
    value_type: str
    unit: str = ""
    role: str = "state"
    name: str = ""
    description: str = ""
    read_only: bool = True

    def __post_init__(self) -> None:  # noqa: D105
        if self.value_type not in VALUE_TYPES:
            msg = (
                f"Data point '{self.key}': unsupported value type "
                f"'{self.value_type}'"
            )
            raise ValueError(msg)
        if not self.name:
            object.__setattr__(self, "name", self.key)

    def to_common(self) -> dict[str, Any]:
        """Render the definition as the store's object description."""
        common: dict[str, Any] = {
            "name": self.name,
            "type": self.value_type,
            "role": self.role,
            "read": True,
            "write": not self.read_only,
            "desc": self.description,
        }
        if self.unit:
            common["unit"] = self.unit
        return common


# ---------------------------------------------------------------------------
# Overview endpoint (always active)
# ---------------------------------------------------------------------------

BASE_CATALOG: tuple[DataPointDefinition, ...] = (
    DataPointDefinition(
        key="lastUpdateTime",
        value_type="string",
        role="date",
        description="Last update from inverter",
    ),
    DataPointDefinition(
        key="currentPower",
        value_type="number",
        unit="W",
        role="value.power",
        description="current power in W",
    ),
    DataPointDefinition(
        key="lifeTimeData",
        value_type="number",
        unit="Wh",
        role="value.energy.produced",
        description="Lifetime energy in Wh",
    ),
    DataPointDefinition(
        key="lastYearData",
        value_type="number",
        unit="Wh",
        role="value.energy.produced",
        description="last year energy in Wh",
    ),
    DataPointDefinition(
        key="lastMonthData",
        value_type="number",
        unit="Wh",
        role="value.energy.produced",
        description="last month energy in Wh",
    ),
    DataPointDefinition(
        key="lastDayData",
        value_type="number",
        unit="Wh",
        role="value.energy.produced",
        description="last day energy in Wh",
    ),
)

# ---------------------------------------------------------------------------
# Power-flow endpoint (only with the power-flow feature)
# ---------------------------------------------------------------------------

POWER_FLOW_CATALOG: tuple[DataPointDefinition, ...] = (
    DataPointDefinition(
        key="gridPowerFlow",
        value_type="number",
        unit="kW",
        role="value.power.consumed",
        name="Current flow: Grid",
        description="Current usage from energy grid",
    ),
    DataPointDefinition(
        key="housePowerFlow",
        value_type="number",
        unit="kW",
        role="value.power.consumed",
        name="Current flow: Load",
        description="Current total usage",
    ),
    DataPointDefinition(
        key="pvPowerFlow",
        value_type="number",
        unit="kW",
        role="value.power.produced",
        name="Current flow: PV",
        description="Current production from PV",
    ),
    DataPointDefinition(
        key="pvStatus",
        value_type="string",
        role="value.pv.status",
        name="Current status: PV",
        description="Current status of the PV array",
    ),
    DataPointDefinition(
        key="powerUnit",
        value_type="string",
        role="text",
        name="Power flow unit",
        description="Unit reported by the power flow endpoint",
    ),
    DataPointDefinition(
        key="batteryStatus",
        value_type="string",
        role="value.storage.status",
        name="Current status: Storage",
        description="Current status of the storage",
    ),
    DataPointDefinition(
        key="batteryPowerFlow",
        value_type="number",
        unit="kW",
        role="value.storage.produced",
        name="Current flow: Storage",
        description="Current production from storage",
    ),
    DataPointDefinition(
        key="batteryChargeLevel",
        value_type="number",
        unit="%",
        role="value.storage.charge-level",
        name="Current charge level: Storage",
        description="Current charge level of the storage",
    ),
    DataPointDefinition(
        key="batteryCritical",
        value_type="boolean",
        role="value.storage.critical",
        name="Current criticality: Storage",
        description="Current criticality of storage",
    ),
    DataPointDefinition(
        key="feedToGrid",
        value_type="boolean",
        role="indicator.feed.grid",
        name="Feeding grid",
        description="True while power flows from the house into the grid",
    ),
    DataPointDefinition(
        key="feedToBattery",
        value_type="boolean",
        role="indicator.feed.battery",
        name="Charging battery",
        description="True while power flows from the house into the storage",
    ),
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

ALL_DATAPOINTS: dict[str, DataPointDefinition] = {
    dp.key: dp for dp in (*BASE_CATALOG, *POWER_FLOW_CATALOG)
}
"""Flat lookup of every data point by key."""


def active_catalog(enable_power_flow: bool) -> list[DataPointDefinition]:
    """Return the catalog for a site, base entries first.

    Args:
        enable_power_flow: Whether the power-flow feature is enabled.

    Returns:
        The base catalog, followed by the power-flow catalog when enabled.
    """
    catalog = list(BASE_CATALOG)
    if enable_power_flow:
        catalog.extend(POWER_FLOW_CATALOG)
    return catalog
