"""
Tests for the data point catalog.

CHANGELOG:
- 2026-03-02: Initial creation (STORY-101)

TODO:
- None
"""

from __future__ import annotations

import pytest
from collector.src.datapoints import (
    ALL_DATAPOINTS,
    BASE_CATALOG,
    POWER_FLOW_CATALOG,
    DataPointDefinition,
    active_catalog,
)


class TestCatalogs:
    """Catalog shape and gating."""

    def test_keys_are_unique(self) -> None:
        keys = [dp.key for dp in (*BASE_CATALOG, *POWER_FLOW_CATALOG)]

        assert len(keys) == len(set(keys)) == len(ALL_DATAPOINTS)

    def test_all_entries_read_only(self) -> None:
        assert all(dp.read_only for dp in ALL_DATAPOINTS.values())

    def test_active_catalog_without_power_flow(self) -> None:
        assert active_catalog(False) == list(BASE_CATALOG)

    def test_active_catalog_with_power_flow(self) -> None:
        assert active_catalog(True) == [*BASE_CATALOG, *POWER_FLOW_CATALOG]

    def test_overview_units(self) -> None:
        assert ALL_DATAPOINTS["currentPower"].unit == "W"
        assert ALL_DATAPOINTS["lifeTimeData"].unit == "Wh"

    def test_power_flow_units(self) -> None:
        assert ALL_DATAPOINTS["gridPowerFlow"].unit == "kW"
        assert ALL_DATAPOINTS["batteryChargeLevel"].unit == "%"

    def test_derived_flags_are_boolean(self) -> None:
        assert ALL_DATAPOINTS["feedToGrid"].value_type == "boolean"
        assert ALL_DATAPOINTS["feedToBattery"].value_type == "boolean"


class TestDataPointDefinition:
    """Definition validation and rendering."""

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError, match="unsupported value type"):
            DataPointDefinition(key="x", value_type="object")

    def test_name_defaults_to_key(self) -> None:
        assert DataPointDefinition(key="x", value_type="number").name == "x"

    def test_to_common_omits_empty_unit(self) -> None:
        common = ALL_DATAPOINTS["lastUpdateTime"].to_common()

        assert "unit" not in common
        assert common == {
            "name": "lastUpdateTime",
            "type": "string",
            "role": "date",
            "read": True,
            "write": False,
            "desc": "Last update from inverter",
        }
