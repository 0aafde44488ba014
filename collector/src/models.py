"""
Pydantic models for the collector's runtime entities.

- SiteContext: identity of the monitored site for one run.
- SiteOverview: parsed ``overview.json`` payload.
- PowerFlowNode / Connection / PowerFlowGraph: parsed ``currentPowerFlow.json``
  payload, with node names and connection endpoints upper-cased.
- DerivedSignals: directional flags computed from the connection set.

Every model is built fresh per invocation and discarded at exit.

CHANGELOG:
- 2026-03-04: Add critical flag to PowerFlowNode
- 2026-03-02: Initial creation (STORY-102)

TODO:
- None
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_STATUS = "unknown"

ExistenceLedger = dict[str, bool]
"""Per catalog key: whether the data point is already declared in the store."""


class SiteContext(BaseModel):
    """Identity of the monitored site, read-only for the run's duration.

    Attributes:
        site_id: SolarEdge site identifier.
        has_power_flow_feature: Whether power-flow data points are active.
    """

    model_config = ConfigDict(frozen=True)

    site_id: str
    has_power_flow_feature: bool = False


class SiteOverview(BaseModel):
    """Energy overview of a site as reported by ``overview.json``.

    Attributes:
        last_update_time: Timestamp string of the last inverter update.
        current_power: Current production power in W.
        life_time_energy: Lifetime energy in Wh.
        last_year_energy: Energy produced this year in Wh.
        last_month_energy: Energy produced this month in Wh.
        last_day_energy: Energy produced today in Wh.
    """

    last_update_time: str
    current_power: float
    life_time_energy: float
    last_year_energy: float
    last_month_energy: float
    last_day_energy: float


class PowerFlowNode(BaseModel):
    """Reading of one node (GRID, LOAD, PV, STORAGE) in the power-flow graph.

    Absent nodes are represented by the defaults.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    current_power: float = Field(default=0, alias="currentPower")
    status: str = Field(default=UNKNOWN_STATUS)
    charge_level: float = Field(default=0, alias="chargeLevel")
    critical: bool = Field(default=False)


class Connection(BaseModel):
    """Directed power-flow edge between two nodes."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    from_node: str = Field(alias="from")
    to_node: str = Field(alias="to")


class PowerFlowGraph(BaseModel):
    """Snapshot of energy movement among grid, load, PV and storage.

    Node names and connection endpoints are upper case.

    Attributes:
        unit: Power unit reported by the endpoint (normally ``kW``).
        nodes: Mapping of node name to reading, for present nodes only.
        connections: Directed edges in API order.
    """

    unit: str = "kW"
    nodes: dict[str, PowerFlowNode] = Field(default_factory=dict)
    connections: list[Connection] = Field(default_factory=list)

    def node(self, name: str) -> PowerFlowNode:
        """Return the named node, or a default reading when absent."""
        return self.nodes.get(name.upper(), PowerFlowNode())


class DerivedSignals(BaseModel):
    """Directional flags derived from the connection set."""

    model_config = ConfigDict(frozen=True)

    feed_to_grid: bool = False
    feed_to_battery: bool = False
