"""
Power-flow topology interpreter.

Turns a ``currentPowerFlow.json`` payload into a :class:`PowerFlowGraph`
and maps it onto power-flow catalog values:

1. Node names (``GRID``, ``LOAD``, ``PV``, ``STORAGE``) and connection
   endpoints are upper-cased once, when the graph is built. The API mixes
   ``"LOAD"`` node keys with ``"Load"`` / ``"load"`` edge labels.
2. One scan over the connection edges derives the directional flags:
   ``feedToGrid`` iff there is an edge LOAD -> GRID, ``feedToBattery`` iff
   there is an edge LOAD -> STORAGE.
3. Raw node readings pass through unchanged, in the unit reported by the
   endpoint. Absent nodes contribute defaults (power 0, status
   ``"unknown"``, charge level 0, not critical).

A payload without the ``siteCurrentPowerFlow`` object means "no update this
cycle" and yields no graph.

CHANGELOG:
- 2026-03-09: Treat null nodes as absent
- 2026-03-04: Pass through STORAGE critical flag
- 2026-03-03: Initial creation (STORY-108)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from collector.src.errors import MalformedResponseError
from collector.src.models import (
    Connection,
    DerivedSignals,
    PowerFlowGraph,
    PowerFlowNode,
)

logger = logging.getLogger(__name__)

GRID = "GRID"
LOAD = "LOAD"
PV = "PV"
STORAGE = "STORAGE"

NODE_NAMES: frozenset[str] = frozenset({GRID, LOAD, PV, STORAGE})

DEFAULT_UNIT = "kW"


# ---------------------------------------------------------------------------
# Graph construction
# ---------------------------------------------------------------------------


def _parse_node(name: str, raw: Any) -> PowerFlowNode:
    """Parse one node object; null fields fall back to the node defaults."""
    if not isinstance(raw, dict):
        raise MalformedResponseError(f"node {name} is not an object")
    fields = {k: v for k, v in raw.items() if v is not None}
    try:
        return PowerFlowNode.model_validate(fields)
    except ValidationError as exc:
        raise MalformedResponseError(f"node {name} is malformed: {exc}") from exc


def _parse_connections(raw: Any) -> list[Connection]:
    """Parse the connection list, upper-casing both endpoints."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedResponseError("connections is not a list")

    connections: list[Connection] = []
    for edge in raw:
        src = edge.get("from") if isinstance(edge, dict) else None
        dst = edge.get("to") if isinstance(edge, dict) else None
        if not isinstance(src, str) or not isinstance(dst, str):
            logger.warning("Skipping malformed power-flow connection: %r", edge)
            continue
        connections.append(Connection(from_node=src.upper(), to_node=dst.upper()))
    return connections


def build_graph(payload: dict[str, Any]) -> PowerFlowGraph | None:
    """Build the normalised power-flow graph from an API payload.

    Args:
        payload: Decoded ``currentPowerFlow.json`` body.

    Returns:
        The graph, or ``None`` when the payload has no
        ``siteCurrentPowerFlow`` object.

    Raises:
        MalformedResponseError: If a node or the connection list has the
            wrong shape.
    """
    flow = payload.get("siteCurrentPowerFlow")
    if not isinstance(flow, dict):
        return None

    nodes: dict[str, PowerFlowNode] = {}
    for raw_name, raw_node in flow.items():
        name = raw_name.upper()
        # A null node is an absent node.
        if name in NODE_NAMES and raw_node is not None:
            nodes[name] = _parse_node(name, raw_node)

    unit = flow.get("unit")
    return PowerFlowGraph(
        unit=unit if isinstance(unit, str) and unit else DEFAULT_UNIT,
        nodes=nodes,
        connections=_parse_connections(flow.get("connections")),
    )


# ---------------------------------------------------------------------------
# Interpretation
# ---------------------------------------------------------------------------


def derive_signals(connections: Iterable[Connection]) -> DerivedSignals:
    """Derive the directional flags with a single scan over the edges.

    Endpoints are compared case-insensitively.
    """
    feed_to_grid = False
    feed_to_battery = False
    for edge in connections:
        if edge.from_node.upper() != LOAD:
            continue
        target = edge.to_node.upper()
        if target == GRID:
            feed_to_grid = True
        elif target == STORAGE:
            feed_to_battery = True
    return DerivedSignals(feed_to_grid=feed_to_grid, feed_to_battery=feed_to_battery)


def interpret(graph: PowerFlowGraph) -> dict[str, Any]:
    """Map a power-flow graph onto power-flow catalog values.

    Args:
        graph: Normalised graph from :func:`build_graph`.

    Returns:
        Mapping of data point key to value, in catalog order.
    """
    grid = graph.node(GRID)
    load = graph.node(LOAD)
    pv = graph.node(PV)
    storage = graph.node(STORAGE)
    signals = derive_signals(graph.connections)

    return {
        "gridPowerFlow": grid.current_power,
        "housePowerFlow": load.current_power,
        "pvPowerFlow": pv.current_power,
        "pvStatus": pv.status,
        "powerUnit": graph.unit,
        "batteryStatus": storage.status,
        "batteryPowerFlow": storage.current_power,
        "batteryChargeLevel": storage.charge_level,
        "batteryCritical": storage.critical,
        "feedToGrid": signals.feed_to_grid,
        "feedToBattery": signals.feed_to_battery,
    }
