"""
SolarEdge monitoring collector package.

Polls the SolarEdge cloud monitoring API for one site's energy overview and
power-flow topology, reconciles the data point schema in the state store,
and publishes the values. Runs once per scheduler invocation.

CHANGELOG:
- 2026-03-02: Initial creation (STORY-101)

TODO:
- None
"""
