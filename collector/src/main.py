"""
Run-once entrypoint of the SolarEdge monitoring collector.

Each invocation is a single linear pass, triggered by an external scheduler:

1. Validate credentials (abort before any I/O when missing).
2. Reconcile the data point schema in the state store.
3. Fetch ``overview.json`` and publish the overview values.
4. If the power-flow feature is enabled, fetch ``currentPowerFlow.json``,
   interpret the topology and publish the power-flow values.
5. Adjust the instance's own schedule (always attempted), then exit.

Failures are isolated per branch: a transport error on the power-flow fetch
leaves the already published overview values in place, and a transport error
on the overview fetch skips publication for the whole run. Neither is fatal;
the next scheduled run retries. Schema failures abort the run with a
non-zero exit code.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-03-09: Keep httpx request lines (full URL with api_key) out of the logs
- 2026-03-06: Isolate power-flow transport errors from overview publication
- 2026-03-05: Replace daemon loops with a single run-once pass (STORY-111)
- 2026-03-02: Initial creation (STORY-101)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from collector.src.client import mask_api_key
from collector.src.errors import (
    ConfigurationError,
    MalformedResponseError,
    SchemaError,
    StoreError,
    TransportError,
)
from collector.src.normalizer import overview_values, parse_overview
from collector.src.publisher import Publisher
from collector.src.reconciler import reconcile
from collector.src.schedule import adjust_schedule
from collector.src.topology import build_graph, interpret

if TYPE_CHECKING:
    from collector.src.client import MonitoringClient
    from collector.src.config import CollectorSettings
    from collector.src.store import StateStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2

_QUIET_LOGGERS = ("httpx", "httpcore")


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging for the collector.

    Sets up the root logger with a JSON-formatted handler writing to stderr.
    The HTTP client libraries are capped at WARNING: their INFO request
    lines carry the full URL, api_key query parameter included.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Startup config logging
# ---------------------------------------------------------------------------


def log_config_summary(settings: object) -> None:
    """Log a config summary at startup, excluding secrets.

    The API key is reduced to its first four characters.

    Args:
        settings: A CollectorSettings instance (or any object with the
            same attrs).
    """
    logger.info(
        "Collector starting with config: "
        "site_id=%s, enable_power_flow=%s, api_base_url=%s, "
        "request_timeout_s=%s, instance_namespace=%s, api_key=%s",
        settings.site_id,  # type: ignore[attr-defined]
        settings.enable_power_flow,  # type: ignore[attr-defined]
        settings.api_base_url,  # type: ignore[attr-defined]
        settings.request_timeout_s,  # type: ignore[attr-defined]
        settings.instance_namespace,  # type: ignore[attr-defined]
        mask_api_key(settings.api_key),  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Run result
# ---------------------------------------------------------------------------


@dataclass
class RunResult:
    """Outcome of one collector run.

    Attributes:
        declared: Number of data point declarations made.
        overview_published: Number of overview values written.
        power_flow_published: Number of power-flow values written.
        errors: Names of the error classes encountered.
        exit_code: Process exit code for the host scheduler.
    """

    declared: int = 0
    overview_published: int = 0
    power_flow_published: int = 0
    errors: list[str] = field(default_factory=list)
    exit_code: int = EXIT_OK


# ---------------------------------------------------------------------------
# Fetch branches (easily testable)
# ---------------------------------------------------------------------------


async def _overview_branch(
    client: MonitoringClient,
    result: RunResult,
) -> dict[str, Any] | None:
    """Fetch and map the overview.

    Returns:
        The values to publish (empty when the response was malformed), or
        ``None`` when the fetch failed and nothing must be published this
        run.
    """
    try:
        payload = await client.fetch_overview()
    except TransportError as exc:
        logger.error("Cannot read overview from SolarEdge cloud: %s", exc)
        result.errors.append(type(exc).__name__)
        return None

    try:
        overview = parse_overview(payload)
    except MalformedResponseError as exc:
        logger.warning("Overview response has no valid content, nothing to publish: %s", exc)
        result.errors.append(type(exc).__name__)
        return {}

    logger.debug("Current power: %s W", overview.current_power)
    return overview_values(overview)


async def _power_flow_branch(
    client: MonitoringClient,
    result: RunResult,
) -> dict[str, Any]:
    """Fetch and interpret the power-flow graph.

    Returns:
        The values to publish; empty when the fetch failed or there was
        nothing to update.
    """
    try:
        payload = await client.fetch_power_flow()
    except TransportError as exc:
        logger.error("Cannot read power flow from SolarEdge cloud: %s", exc)
        result.errors.append(type(exc).__name__)
        return {}

    try:
        graph = build_graph(payload)
    except MalformedResponseError as exc:
        logger.warning("Power flow response has no valid content, nothing to publish: %s", exc)
        result.errors.append(type(exc).__name__)
        return {}

    if graph is None:
        logger.warning("Power flow response has no siteCurrentPowerFlow object")
        return {}
    return interpret(graph)


# ---------------------------------------------------------------------------
# Single run
# ---------------------------------------------------------------------------


async def run_once(
    settings: CollectorSettings,
    *,
    client: MonitoringClient,
    store: StateStore,
    rng: random.Random | None = None,
) -> RunResult:
    """Execute one full collector pass.

    Args:
        settings: Collector configuration.
        client: Opened monitoring API client.
        store: State store for schema, values and instance metadata.
        rng: Random source for the schedule adjustment.

    Returns:
        The run's outcome, including the exit code.
    """
    result = RunResult()
    try:
        settings.require_credentials()
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        result.errors.append(type(exc).__name__)
        result.exit_code = EXIT_CONFIG
        return result

    site = settings.site_context()
    publisher = Publisher(store, site.site_id)

    try:
        result.declared = await reconcile(store, site)

        values = await _overview_branch(client, result)
        if values is None:
            logger.warning("Skipping publication for this run")
        else:
            if values:
                result.overview_published = await publisher.publish_all(values)
            if site.has_power_flow_feature:
                flow_values = await _power_flow_branch(client, result)
                if flow_values:
                    result.power_flow_published = await publisher.publish_all(flow_values)
    except SchemaError as exc:
        logger.error("Schema reconciliation failed, aborting run: %s", exc, exc_info=True)
        result.errors.append(type(exc).__name__)
        result.exit_code = EXIT_FAILURE
    except StoreError as exc:
        logger.error("Publishing to the state store failed: %s", exc, exc_info=True)
        result.errors.append(type(exc).__name__)
        result.exit_code = EXIT_FAILURE
    finally:
        logger.debug("Done, adjusting schedule and stopping")
        await adjust_schedule(store, rng)

    return result


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> int:
    """Async entrypoint: load config, build components, run once.

    Returns:
        Process exit code.
    """
    from collector.src.client import MonitoringClient
    from collector.src.config import CollectorSettings
    from collector.src.store import RedisStateStore

    configure_logging()
    try:
        settings = CollectorSettings()
    except ValidationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG

    configure_logging(settings.log_level)
    log_config_summary(settings)

    store = RedisStateStore.from_url(settings.redis_url, settings.instance_namespace)
    try:
        async with MonitoringClient(
            settings.api_base_url,
            settings.site_id,
            settings.api_key,
            timeout_s=settings.request_timeout_s,
        ) as client:
            result = await run_once(settings, client=client, store=store)
    finally:
        await store.aclose()

    logger.info(
        "Run finished: declared=%d overview_published=%d "
        "power_flow_published=%d errors=%s exit_code=%d",
        result.declared,
        result.overview_published,
        result.power_flow_published,
        result.errors,
        result.exit_code,
    )
    return result.exit_code


def main() -> None:
    """Synchronous entrypoint for the collector."""
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
