"""
Schema reconciler: make sure every data point of the active catalog is
declared in the state store before values are written.

The existence ledger is rebuilt from the store on every run, so data points
deleted externally are re-created on the next run. When any entry is
missing, the whole active catalog is declared again (declare-all-if-any-
missing); declaration is idempotent and never resets a stored value. When
nothing is missing, no declare call is made.

Store failures surface as :class:`SchemaError` and abort the run; the next
scheduled invocation retries from scratch.

CHANGELOG:
- 2026-03-05: Wrap store failures in SchemaError
- 2026-03-03: Initial creation (STORY-106)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from collector.src.datapoints import DataPointDefinition, active_catalog
from collector.src.errors import SchemaError, StoreError

if TYPE_CHECKING:
    from collector.src.models import ExistenceLedger, SiteContext
    from collector.src.store import StateStore

logger = logging.getLogger(__name__)


async def build_ledger(
    store: StateStore,
    site: SiteContext,
    catalog: Sequence[DataPointDefinition],
) -> ExistenceLedger:
    """Check every catalog entry against the store, one lookup per entry.

    Raises:
        SchemaError: If an existence check fails.
    """
    ledger: ExistenceLedger = {}
    for definition in catalog:
        try:
            exists = await store.exists(site.site_id, definition.key)
        except StoreError as exc:
            raise SchemaError(
                f"existence check for '{definition.key}' failed"
            ) from exc
        if exists:
            logger.debug("Data point %s exists", definition.key)
        else:
            logger.info("Data point %s does not exist, will be created", definition.key)
        ledger[definition.key] = exists
    return ledger


async def reconcile(
    store: StateStore,
    site: SiteContext,
    catalog: Sequence[DataPointDefinition] | None = None,
) -> int:
    """Declare the active catalog when any of its entries is missing.

    Args:
        store: State store to check and declare against.
        site: Site identity and feature flags for this run.
        catalog: Explicit catalog; defaults to the site's active catalog
            (base entries, plus power-flow entries when enabled).

    Returns:
        Number of declare calls made (0 when every entry already exists).

    Raises:
        SchemaError: If an existence check or a declaration fails.
    """
    if catalog is None:
        catalog = active_catalog(site.has_power_flow_feature)

    ledger = await build_ledger(store, site, catalog)
    if all(ledger.values()):
        logger.debug("All %d data points exist, nothing to declare", len(ledger))
        return 0

    missing = sum(1 for exists in ledger.values() if not exists)
    logger.info(
        "%d of %d data points missing, declaring the full catalog",
        missing,
        len(ledger),
    )
    for definition in catalog:
        try:
            await store.declare(site.site_id, definition.key, definition)
        except StoreError as exc:
            raise SchemaError(f"declaring '{definition.key}' failed") from exc
    return len(catalog)
