"""
Value publisher with change suppression.

Every value is compared with the stored one before writing; identical values
(same JSON encoding) are not written again, so the store's change log only
records real changes. All values are acknowledged (``ack=True``): they report
externally sourced truth, never commands.

CHANGELOG:
- 2026-03-04: Initial creation (STORY-109)

TODO:
- None
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collector.src.store import StateStore

logger = logging.getLogger(__name__)


def _encode(value: Any) -> str:
    """Canonical encoding used for change detection."""
    return json.dumps(value, sort_keys=True)


class Publisher:
    """Writes data point values of one site, skipping unchanged values.

    Args:
        store: State store to read from and write to.
        site_id: Site whose data points are written.
    """

    def __init__(self, store: StateStore, site_id: str) -> None:
        self._store = store
        self._site_id = site_id

    async def publish_if_changed(self, key: str, value: Any, ack: bool = True) -> bool:
        """Write *value* unless the stored value is identical.

        Returns:
            ``True`` if a write happened, ``False`` if it was suppressed.
        """
        current = await self._store.read_value(self._site_id, key)
        if current is not None and _encode(current) == _encode(value):
            logger.debug("Data point %s unchanged (%r), skipping write", key, value)
            return False

        await self._store.write_value(self._site_id, key, value, ack)
        logger.debug("Data point %s updated: %r -> %r", key, current, value)
        return True

    async def publish_all(self, values: Mapping[str, Any]) -> int:
        """Publish every value in insertion order.

        Returns:
            Number of values actually written.
        """
        written = 0
        for key, value in values.items():
            if await self.publish_if_changed(key, value):
                written += 1
        logger.info(
            "Published %d changed of %d values for site %s",
            written,
            len(values),
            self._site_id,
        )
        return written
