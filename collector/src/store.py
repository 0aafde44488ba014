"""
Redis-backed persistent, typed state store.

Data points are addressed by ``{namespace}.{site_id}.{key}`` and stored as
two independent Redis keys:

- ``object:{id}``: JSON object description (type, unit, role, ...). Written
  by :meth:`RedisStateStore.declare`; declaring never touches the value.
- ``state:{id}``: JSON ``{"val": ..., "ack": ..., "ts": ...}``. Written by
  :meth:`RedisStateStore.write_value`.

The collector instance's own metadata (including its cron schedule) lives
at ``object:system.adapter.{namespace}``.

Every backend failure is re-raised as :class:`StoreError` so callers handle
one exception type regardless of the Redis client's error hierarchy.

CHANGELOG:
- 2026-03-09: Raise StoreError on corrupt stored JSON
- 2026-03-05: Initial creation (STORY-105)

TODO:
- None
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any, Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from collector.src.datapoints import DataPointDefinition
from collector.src.errors import StoreError

logger = logging.getLogger(__name__)


def _decode(raw: bytes | str, op: str) -> dict[str, Any]:
    """Decode a stored JSON object; corrupt data is a store failure."""
    try:
        obj = json.loads(raw)
    except ValueError as exc:
        raise StoreError(f"{op} failed: stored value is not valid JSON") from exc
    if not isinstance(obj, dict):
        raise StoreError(f"{op} failed: stored value is not an object")
    return obj


class StateStore(Protocol):
    """Operations the collector needs from the state store."""

    async def exists(self, site_id: str, key: str) -> bool: ...

    async def declare(
        self, site_id: str, key: str, definition: DataPointDefinition
    ) -> None: ...

    async def read_value(self, site_id: str, key: str) -> Any | None: ...

    async def write_value(
        self, site_id: str, key: str, value: Any, ack: bool = True
    ) -> None: ...

    async def read_instance_metadata(self) -> dict[str, Any]: ...

    async def write_instance_metadata(self, meta: dict[str, Any]) -> None: ...


class RedisStateStore:
    """State store on top of an async Redis client.

    Args:
        client: A ``redis.asyncio.Redis`` instance (or compatible mock).
        namespace: Namespace of this collector instance, e.g.
            ``solaredge.0``.
    """

    def __init__(self, client: redis.Redis, namespace: str) -> None:
        self._client = client
        self._namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str) -> RedisStateStore:
        """Create a store connected to the Redis server at *url*."""
        return cls(redis.from_url(url), namespace)

    async def aclose(self) -> None:
        """Close the underlying Redis connection."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    def datapoint_id(self, site_id: str, key: str) -> str:
        """Return the fully qualified id of a data point."""
        return f"{self._namespace}.{site_id}.{key}"

    @property
    def instance_object_id(self) -> str:
        """Id of the object holding this instance's metadata."""
        return f"system.adapter.{self._namespace}"

    # ------------------------------------------------------------------
    # Data points
    # ------------------------------------------------------------------

    async def exists(self, site_id: str, key: str) -> bool:
        """Return whether the data point is declared."""
        dp_id = self.datapoint_id(site_id, key)
        try:
            return bool(await self._client.exists(f"object:{dp_id}"))
        except RedisError as exc:
            raise StoreError(f"exists({dp_id}) failed: {exc}") from exc

    async def declare(
        self, site_id: str, key: str, definition: DataPointDefinition
    ) -> None:
        """Write the data point's object description.

        Idempotent; an existing value is left untouched.
        """
        dp_id = self.datapoint_id(site_id, key)
        obj = {"_id": dp_id, "type": "state", "common": definition.to_common()}
        try:
            await self._client.set(f"object:{dp_id}", json.dumps(obj))
        except RedisError as exc:
            raise StoreError(f"declare({dp_id}) failed: {exc}") from exc

    async def read_value(self, site_id: str, key: str) -> Any | None:
        """Return the stored value, or None when no value was ever written."""
        dp_id = self.datapoint_id(site_id, key)
        try:
            raw = await self._client.get(f"state:{dp_id}")
        except RedisError as exc:
            raise StoreError(f"read_value({dp_id}) failed: {exc}") from exc
        if raw is None:
            return None
        return _decode(raw, f"read_value({dp_id})").get("val")

    async def write_value(
        self, site_id: str, key: str, value: Any, ack: bool = True
    ) -> None:
        """Write a value with its acknowledgement flag and a timestamp."""
        dp_id = self.datapoint_id(site_id, key)
        state = {
            "val": value,
            "ack": ack,
            "ts": datetime.now(tz=UTC).isoformat(),
        }
        try:
            await self._client.set(f"state:{dp_id}", json.dumps(state))
        except RedisError as exc:
            raise StoreError(f"write_value({dp_id}) failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Instance metadata
    # ------------------------------------------------------------------

    async def read_instance_metadata(self) -> dict[str, Any]:
        """Return this instance's metadata object (``{"common": {}}`` if unset)."""
        obj_id = self.instance_object_id
        try:
            raw = await self._client.get(f"object:{obj_id}")
        except RedisError as exc:
            raise StoreError(f"read_instance_metadata({obj_id}) failed: {exc}") from exc
        if raw is None:
            return {"common": {}}
        return _decode(raw, f"read_instance_metadata({obj_id})")

    async def write_instance_metadata(self, meta: dict[str, Any]) -> None:
        """Overwrite this instance's metadata object."""
        obj_id = self.instance_object_id
        try:
            await self._client.set(f"object:{obj_id}", json.dumps(meta))
        except RedisError as exc:
            raise StoreError(f"write_instance_metadata({obj_id}) failed: {exc}") from exc
