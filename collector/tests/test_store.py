"""
Unit tests for the Redis-backed state store.

Uses an AsyncMock in place of ``redis.asyncio.Redis``.

CHANGELOG:
- 2026-03-09: Cover corrupt stored JSON
- 2026-03-05: Initial creation (STORY-105)

TODO:
- None
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from collector.src.datapoints import ALL_DATAPOINTS
from collector.src.errors import StoreError
from collector.src.schedule import adjust_schedule
from collector.src.store import RedisStateStore
from redis.exceptions import ConnectionError as RedisConnectionError


@pytest.fixture()
def redis_client() -> AsyncMock:
    """Mock async Redis client with an empty keyspace."""
    client = AsyncMock()
    client.exists = AsyncMock(return_value=0)
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture()
def redis_store(redis_client: AsyncMock) -> RedisStateStore:
    return RedisStateStore(redis_client, "solaredge.0")


class TestAddressing:
    """Data points are namespaced per instance and site."""

    def test_datapoint_id(self, redis_store: RedisStateStore) -> None:
        assert redis_store.datapoint_id("123456", "currentPower") == (
            "solaredge.0.123456.currentPower"
        )

    def test_instance_object_id(self, redis_store: RedisStateStore) -> None:
        assert redis_store.instance_object_id == "system.adapter.solaredge.0"


class TestDataPoints:
    """exists / declare / read_value / write_value."""

    @pytest.mark.asyncio
    async def test_exists_checks_object_key(
        self, redis_store: RedisStateStore, redis_client: AsyncMock
    ) -> None:
        redis_client.exists = AsyncMock(return_value=1)

        assert await redis_store.exists("123456", "currentPower") is True
        redis_client.exists.assert_awaited_once_with(
            "object:solaredge.0.123456.currentPower"
        )

    @pytest.mark.asyncio
    async def test_declare_writes_object_only(
        self, redis_store: RedisStateStore, redis_client: AsyncMock
    ) -> None:
        await redis_store.declare("123456", "currentPower", ALL_DATAPOINTS["currentPower"])

        redis_client.set.assert_awaited_once()
        key, raw = redis_client.set.call_args.args
        assert key == "object:solaredge.0.123456.currentPower"
        obj = json.loads(raw)
        assert obj["type"] == "state"
        assert obj["common"]["unit"] == "W"
        assert obj["common"]["type"] == "number"
        assert obj["common"]["write"] is False

    @pytest.mark.asyncio
    async def test_read_value_missing_is_none(self, redis_store: RedisStateStore) -> None:
        assert await redis_store.read_value("123456", "currentPower") is None

    @pytest.mark.asyncio
    async def test_read_value_decodes_state(
        self, redis_store: RedisStateStore, redis_client: AsyncMock
    ) -> None:
        redis_client.get = AsyncMock(
            return_value=json.dumps({"val": 3243.5, "ack": True, "ts": "t"}).encode()
        )

        assert await redis_store.read_value("123456", "currentPower") == 3243.5
        redis_client.get.assert_awaited_once_with("state:solaredge.0.123456.currentPower")

    @pytest.mark.asyncio
    async def test_write_value_stores_ack_and_ts(
        self, redis_store: RedisStateStore, redis_client: AsyncMock
    ) -> None:
        await redis_store.write_value("123456", "feedToGrid", True)

        key, raw = redis_client.set.call_args.args
        assert key == "state:solaredge.0.123456.feedToGrid"
        state = json.loads(raw)
        assert state["val"] is True
        assert state["ack"] is True
        assert state["ts"]


class TestInstanceMetadata:
    """Instance metadata round-trips through the object key."""

    @pytest.mark.asyncio
    async def test_missing_metadata_defaults(self, redis_store: RedisStateStore) -> None:
        assert await redis_store.read_instance_metadata() == {"common": {}}

    @pytest.mark.asyncio
    async def test_write_metadata(
        self, redis_store: RedisStateStore, redis_client: AsyncMock
    ) -> None:
        meta = {"common": {"schedule": "7 */15 * * * *"}}

        await redis_store.write_instance_metadata(meta)

        redis_client.set.assert_awaited_once_with(
            "object:system.adapter.solaredge.0", json.dumps(meta)
        )


class TestFailures:
    """Redis errors are re-raised as StoreError."""

    @pytest.mark.asyncio
    async def test_exists_failure(
        self, redis_store: RedisStateStore, redis_client: AsyncMock
    ) -> None:
        redis_client.exists = AsyncMock(side_effect=RedisConnectionError("refused"))

        with pytest.raises(StoreError, match="exists"):
            await redis_store.exists("123456", "currentPower")

    @pytest.mark.asyncio
    async def test_write_failure(
        self, redis_store: RedisStateStore, redis_client: AsyncMock
    ) -> None:
        redis_client.set = AsyncMock(side_effect=RedisConnectionError("refused"))

        with pytest.raises(StoreError, match="write_value"):
            await redis_store.write_value("123456", "currentPower", 1.0)

    @pytest.mark.asyncio
    async def test_aclose(
        self, redis_store: RedisStateStore, redis_client: AsyncMock
    ) -> None:
        await redis_store.aclose()

        redis_client.aclose.assert_awaited_once()


class TestCorruptData:
    """Undecodable stored data is a StoreError, not a ValueError."""

    @pytest.mark.asyncio
    async def test_corrupt_state_value(
        self, redis_store: RedisStateStore, redis_client: AsyncMock
    ) -> None:
        redis_client.get = AsyncMock(return_value=b"{not json")

        with pytest.raises(StoreError, match="read_value"):
            await redis_store.read_value("123456", "currentPower")

    @pytest.mark.asyncio
    async def test_corrupt_instance_metadata(
        self, redis_store: RedisStateStore, redis_client: AsyncMock
    ) -> None:
        redis_client.get = AsyncMock(return_value=b"not-json")

        with pytest.raises(StoreError, match="read_instance_metadata"):
            await redis_store.read_instance_metadata()

    @pytest.mark.asyncio
    async def test_non_object_instance_metadata(
        self, redis_store: RedisStateStore, redis_client: AsyncMock
    ) -> None:
        redis_client.get = AsyncMock(return_value=b"[1, 2]")

        with pytest.raises(StoreError, match="not an object"):
            await redis_store.read_instance_metadata()

    @pytest.mark.asyncio
    async def test_schedule_adjustment_survives_corrupt_metadata(
        self, redis_store: RedisStateStore, redis_client: AsyncMock
    ) -> None:
        redis_client.get = AsyncMock(return_value=b"{not json")

        assert await adjust_schedule(redis_store) is False
        redis_client.set.assert_not_awaited()
