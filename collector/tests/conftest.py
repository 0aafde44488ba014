"""
Shared test fixtures for collector tests.

Provides environment variable fixtures for CollectorSettings tests and an
in-memory state store that records every call. All collector env vars are
cleaned before each test to ensure isolation.

CHANGELOG:
- 2026-03-05: Add in-memory FakeStateStore fixture
- 2026-03-02: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

from typing import Any

import pytest
from collector.src.datapoints import DataPointDefinition
from collector.src.errors import StoreError

# All CollectorSettings environment variable names, used for cleanup.
_ALL_COLLECTOR_ENV_VARS = (
    "SITE_ID",
    "API_KEY",
    "ENABLE_POWER_FLOW",
    "API_BASE_URL",
    "REQUEST_TIMEOUT_S",
    "REDIS_URL",
    "INSTANCE_NAMESPACE",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_collector_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all collector env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_COLLECTOR_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required and optional environment variables for CollectorSettings."""
    env = {
        "SITE_ID": "123456",
        "API_KEY": "ABCDEFGHIJKLMNOP",
        "ENABLE_POWER_FLOW": "true",
        "API_BASE_URL": "https://monitoring.example.com",
        "REQUEST_TIMEOUT_S": "7.5",
        "REDIS_URL": "redis://redis.example.com:6379/2",
        "INSTANCE_NAMESPACE": "solaredge.1",
        "LOG_LEVEL": "debug",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


class FakeStateStore:
    """In-memory StateStore recording every call as ``(op, *args)``.

    Operations named in ``fail_ops`` raise StoreError.
    """

    def __init__(self, schedule: str | None = None) -> None:
        self.objects: dict[tuple[str, str], DataPointDefinition] = {}
        self.values: dict[tuple[str, str], Any] = {}
        self.meta: dict[str, Any] = {"common": {}}
        if schedule is not None:
            self.meta["common"]["schedule"] = schedule
        self.calls: list[tuple[Any, ...]] = []
        self.fail_ops: set[str] = set()

    def _record(self, op: str, *args: Any) -> None:
        self.calls.append((op, *args))
        if op in self.fail_ops:
            raise StoreError(f"{op} failed")

    def count(self, op: str) -> int:
        return sum(1 for call in self.calls if call[0] == op)

    def keys_for(self, op: str) -> list[str]:
        return [call[2] for call in self.calls if call[0] == op]

    async def exists(self, site_id: str, key: str) -> bool:
        self._record("exists", site_id, key)
        return (site_id, key) in self.objects

    async def declare(
        self, site_id: str, key: str, definition: DataPointDefinition
    ) -> None:
        self._record("declare", site_id, key)
        self.objects[(site_id, key)] = definition

    async def read_value(self, site_id: str, key: str) -> Any | None:
        self._record("read_value", site_id, key)
        return self.values.get((site_id, key))

    async def write_value(
        self, site_id: str, key: str, value: Any, ack: bool = True
    ) -> None:
        self._record("write_value", site_id, key, value, ack)
        self.values[(site_id, key)] = value

    async def read_instance_metadata(self) -> dict[str, Any]:
        self._record("read_instance_metadata")
        return {"common": dict(self.meta.get("common", {}))}

    async def write_instance_metadata(self, meta: dict[str, Any]) -> None:
        self._record("write_instance_metadata", meta)
        self.meta = meta


@pytest.fixture()
def store() -> FakeStateStore:
    """Empty in-memory state store."""
    return FakeStateStore()


@pytest.fixture()
def make_store() -> type[FakeStateStore]:
    """Factory for stores with preset instance metadata."""
    return FakeStateStore
