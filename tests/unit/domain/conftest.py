"""Fixtures for the settings synchronizer tests.

The synchronizer is exercised against the in-memory store and a few
variations of it that simulate an unreachable backend, a backend that never
echoes writes back, and a backend whose writes can be held open.
"""

import asyncio
from collections.abc import Callable, Collection, Generator
from pathlib import Path

import pytest

from src.core.exceptions import RemoteStoreError
from src.core.types import ChangeCallback, SettingsRecord, Unsubscribe
from src.domain.settings.ports import PersistenceAdapter
from src.domain.settings.synchronizer import SettingsSynchronizer
from src.infrastructure.fallback import LocalFallbackStore
from src.infrastructure.stores.memory import MemorySettingsStore

COLLECTION_KEY = "settings/website"

SynchronizerFactory = Callable[..., SettingsSynchronizer]


class FlakyStore(MemorySettingsStore):
    """Memory store that can be switched offline."""

    backend = "flaky"

    def __init__(self, records: dict[str, SettingsRecord] | None = None) -> None:
        super().__init__(records)
        self.online = True
        self.calls: list[str] = []

    def _check(self, call: str) -> None:
        self.calls.append(call)
        if not self.online:
            raise RemoteStoreError("Connection refused", context={"call": call})

    async def get_snapshot(self, collection_key: str) -> SettingsRecord | None:
        self._check("get")
        return await super().get_snapshot(collection_key)

    async def put_snapshot(
        self,
        collection_key: str,
        record: SettingsRecord,
        merge_fields: Collection[str] | None = None,
    ) -> None:
        self._check("put")
        await super().put_snapshot(collection_key, record, merge_fields)

    async def subscribe(
        self, collection_key: str, on_change: ChangeCallback
    ) -> Unsubscribe:
        self._check("subscribe")
        return await super().subscribe(collection_key, on_change)


class SilentStore(MemorySettingsStore):
    """Memory store whose subscription never delivers anything."""

    async def subscribe(
        self, collection_key: str, on_change: ChangeCallback
    ) -> Unsubscribe:
        return lambda: None


class GatedStore(MemorySettingsStore):
    """Memory store whose merge writes wait until ``gate`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()
        self.entered = asyncio.Event()

    async def put_snapshot(
        self,
        collection_key: str,
        record: SettingsRecord,
        merge_fields: Collection[str] | None = None,
    ) -> None:
        if merge_fields is not None:
            self.entered.set()
            await self.gate.wait()
        await super().put_snapshot(collection_key, record, merge_fields)


class HangingStore(MemorySettingsStore):
    """Memory store whose reads never complete."""

    def __init__(self) -> None:
        super().__init__()
        self.reads = 0

    async def get_snapshot(self, collection_key: str) -> SettingsRecord | None:
        self.reads += 1
        await asyncio.Event().wait()
        return None


@pytest.fixture
def fallback_path(tmp_path: Path) -> Path:
    """Location of the local fallback file."""
    return tmp_path / "website_settings.json"


@pytest.fixture
def fallback(fallback_path: Path) -> LocalFallbackStore:
    """Local fallback store under the test's temporary directory."""
    return LocalFallbackStore(fallback_path)


@pytest.fixture
def store() -> MemorySettingsStore:
    """Empty in-memory remote store."""
    return MemorySettingsStore()


@pytest.fixture
def flaky_store() -> FlakyStore:
    """Remote store that can be taken offline with ``online = False``."""
    return FlakyStore()


@pytest.fixture
def make_synchronizer(
    fallback: LocalFallbackStore,
) -> Generator[SynchronizerFactory]:
    """Factory for synchronizers sharing the test's fallback file.

    Every synchronizer created through the factory is torn down after the
    test.
    """
    created: list[SettingsSynchronizer] = []

    def _make(
        adapter: PersistenceAdapter,
        *,
        read_timeout_ms: float = 1000,
        write_timeout_ms: float = 1000,
    ) -> SettingsSynchronizer:
        synchronizer = SettingsSynchronizer(
            adapter,
            fallback,
            collection_key=COLLECTION_KEY,
            read_timeout_ms=read_timeout_ms,
            write_timeout_ms=write_timeout_ms,
        )
        created.append(synchronizer)
        return synchronizer

    yield _make

    for synchronizer in created:
        synchronizer.teardown()


@pytest.fixture
def synchronizer(
    store: MemorySettingsStore, make_synchronizer: SynchronizerFactory
) -> SettingsSynchronizer:
    """Synchronizer over the empty in-memory store (not yet initialized)."""
    return make_synchronizer(store)


@pytest.fixture
def silent_store() -> SilentStore:
    """Remote store that accepts writes but never echoes them."""
    return SilentStore()


@pytest.fixture
def gated_store() -> GatedStore:
    """Remote store whose merge writes block until released."""
    return GatedStore()


@pytest.fixture
def hanging_store() -> HangingStore:
    """Remote store whose reads never return."""
    return HangingStore()
