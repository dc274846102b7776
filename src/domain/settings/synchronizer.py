"""Process-wide settings synchronizer.

The synchronizer is the single source of truth for site settings. It is
constructed once at process start (see the API lifespan), injected into
every consumer, and torn down once at process exit.

Lifecycle::

    defaults -> local fallback -> remote snapshot -> one live subscription
                                                  -> merges of remote changes

Writes are optimistic: a save updates the in-memory aggregate and notifies
listeners before the remote store acknowledges. Fields written remotely stay
in a *pending confirmation* set until the store echoes them back through the
subscription. If the echo never arrives (dropped real-time connection),
:meth:`SettingsSynchronizer.reconcile` re-reads the remote record and lets it
win; it is triggered explicitly, never by a background timer.

Remote failures never raise to consumers. They flip ``remote_available`` to
False and the synchronizer keeps working from the local fallback file. Only
two errors escape :meth:`SettingsSynchronizer.save`: a concurrent save
(:class:`SaveInProgressError`) and a change that could be stored neither
remotely nor locally (:class:`PersistenceError`).
"""

import asyncio
from collections.abc import Awaitable, Callable, Collection, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from src.core.async_utils import guarded_operation, with_timeout
from src.core.exceptions import (
    PersistenceError,
    SaveInProgressError,
    ValidationError,
)
from src.core.observability import trace_operation
from src.core.types import SettingsRecord, Unsubscribe
from src.domain.settings.listeners import ListenerRegistry, SettingsListener
from src.domain.settings.models import SettingsPatch, SiteSettings, SocialLink
from src.domain.settings.ports import PersistenceAdapter
from src.domain.settings.records import (
    CREATED_AT_KEY,
    UPDATED_AT_KEY,
    normalize_record,
    timestamp,
    to_record,
)
from src.infrastructure.fallback import LocalFallbackStore


@dataclass(frozen=True, slots=True)
class SaveResult:
    """Acknowledgement of a save."""

    settings: SiteSettings
    persisted_to: Literal["remote", "local"]
    pending_fields: frozenset[str]

    @property
    def pending(self) -> bool:
        """Whether some written fields still await remote confirmation."""
        return bool(self.pending_fields)


@dataclass(frozen=True, slots=True)
class SyncStatus:
    """Availability snapshot for the admin indicator."""

    backend: str
    initialized: bool
    remote_available: bool
    subscribed: bool
    saving: bool
    pending_fields: frozenset[str]
    listeners: int


@dataclass(frozen=True, slots=True)
class _Fetched:
    """A remote read that completed; ``record`` is None when nothing is stored."""

    record: SettingsRecord | None


def _check_social_links(links: tuple[SocialLink, ...]) -> None:
    ids = [link.id for link in links]
    if len(set(ids)) != len(ids):
        raise ValidationError(
            "Social link ids must be unique", context={"field": "socialLinks"}
        )
    platforms = [link.platform for link in links]
    if len(set(platforms)) != len(platforms):
        raise ValidationError(
            "This platform is already added",
            context={"field": "socialLinks"},
        )


class SettingsSynchronizer:
    """Mediates between settings consumers and the persistence adapter.

    Args:
        adapter: Remote settings store.
        fallback: Local mirror used when the remote store is unreachable.
        collection_key: Key of the settings record in the remote store.
        read_timeout_ms: Budget for remote reads and subscription setup.
        write_timeout_ms: Budget for remote writes.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        fallback: LocalFallbackStore,
        *,
        collection_key: str,
        read_timeout_ms: float,
        write_timeout_ms: float,
    ) -> None:
        self._adapter = adapter
        self._fallback = fallback
        self._collection_key = collection_key
        self._read_timeout_ms = read_timeout_ms
        self._write_timeout_ms = write_timeout_ms

        self._settings = SiteSettings()
        self._listeners = ListenerRegistry()
        self._pending: dict[str, Any] = {}
        self._unsubscribe: Unsubscribe | None = None
        self._connecting: asyncio.Task[None] | None = None

        self._hydrated_locally = False
        self._initialized = False
        self._remote_available = False
        self._saving = False
        self._alive = True

    @property
    def backend(self) -> str:
        """Name of the configured remote backend."""
        return self._adapter.backend

    @property
    def remote_available(self) -> bool:
        """Whether the last remote interaction succeeded."""
        return self._remote_available

    @property
    def initialized(self) -> bool:
        """Whether initialize() has completed at least once."""
        return self._initialized

    @property
    def saving(self) -> bool:
        """Whether a save is in flight."""
        return self._saving

    def read(self) -> SiteSettings:
        """Return the current aggregate. Never blocks, never fails."""
        return self._settings

    def listen(self) -> SettingsListener:
        """Attach a consumer; close the returned listener to detach it."""
        return self._listeners.register()

    def status(self) -> SyncStatus:
        """Report availability for the admin indicator."""
        return SyncStatus(
            backend=self.backend,
            initialized=self._initialized,
            remote_available=self._remote_available,
            subscribed=self._unsubscribe is not None,
            saving=self._saving,
            pending_fields=frozenset(self._pending),
            listeners=len(self._listeners),
        )

    async def initialize(self) -> SiteSettings:
        """Hydrate the aggregate and open the single remote subscription.

        Idempotent: once a subscription exists, later calls return the
        current aggregate without any remote call. While the remote store is
        unreachable, each call retries it. Calls that overlap a connection
        attempt already in flight wait for that attempt instead of starting
        their own. Never raises on remote failure.

        Returns:
            SiteSettings: The hydrated aggregate.
        """
        if self._unsubscribe is not None or not self._alive:
            return self._settings

        if self._connecting is None:
            self._hydrate_locally()
            self._connecting = asyncio.create_task(self._connect())

        # A caller that gives up must not cancel the attempt others share
        await asyncio.shield(self._connecting)
        return self._settings

    async def save(self, patch: SettingsPatch | Mapping[str, Any]) -> SaveResult:
        """Apply a merge-patch optimistically, then persist it.

        Args:
            patch: The fields to change, as a SettingsPatch or a camelCase
                mapping.

        Returns:
            SaveResult: Where the change was persisted and which fields are
                still awaiting remote confirmation.

        Raises:
            SaveInProgressError: If another save is in flight.
            ValidationError: If the patch is malformed.
            PersistenceError: If neither the remote store nor the local
                fallback could record the change.
        """
        if self._saving:
            logger.warning("Save operation already in progress")
            raise SaveInProgressError

        changes = self._validate(patch)
        self._saving = True
        try:
            self._apply(changes)
            self._pending.update(changes)

            if await self._persist_remote(changes):
                self._remote_available = True
                self._fallback.store(self._fallback_snapshot())
                if self._unsubscribe is None:
                    await self._open_subscription()
                logger.info(
                    "Settings saved",
                    fields=sorted(changes),
                    backend=self.backend,
                    pending=len(self._pending),
                )
                return SaveResult(self._settings, "remote", frozenset(self._pending))

            self._remote_available = False
            for attribute in changes:
                self._pending.pop(attribute, None)
            try:
                self._fallback.store_or_raise(self._fallback_snapshot())
            except (OSError, TypeError) as exc:
                logger.error("Fallback save also failed: {}", exc)
                raise PersistenceError(
                    "Failed to save settings",
                    context={"fields": sorted(changes)},
                    cause=exc,
                ) from exc

            logger.warning(
                "Settings saved to local fallback only",
                fields=sorted(changes),
                remote_available=False,
            )
            return SaveResult(self._settings, "local", frozenset(self._pending))
        finally:
            self._saving = False

    async def delete_logo(self) -> SaveResult:
        """Reset the logo to its default (no logo)."""
        return await self.save(SettingsPatch(website_logo=None))

    def on_remote_change(self, snapshot: Mapping[str, Any]) -> None:
        """Merge a record pushed by the subscription and notify consumers.

        Missing fields keep their in-memory value. Echoes of this process's
        own writes confirm the matching pending fields. Ignored after
        teardown.
        """
        if not self._alive:
            return

        values = normalize_record(snapshot)
        for attribute, value in values.items():
            if attribute not in self._pending:
                continue
            if self._pending.pop(attribute) != value:
                logger.debug(
                    "Remote value superseded pending local change",
                    field=attribute,
                )

        self._apply(values)

    async def reconcile(self) -> bool:
        """Re-read the remote record and let it win over local state.

        Returns:
            bool: True if the remote record was read and applied.
        """
        fetched = await self._remote_call(
            "Reconcile settings", self._read_timeout_ms, self._fetch
        )
        if fetched is None:
            self._remote_available = False
            return False

        self._remote_available = True
        if fetched.record is not None:
            self.on_remote_change(fetched.record)
        self._pending.clear()
        logger.info("Settings reconciled with remote store", backend=self.backend)
        return True

    def teardown(self) -> None:
        """Cancel the subscription and detach every consumer (process exit)."""
        if not self._alive:
            return
        self._alive = False

        if self._unsubscribe is not None:
            try:
                self._unsubscribe()
            except Exception as exc:  # noqa: BLE001 - shutdown continues regardless
                logger.opt(exception=exc).error("Error cleaning up settings listener")
            self._unsubscribe = None

        self._listeners.close_all()
        self._remote_available = False
        logger.info("Settings synchronizer torn down")

    def _apply(self, changes: Mapping[str, Any]) -> None:
        self._settings = self._settings.model_copy(update=dict(changes))
        self._listeners.publish(self._settings)

    def _validate(self, patch: SettingsPatch | Mapping[str, Any]) -> dict[str, Any]:
        if not isinstance(patch, SettingsPatch):
            try:
                patch = SettingsPatch.model_validate(patch)
            except PydanticValidationError as exc:
                raise ValidationError(
                    "Invalid settings patch",
                    context={
                        "errors": exc.errors(include_url=False, include_context=False)
                    },
                    cause=exc,
                ) from exc

        changes = patch.changes()
        if links := changes.get("social_links"):
            _check_social_links(links)
        return changes

    def _fallback_snapshot(self) -> SettingsRecord:
        return {**to_record(self._settings), UPDATED_AT_KEY: timestamp()}

    async def _remote_call[T](
        self, label: str, timeout_ms: float, operation: Callable[[], Awaitable[T]]
    ) -> T | None:
        async def run() -> T:
            with trace_operation(
                label,
                backend=self.backend,
                collection_key=self._collection_key,
            ):
                return await with_timeout(operation(), timeout_ms, label)

        return await guarded_operation(run, label)

    async def _fetch(self) -> _Fetched:
        return _Fetched(await self._adapter.get_snapshot(self._collection_key))

    async def _put(
        self, record: SettingsRecord, merge_fields: Collection[str] | None
    ) -> bool:
        await self._adapter.put_snapshot(self._collection_key, record, merge_fields)
        return True

    def _hydrate_locally(self) -> None:
        if self._hydrated_locally:
            return
        stored = self._fallback.load()
        if stored:
            self._apply(normalize_record(stored))
            logger.info("Settings hydrated from local fallback", fields=len(stored))
        self._hydrated_locally = True

    async def _connect(self) -> None:
        try:
            self._remote_available = await self._connect_remote()
            self._initialized = True
        finally:
            self._connecting = None

        logger.info(
            "Settings synchronizer ready",
            backend=self.backend,
            remote_available=self._remote_available,
        )

    async def _connect_remote(self) -> bool:
        fetched = await self._remote_call(
            "Get settings document", self._read_timeout_ms, self._fetch
        )
        if fetched is None:
            return False

        if fetched.record is None:
            initial = {**to_record(self._settings), CREATED_AT_KEY: timestamp()}
            created = await self._remote_call(
                "Create initial document",
                self._write_timeout_ms,
                lambda: self._put(initial, None),
            )
            if created is None:
                return False
            logger.info("Created initial settings record", backend=self.backend)
        else:
            self._apply(normalize_record(fetched.record))

        return await self._open_subscription()

    async def _open_subscription(self) -> bool:
        unsubscribe = await self._remote_call(
            "Open settings subscription",
            self._read_timeout_ms,
            lambda: self._adapter.subscribe(
                self._collection_key, self.on_remote_change
            ),
        )
        if unsubscribe is None:
            return False
        if not self._alive:
            # Torn down while connecting
            unsubscribe()
            return False

        self._unsubscribe = unsubscribe
        logger.info("Settings subscription established", backend=self.backend)
        return True

    async def _persist_remote(self, changes: Mapping[str, Any]) -> bool:
        record = {
            **to_record(self._settings, changes.keys()),
            UPDATED_AT_KEY: timestamp(),
        }
        saved = await self._remote_call(
            "Save settings",
            self._write_timeout_ms,
            lambda: self._put(record, [*record]),
        )
        return saved is True
