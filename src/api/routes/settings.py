"""Settings API: read, merge-patch, logo removal, reconcile and live stream.

Every handler goes through the process-wide synchronizer; none of them
talks to the persistence adapter directly.
"""

import asyncio
from collections.abc import AsyncIterator

import orjson
from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from loguru import logger

from src.api.constants import (
    SETTINGS_PREFIX,
    SSE_HEADERS,
    SSE_MEDIA_TYPE,
    SSE_SETTINGS_EVENT,
)
from src.api.dependencies import SynchronizerDep
from src.api.schemas.settings import (
    PlatformResponse,
    ReconcileResponse,
    SaveResponse,
    SettingsResponse,
    SyncStatusResponse,
)
from src.domain.settings.listeners import SettingsListener
from src.domain.settings.models import SettingsPatch, SiteSettings, SocialPlatform

router = APIRouter(prefix=SETTINGS_PREFIX, tags=["settings"])


def format_settings_event(settings: SiteSettings) -> bytes:
    """Encode ``settings`` as one server-sent event."""
    payload = orjson.dumps(settings.model_dump(mode="json", by_alias=True))
    return b"event: " + SSE_SETTINGS_EVENT.encode() + b"\ndata: " + payload + b"\n\n"


async def close_on_disconnect(request: Request, listener: SettingsListener) -> None:
    """Close ``listener`` as soon as the client goes away.

    Waits on the ASGI receive channel, so an idle stream is released
    without waiting for the next settings change.
    """
    while (await request.receive())["type"] != "http.disconnect":
        continue
    logger.debug(
        "Settings stream client disconnected", listener_id=listener.listener_id
    )
    listener.close()


async def settings_event_stream(
    listener: SettingsListener,
    initial: SiteSettings,
    request: Request | None = None,
) -> AsyncIterator[bytes]:
    """Yield the current settings, then one event per change.

    The stream ends when the listener is closed: at shutdown, or by
    :func:`close_on_disconnect` when the client disconnects. Either way the
    listener is detached.
    """
    watcher = (
        asyncio.create_task(close_on_disconnect(request, listener))
        if request is not None
        else None
    )
    try:
        yield format_settings_event(initial)
        async for settings in listener:
            yield format_settings_event(settings)
    except asyncio.CancelledError:
        logger.debug("Settings stream cancelled", listener_id=listener.listener_id)
        raise
    finally:
        if watcher is not None:
            watcher.cancel()
        listener.close()


@router.get("", response_model=SettingsResponse)
async def get_settings_view(synchronizer: SynchronizerDep) -> SettingsResponse:
    """Return the current settings and the synchronizer status."""
    return SettingsResponse(
        settings=synchronizer.read(),
        status=SyncStatusResponse.from_status(synchronizer.status()),
    )


@router.patch("", response_model=SaveResponse)
async def patch_settings(
    patch: SettingsPatch, synchronizer: SynchronizerDep
) -> SaveResponse:
    """Apply a merge-patch: only the supplied fields change."""
    result = await synchronizer.save(patch)
    return SaveResponse.from_result(
        result, remote_available=synchronizer.remote_available
    )


@router.delete("/logo", response_model=SaveResponse)
async def delete_logo(synchronizer: SynchronizerDep) -> SaveResponse:
    """Remove the site logo."""
    result = await synchronizer.delete_logo()
    return SaveResponse.from_result(
        result, remote_available=synchronizer.remote_available
    )


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_settings(synchronizer: SynchronizerDep) -> ReconcileResponse:
    """Re-read the remote record, or retry startup if it never connected."""
    if synchronizer.status().subscribed:
        reconciled = await synchronizer.reconcile()
    else:
        await synchronizer.initialize()
        reconciled = synchronizer.remote_available
    return ReconcileResponse(reconciled=reconciled, settings=synchronizer.read())


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(synchronizer: SynchronizerDep) -> SyncStatusResponse:
    """Availability indicator for the admin console."""
    return SyncStatusResponse.from_status(synchronizer.status())


@router.get("/platforms", response_model=list[PlatformResponse])
async def list_platforms() -> list[PlatformResponse]:
    """Every supported social platform with its display profile."""
    return [PlatformResponse.for_platform(platform) for platform in SocialPlatform]


@router.get(
    "/stream",
    responses={200: {"content": {SSE_MEDIA_TYPE: {}}}},
)
async def stream_settings(
    request: Request, synchronizer: SynchronizerDep
) -> StreamingResponse:
    """Push the settings to the client on every change (server-sent events)."""
    listener = synchronizer.listen()
    return StreamingResponse(
        settings_event_stream(listener, synchronizer.read(), request),
        media_type=SSE_MEDIA_TYPE,
        headers=SSE_HEADERS,
    )
