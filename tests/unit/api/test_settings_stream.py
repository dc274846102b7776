"""Unit tests for the settings server-sent event stream."""

import asyncio
from typing import Any

import orjson
import pytest
from pytest_mock import MockerFixture

from src.api.routes.settings import (
    close_on_disconnect,
    format_settings_event,
    settings_event_stream,
)
from src.api.schemas.settings import SaveResponse, SyncStatusResponse
from src.api.schemas.site import SiteContentResponse
from src.domain.settings.listeners import ListenerRegistry
from src.domain.settings.models import (
    DEFAULT_HERO_HEADING,
    SiteSettings,
    SocialLink,
    SocialPlatform,
)
from src.domain.settings.synchronizer import SaveResult, SyncStatus


class DisconnectingRequest:
    """Request double whose client disconnects once ``gone`` is set."""

    def __init__(self) -> None:
        self.gone = asyncio.Event()

    async def receive(self) -> dict[str, Any]:
        await self.gone.wait()
        return {"type": "http.disconnect"}


def parse_event(chunk: bytes) -> tuple[str, dict[str, object]]:
    event_line, data_line = chunk.decode().strip().split("\n")
    return event_line.removeprefix("event: "), orjson.loads(
        data_line.removeprefix("data: ")
    )


@pytest.mark.unit
class TestFormatSettingsEvent:
    """Encoding one settings event."""

    def test_event_shape(self) -> None:
        """A named event with the camelCase aggregate as data."""
        chunk = format_settings_event(SiteSettings(website_title="Streamed"))

        event, data = parse_event(chunk)
        assert chunk.endswith(b"\n\n")
        assert event == "settings"
        assert data["websiteTitle"] == "Streamed"


@pytest.mark.unit
class TestSettingsEventStream:
    """The per-client event generator."""

    async def test_initial_state_then_changes(self) -> None:
        """The current settings come first, then one event per change."""
        registry = ListenerRegistry()
        listener = registry.register()
        stream = settings_event_stream(listener, SiteSettings())

        _, first = parse_event(await anext(stream))
        registry.publish(SiteSettings(hero_heading="Changed"))
        _, second = parse_event(await anext(stream))

        assert first["heroHeading"] == ""
        assert second["heroHeading"] == "Changed"
        await stream.aclose()

    async def test_stream_ends_when_listener_closes(self) -> None:
        """Shutdown closes the listener and the generator finishes."""
        registry = ListenerRegistry()
        listener = registry.register()
        stream = settings_event_stream(listener, SiteSettings())
        await anext(stream)

        registry.close_all()

        assert [chunk async for chunk in stream] == []

    async def test_closing_stream_detaches_listener(self) -> None:
        """A client going away releases its listener."""
        registry = ListenerRegistry()
        listener = registry.register()
        stream = settings_event_stream(listener, SiteSettings())
        await anext(stream)

        await stream.aclose()

        assert listener.alive is False
        assert len(registry) == 0

    async def test_idle_client_disconnect_releases_listener(self) -> None:
        """A client leaving while nothing changes is detached right away."""
        registry = ListenerRegistry()
        listener = registry.register()
        request: Any = DisconnectingRequest()
        stream = settings_event_stream(listener, SiteSettings(), request)
        await anext(stream)

        request.gone.set()
        remaining = [chunk async for chunk in stream]

        assert remaining == []
        assert listener.alive is False
        assert len(registry) == 0

    async def test_disconnect_watcher_ignores_other_messages(
        self, mocker: MockerFixture
    ) -> None:
        """Only http.disconnect closes the listener."""
        registry = ListenerRegistry()
        listener = registry.register()
        request = mocker.MagicMock()
        request.receive = mocker.AsyncMock(
            side_effect=[
                {"type": "http.request", "body": b""},
                {"type": "http.disconnect"},
            ]
        )

        await close_on_disconnect(request, listener)

        assert listener.alive is False
        assert request.receive.await_count == 2


@pytest.mark.unit
class TestResponseSchemas:
    """Building API responses from domain objects."""

    def test_status_response_sorts_pending_fields(self) -> None:
        """Pending fields are listed in a stable order."""
        response = SyncStatusResponse.from_status(
            SyncStatus(
                backend="table",
                initialized=True,
                remote_available=True,
                subscribed=True,
                saving=False,
                pending_fields=frozenset({"website_title", "hero_heading"}),
                listeners=2,
            )
        )

        body = response.model_dump(by_alias=True)
        assert body["pendingFields"] == ["hero_heading", "website_title"]
        assert body["remoteAvailable"] is True

    def test_save_response(self) -> None:
        """The acknowledgement reports destination and confirmation state."""
        result = SaveResult(SiteSettings(), "local", frozenset())

        body = SaveResponse.from_result(result, remote_available=False).model_dump(
            by_alias=True
        )

        assert body["persistedTo"] == "local"
        assert body["pending"] is False
        assert body["remoteAvailable"] is False

    def test_site_content_applies_fallbacks_and_profiles(self) -> None:
        """Empty hero text renders the default; links get display data."""
        settings = SiteSettings(
            social_links=(
                SocialLink(
                    id="1",
                    platform=SocialPlatform.LINKEDIN,
                    url="https://linkedin.com/x",
                ),
            )
        )

        response = SiteContentResponse.from_settings(settings)

        assert response.hero_heading == DEFAULT_HERO_HEADING
        assert response.social_links[0].name == "LinkedIn"
        assert response.social_links[0].color == "#0077B5"
