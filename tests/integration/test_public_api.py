"""Integration tests for the public surface: calculator, site content, health."""

from pathlib import Path
from typing import Any

import pytest
import pytest_check
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from src.domain.vat import INVALID_NET_MESSAGE, INVALID_RATE_MESSAGE
from src.infrastructure.database.session import create_database_engine
from src.infrastructure.stores.document import DocumentSettingsStore


@pytest.mark.integration
class TestVatCalculator:
    """POST /api/vat/calculate."""

    @pytest.mark.parametrize(
        ("payload", "expected"),
        [
            (
                {"amount": "100", "rate": "20", "mode": "add"},
                {"net_price": "100.00", "vat_amount": "20.00", "total_price": "120.00"},
            ),
            (
                {"amount": "120", "rate": "20", "mode": "remove"},
                {"net_price": "100.00", "vat_amount": "20.00", "total_price": "120.00"},
            ),
            (
                {"amount": 100},
                {"net_price": "100.00", "vat_amount": "20.00", "total_price": "120.00"},
            ),
        ],
    )
    async def test_calculate(
        self, client: AsyncClient, payload: dict[str, Any], expected: dict[str, str]
    ) -> None:
        """Amounts come back as two-decimal strings."""
        response = await client.post("/api/vat/calculate", json=payload)

        assert response.status_code == 200
        body = response.json()
        for key, value in expected.items():
            with pytest_check.check:
                assert body[key] == value

    @pytest.mark.parametrize(
        ("payload", "message"),
        [
            ({"amount": "100", "rate": "150"}, INVALID_RATE_MESSAGE),
            ({"amount": "0", "rate": "20"}, INVALID_NET_MESSAGE),
            ({"amount": "-10", "rate": "20", "mode": "add"}, INVALID_NET_MESSAGE),
        ],
    )
    async def test_out_of_range_input(
        self, client: AsyncClient, payload: dict[str, Any], message: str
    ) -> None:
        """Range errors answer 400 with the message shown to visitors."""
        response = await client.post("/api/vat/calculate", json=payload)

        assert response.status_code == 400
        assert response.json()["message"] == message

    async def test_unknown_mode(self, client: AsyncClient) -> None:
        """The mode must be add or remove."""
        response = await client.post(
            "/api/vat/calculate", json={"amount": "100", "mode": "double"}
        )

        assert response.status_code == 422


@pytest.mark.integration
class TestSiteContent:
    """GET /api/site."""

    async def test_defaults_render(self, client: AsyncClient) -> None:
        """Empty hero overrides fall back to the built-in copy."""
        response = await client.get("/api/site")

        assert response.status_code == 200
        body = response.json()
        assert body["websiteTitle"] == "VATCalc"
        assert body["heroHeading"] == "Instant VAT Calculator"
        assert body["socialLinks"] == []

    async def test_links_carry_display_data(self, client: AsyncClient) -> None:
        """Footer links include the platform name and brand color."""
        await client.patch(
            "/api/settings",
            json={
                "heroHeading": "Quick VAT",
                "socialLinks": [
                    {"id": "1", "platform": "telegram", "url": "https://t.me/vat"}
                ],
            },
        )

        body = (await client.get("/api/site")).json()

        assert body["heroHeading"] == "Quick VAT"
        assert body["socialLinks"] == [
            {
                "platform": "telegram",
                "name": "Telegram",
                "color": "#0088CC",
                "url": "https://t.me/vat",
            }
        ]


@pytest.mark.integration
class TestMaintenanceMode:
    """The maintenance gate."""

    async def test_public_routes_are_closed(self, client: AsyncClient) -> None:
        """Calculator and site content answer 503 while maintenance is on."""
        await client.patch("/api/settings", json={"maintenanceMode": True})

        site = await client.get("/api/site")
        vat = await client.post("/api/vat/calculate", json={"amount": "100"})

        assert site.status_code == 503
        assert site.json()["error_code"] == "MAINTENANCE_MODE"
        assert vat.status_code == 503

    async def test_admin_routes_stay_open(self, client: AsyncClient) -> None:
        """Settings, health and info remain reachable to switch it back off."""
        await client.patch("/api/settings", json={"maintenanceMode": True})

        with pytest_check.check:
            assert (await client.get("/api/settings")).status_code == 200
        with pytest_check.check:
            assert (await client.get("/health")).status_code == 200
        with pytest_check.check:
            assert (await client.get("/info")).status_code == 200

        response = await client.patch("/api/settings", json={"maintenanceMode": False})
        assert response.status_code == 200
        assert (await client.get("/api/site")).status_code == 200


@pytest.mark.integration
class TestServiceEndpoints:
    """Health, info and error handling of unknown routes."""

    async def test_health(self, client: AsyncClient) -> None:
        """Healthy while the remote store is reachable."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "backend": "memory",
            "remote_available": True,
        }

    async def test_info(self, client: AsyncClient) -> None:
        """Application metadata and the configured backend."""
        response = await client.get("/info")

        body = response.json()
        assert body["app_name"] == "VATCalc"
        assert body["environment"] == "development"
        assert body["backend"] == "memory"

    async def test_unknown_route(self, client: AsyncClient) -> None:
        """Unknown paths use the standard error body."""
        response = await client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"
        assert response.json()["correlation_id"]


@pytest.mark.integration
class TestDatabaseHealth:
    """Health on the SQL backends."""

    async def test_reachable_database(
        self, client_factory: Any, sqlite_engine: AsyncEngine
    ) -> None:
        """A live database is reported as connected."""
        client = await client_factory(DocumentSettingsStore(sqlite_engine))

        body = (await client.get("/health")).json()

        assert body["status"] == "healthy"
        assert body["backend"] == "document"
        assert body["database"] == "connected"

    async def test_unreachable_database(
        self, client_factory: Any, tmp_path: Path
    ) -> None:
        """A database that cannot be opened degrades the service."""
        missing = tmp_path / "missing" / "vatcalc.db"
        engine = create_database_engine(f"sqlite+aiosqlite:///{missing}")
        try:
            client = await client_factory(DocumentSettingsStore(engine))

            response = await client.get("/health")

            assert response.status_code == 200
            assert response.json()["status"] == "degraded"
            assert response.json()["database"] == "unreachable"
        finally:
            await engine.dispose()
