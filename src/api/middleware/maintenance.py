"""Maintenance mode gate for the public site.

While ``maintenanceMode`` is on, public routes (calculator, site content)
answer 503 with the maintenance notice. The settings API, health checks and
API docs stay reachable so an administrator can switch the flag back off.
The flag is read from the synchronizer on every request, so a change takes
effect as soon as the synchronizer receives it. Changes made by other
instances arrive through the store subscription: on PostgreSQL and the
memory store right away, on SQLite only from stores in the same process
(other processes are picked up by a reconcile).
"""

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.api.constants import MAINTENANCE_EXEMPT_PREFIXES
from src.api.middleware.error_handler import render_error
from src.core.exceptions import MaintenanceModeError
from src.domain.settings.synchronizer import SettingsSynchronizer


class MaintenanceModeMiddleware(BaseHTTPMiddleware):
    """Short-circuits public requests while the site is under maintenance."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Answer 503 for public paths when maintenance mode is on."""
        synchronizer: SettingsSynchronizer | None = getattr(
            request.app.state, "synchronizer", None
        )
        if (
            synchronizer is None
            or not synchronizer.read().maintenance_mode
            or request.url.path.startswith(MAINTENANCE_EXEMPT_PREFIXES)
        ):
            return await call_next(request)

        logger.debug("Request blocked by maintenance mode", path=request.url.path)
        return render_error(MaintenanceModeError(), request)
