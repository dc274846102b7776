"""API routers: settings administration, public site content and calculator."""

from src.api.routes.settings import router as settings_router
from src.api.routes.site import router as site_router
from src.api.routes.vat import router as vat_router

__all__ = ["settings_router", "site_router", "vat_router"]
