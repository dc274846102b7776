"""Public site content endpoint, read by the marketing pages."""

from fastapi import APIRouter

from src.api.constants import SITE_PREFIX
from src.api.dependencies import SynchronizerDep
from src.api.schemas.site import SiteContentResponse

router = APIRouter(prefix=SITE_PREFIX, tags=["site"])


@router.get("", response_model=SiteContentResponse)
async def get_site_content(synchronizer: SynchronizerDep) -> SiteContentResponse:
    """Title, logo, hero, homepage and footer content ready to render."""
    return SiteContentResponse.from_settings(synchronizer.read())
