"""Public site content schema: what the marketing pages render."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.domain.settings.models import SiteSettings, SocialPlatform, platform_profile


class _CamelSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FooterLink(_CamelSchema):
    """A social link ready for display."""

    platform: SocialPlatform
    name: str
    color: str
    url: str


class SiteContentResponse(_CamelSchema):
    """Render-ready site content with hero fallbacks applied."""

    website_title: str
    website_logo: str | None
    hero_heading: str
    hero_description: str
    homepage_content: str
    footer_top_content: str
    social_links: list[FooterLink]

    @classmethod
    def from_settings(cls, settings: SiteSettings) -> "SiteContentResponse":
        """Build the public view of ``settings``."""
        links = []
        for link in settings.social_links:
            profile = platform_profile(link.platform)
            links.append(
                FooterLink(
                    platform=link.platform,
                    name=profile.name,
                    color=profile.color,
                    url=link.url,
                )
            )

        return cls(
            website_title=settings.website_title,
            website_logo=settings.website_logo,
            hero_heading=settings.display_hero_heading,
            hero_description=settings.display_hero_description,
            homepage_content=settings.homepage_content,
            footer_top_content=settings.footer_top_content,
            social_links=links,
        )
