"""Site settings aggregate, merge-patch and social platform catalogue.

Field names are snake_case in Python and camelCase on the wire and in every
persisted record (``websiteTitle``, ``socialLinks`` ...). Models are frozen:
the synchronizer replaces its current aggregate on every change instead of
mutating it, so a reader can never observe a half-applied patch.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Final, Self, assert_never

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_WEBSITE_TITLE: Final[str] = "VATCalc"
DEFAULT_HERO_HEADING: Final[str] = "Instant VAT Calculator"
DEFAULT_HERO_DESCRIPTION: Final[str] = (
    "Calculate, Add or Remove VAT in seconds with our professional-grade calculator"
)


class SocialPlatform(StrEnum):
    """Platforms a social link may point to."""

    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    TWITTER = "twitter"
    YOUTUBE = "youtube"
    LINKEDIN = "linkedin"
    GITHUB = "github"
    WEBSITE = "website"
    TELEGRAM = "telegram"


@dataclass(frozen=True, slots=True)
class PlatformProfile:
    """Display data for a social platform."""

    name: str
    color: str
    placeholder: str


def platform_profile(platform: SocialPlatform) -> PlatformProfile:
    """Return the display profile for ``platform``.

    Args:
        platform: A social platform.

    Returns:
        PlatformProfile: Display name, brand color and URL placeholder.
    """
    match platform:
        case SocialPlatform.FACEBOOK:
            return PlatformProfile(
                "Facebook", "#1877F2", "https://facebook.com/yourpage"
            )
        case SocialPlatform.INSTAGRAM:
            return PlatformProfile(
                "Instagram", "#E4405F", "https://instagram.com/yourpage"
            )
        case SocialPlatform.TWITTER:
            return PlatformProfile("Twitter", "#1DA1F2", "https://twitter.com/yourpage")
        case SocialPlatform.YOUTUBE:
            return PlatformProfile(
                "YouTube", "#FF0000", "https://youtube.com/yourchannel"
            )
        case SocialPlatform.LINKEDIN:
            return PlatformProfile(
                "LinkedIn", "#0077B5", "https://linkedin.com/company/yourcompany"
            )
        case SocialPlatform.GITHUB:
            return PlatformProfile(
                "GitHub", "#333333", "https://github.com/yourusername"
            )
        case SocialPlatform.WEBSITE:
            return PlatformProfile("Website", "#6366F1", "https://yourwebsite.com")
        case SocialPlatform.TELEGRAM:
            return PlatformProfile("Telegram", "#0088CC", "https://t.me/yourchannel")
        case _:
            assert_never(platform)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class SocialLink(_CamelModel):
    """An external profile link shown in the footer."""

    id: str = Field(min_length=1, description="Unique link identifier")
    platform: SocialPlatform = Field(description="Platform the link points to")
    url: str = Field(min_length=1, description="Profile URL")
    added_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the link was added",
    )

    @field_validator("url", mode="before")
    @classmethod
    def strip_url(cls, v: object) -> object:
        """Trim surrounding whitespace from the URL."""
        return v.strip() if isinstance(v, str) else v


class SiteSettings(_CamelModel):
    """The full site configuration. Every field has a renderable default."""

    maintenance_mode: bool = Field(
        default=False,
        description="Replace the public site with a maintenance notice",
    )
    website_title: str = Field(default=DEFAULT_WEBSITE_TITLE, description="Site name")
    website_logo: str | None = Field(
        default=None, description="Logo as a data URI or remote URL"
    )
    social_links: tuple[SocialLink, ...] = Field(
        default=(), description="Footer social links"
    )
    homepage_content: str = Field(default="", description="Homepage HTML")
    footer_top_content: str = Field(default="", description="HTML above the footer")
    hero_heading: str = Field(default="", description="Hero title override")
    hero_description: str = Field(default="", description="Hero subtitle override")

    @property
    def display_hero_heading(self) -> str:
        """Hero title as rendered, falling back to the built-in heading."""
        return self.hero_heading or DEFAULT_HERO_HEADING

    @property
    def display_hero_description(self) -> str:
        """Hero subtitle as rendered, falling back to the built-in text."""
        return self.hero_description or DEFAULT_HERO_DESCRIPTION


# Persisted (camelCase) name -> attribute name, for every aggregate field
FIELD_ALIASES: Final[dict[str, str]] = {
    field.alias or name: name for name, field in SiteSettings.model_fields.items()
}

NULLABLE_FIELDS: Final[frozenset[str]] = frozenset({"website_logo"})


class SettingsPatch(_CamelModel):
    """A merge-patch: only the fields explicitly supplied are applied."""

    model_config = ConfigDict(extra="forbid")

    maintenance_mode: bool | None = None
    website_title: str | None = None
    website_logo: str | None = None
    social_links: tuple[SocialLink, ...] | None = None
    homepage_content: str | None = None
    footer_top_content: str | None = None
    hero_heading: str | None = None
    hero_description: str | None = None

    @model_validator(mode="after")
    def reject_null_values(self) -> Self:
        """Only the logo may be explicitly cleared with null."""
        for name in self.model_fields_set - NULLABLE_FIELDS:
            if getattr(self, name) is None:
                msg = f"{to_camel(name)} cannot be null"
                raise ValueError(msg)
        return self

    def changes(self) -> dict[str, Any]:
        """Supplied fields keyed by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}
