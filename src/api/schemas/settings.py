"""Response schemas for the settings API."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.domain.settings.models import SiteSettings, SocialPlatform, platform_profile
from src.domain.settings.synchronizer import SaveResult, SyncStatus


class _CamelSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SyncStatusResponse(_CamelSchema):
    """Availability indicator for the admin console."""

    backend: str = Field(description="Configured remote store", examples=["table"])
    initialized: bool = Field(description="Whether startup hydration has run")
    remote_available: bool = Field(
        description="Whether the last remote interaction succeeded"
    )
    subscribed: bool = Field(description="Whether the live subscription is open")
    saving: bool = Field(description="Whether a save is in flight")
    pending_fields: list[str] = Field(
        description="Fields written but not yet confirmed by the remote store",
        examples=[["hero_heading"]],
    )
    listeners: int = Field(description="Number of attached live consumers")

    @classmethod
    def from_status(cls, status: SyncStatus) -> "SyncStatusResponse":
        """Build the response from a synchronizer status snapshot."""
        return cls(
            backend=status.backend,
            initialized=status.initialized,
            remote_available=status.remote_available,
            subscribed=status.subscribed,
            saving=status.saving,
            pending_fields=sorted(status.pending_fields),
            listeners=status.listeners,
        )


class SettingsResponse(_CamelSchema):
    """Current settings together with the synchronizer status."""

    settings: SiteSettings
    status: SyncStatusResponse


class SaveResponse(_CamelSchema):
    """Acknowledgement of a settings save."""

    settings: SiteSettings
    persisted_to: Literal["remote", "local"] = Field(
        description="Where the change was durably recorded"
    )
    pending: bool = Field(
        description="Whether the change still awaits remote confirmation"
    )
    remote_available: bool

    @classmethod
    def from_result(
        cls, result: SaveResult, *, remote_available: bool
    ) -> "SaveResponse":
        """Build the response from a synchronizer save result."""
        return cls(
            settings=result.settings,
            persisted_to=result.persisted_to,
            pending=result.pending,
            remote_available=remote_available,
        )


class ReconcileResponse(_CamelSchema):
    """Outcome of a forced re-read of the remote record."""

    reconciled: bool = Field(description="Whether the remote record was applied")
    settings: SiteSettings


class PlatformResponse(_CamelSchema):
    """Display profile of a social platform."""

    platform: SocialPlatform
    name: str = Field(examples=["GitHub"])
    color: str = Field(examples=["#333333"])
    placeholder: str = Field(examples=["https://github.com/yourusername"])

    @classmethod
    def for_platform(cls, platform: SocialPlatform) -> "PlatformResponse":
        """Build the response for ``platform``."""
        profile = platform_profile(platform)
        return cls(
            platform=platform,
            name=profile.name,
            color=profile.color,
            placeholder=profile.placeholder,
        )
