"""Site settings: aggregate, merge-patches, listeners and the synchronizer."""

from src.domain.settings.listeners import ListenerRegistry, SettingsListener
from src.domain.settings.models import (
    PlatformProfile,
    SettingsPatch,
    SiteSettings,
    SocialLink,
    SocialPlatform,
    platform_profile,
)
from src.domain.settings.ports import PersistenceAdapter
from src.domain.settings.synchronizer import (
    SaveResult,
    SettingsSynchronizer,
    SyncStatus,
)

__all__ = [
    "ListenerRegistry",
    "PersistenceAdapter",
    "PlatformProfile",
    "SaveResult",
    "SettingsListener",
    "SettingsPatch",
    "SettingsSynchronizer",
    "SiteSettings",
    "SocialLink",
    "SocialPlatform",
    "SyncStatus",
    "platform_profile",
]
