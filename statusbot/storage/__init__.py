from statusbot.storage.notification_store import (
    GuildNotificationConfig,
    GuildNotificationStore,
    NotificationConfig,
)

__all__ = [
    "GuildNotificationConfig",
    "GuildNotificationStore",
    "NotificationConfig",
]
