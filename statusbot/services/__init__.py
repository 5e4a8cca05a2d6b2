from statusbot.services.notification_dispatcher import NotificationDispatcher
from statusbot.services.warframe_service import CATEGORY_PATHS, CYCLE_PATHS, WarframeStatusService

__all__ = [
    "CATEGORY_PATHS",
    "CYCLE_PATHS",
    "NotificationDispatcher",
    "WarframeStatusService",
]
