"""
Notification Dispatcher

Sends bot announcements to each guild's configured notification channel.
Delivery failures never propagate: they are logged and counted as not sent.
"""

from statusbot.core.interfaces import NotificationSender
from statusbot.core.logging.logger import get_logger
from statusbot.storage.notification_store import GuildNotificationStore

logger = get_logger(__name__)


class NotificationDispatcher:
    def __init__(self, store: GuildNotificationStore, sender: NotificationSender):
        self._store = store
        self._sender = sender

    async def send(self, guild_id: str, message: str) -> bool:
        """Send message to guild_id's notification channel. Returns True when delivered."""
        try:
            guild_config = await self._store.get_guild_config(guild_id)
            if guild_config is None or not guild_config.enabled:
                return False
            if not guild_config.channelid:
                logger.warning("Notification channel not set", stage="ND.1", guild_id=guild_id)
                return False

            await self._sender.send_message(guild_config.channelid, message)
            return True
        except Exception as e:
            logger.error(
                f"Error sending guild notification: {e}",
                stage="ND.2",
                guild_id=guild_id,
            )
            return False

    async def send_to_all(self, message: str) -> int:
        """Send to every enabled guild. Returns how many deliveries succeeded."""
        try:
            config = await self._store.get_config()
        except Exception as e:
            logger.error(f"Error loading notification config: {e}", stage="ND.2")
            return 0

        sent = 0
        for guild_id, guild_config in config.guilds.items():
            if guild_config.enabled and await self.send(guild_id, message):
                sent += 1

        logger.info("Broadcast finished", stage="ND.3", sent=sent, guilds=len(config.guilds))
        return sent
