"""
Guild Notification Store

Per-guild notification preferences persisted as one JSON file:

    {"guilds": {"<guild id>": {"bot_notification": "...", "channelid": "...", "enabled": false}}}

The file is read once, on first use. Every operation runs under one
asyncio.Lock, so concurrent first loads share a single disk read and
read-modify-write mutations cannot interleave. Writes go to a temp file
and are swapped in with os.replace.

A missing or unreadable file is replaced by an empty config.
"""

import asyncio
from collections.abc import Iterable
from pathlib import Path

import aiofiles
import aiofiles.os
import orjson
from pydantic import BaseModel, Field, ValidationError

from statusbot.core.exceptions import StorageError
from statusbot.core.logging.logger import get_logger

logger = get_logger(__name__)


class GuildNotificationConfig(BaseModel):
    bot_notification: str = "disabled"
    channelid: str = ""
    enabled: bool = False


class NotificationConfig(BaseModel):
    guilds: dict[str, GuildNotificationConfig] = Field(default_factory=dict)


class GuildNotificationStore:
    """
    JSON-file backed guild notification preferences.

    Usage:
        store = GuildNotificationStore(Path("bot_notifications.json"))
        await store.set_guild_config("123...", GuildNotificationConfig(channelid="456...", enabled=True))
        if await store.is_notification_enabled("123..."):
            ...
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._config: NotificationConfig | None = None
        self._lock = asyncio.Lock()

    async def _load(self) -> NotificationConfig:
        """Load once; caller holds the lock."""
        if self._config is not None:
            return self._config

        try:
            async with aiofiles.open(self.path, "rb") as f:
                raw = await f.read()
            self._config = NotificationConfig.model_validate(orjson.loads(raw))
            logger.info(
                "Notification config loaded",
                stage="ST.1",
                path=str(self.path),
                guilds=len(self._config.guilds),
            )
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(
                "Bot notifications config file not found or invalid, creating default config",
                stage="ST.1",
                path=str(self.path),
                error=str(e),
            )
            self._config = NotificationConfig()
            await self._save()

        return self._config

    async def _save(self) -> None:
        """Write the current config; caller holds the lock."""
        if self._config is None:
            raise StorageError("No config to save", details={"path": str(self.path)})

        payload = orjson.dumps(self._config.model_dump(), option=orjson.OPT_INDENT_2)
        temp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(payload)
            await aiofiles.os.replace(temp_path, self.path)
        except OSError as e:
            logger.error("Error saving notification config", stage="ST.2", path=str(self.path), error=str(e))
            raise StorageError.from_exception(
                e, message="Failed to save notification config", path=str(self.path)
            ) from e

    async def get_config(self) -> NotificationConfig:
        async with self._lock:
            config = await self._load()
            return config.model_copy(deep=True)

    async def get_guild_config(self, guild_id: str) -> GuildNotificationConfig | None:
        async with self._lock:
            config = await self._load()
            guild = config.guilds.get(guild_id)
            return guild.model_copy() if guild is not None else None

    async def set_guild_config(self, guild_id: str, guild_config: GuildNotificationConfig) -> bool:
        """Store guild_config; the file is only written when something changed."""
        async with self._lock:
            config = await self._load()
            if config.guilds.get(guild_id) == guild_config:
                return False
            config.guilds[guild_id] = guild_config.model_copy()
            await self._save()
            logger.info("Guild notification config updated", stage="ST.3", guild_id=guild_id)
            return True

    async def remove_guild_config(self, guild_id: str) -> bool:
        async with self._lock:
            config = await self._load()
            if guild_id not in config.guilds:
                return False
            del config.guilds[guild_id]
            await self._save()
            return True

    async def add_guild_default(self, guild_id: str) -> bool:
        async with self._lock:
            config = await self._load()
            if guild_id in config.guilds:
                return False
            config.guilds[guild_id] = GuildNotificationConfig()
            await self._save()
            return True

    async def initialize_guild_defaults(self, guild_ids: Iterable[str]) -> bool:
        """
        Reconcile stored guilds with the guilds the bot is in.

        New guilds get the default entry; guilds no longer present are dropped.
        Returns True when the file was rewritten.
        """
        current = set(guild_ids)
        async with self._lock:
            config = await self._load()
            added = [guild_id for guild_id in current if guild_id not in config.guilds]
            removed = [guild_id for guild_id in config.guilds if guild_id not in current]

            for guild_id in added:
                config.guilds[guild_id] = GuildNotificationConfig()
            for guild_id in removed:
                del config.guilds[guild_id]

            if not added and not removed:
                return False

            await self._save()
            logger.info(
                "Guild defaults reconciled",
                stage="ST.4",
                added=len(added),
                removed=len(removed),
            )
            return True

    async def is_notification_enabled(self, guild_id: str) -> bool:
        guild = await self.get_guild_config(guild_id)
        return guild is not None and guild.enabled
