"""
Unit Tests for NotificationDispatcher
"""

from unittest.mock import AsyncMock

import pytest

from statusbot.services.notification_dispatcher import NotificationDispatcher
from statusbot.storage.notification_store import GuildNotificationConfig, GuildNotificationStore

ENABLED = "111111111111111111"
DISABLED = "222222222222222222"
NO_CHANNEL = "333333333333333333"


@pytest.fixture
async def store(tmp_path):
    store = GuildNotificationStore(tmp_path / "bot_notifications.json")
    await store.set_guild_config(ENABLED, GuildNotificationConfig(channelid="c-enabled", enabled=True))
    await store.set_guild_config(DISABLED, GuildNotificationConfig(channelid="c-disabled", enabled=False))
    await store.set_guild_config(NO_CHANNEL, GuildNotificationConfig(enabled=True))
    return store


@pytest.fixture
def sender():
    sender = AsyncMock()
    sender.send_message = AsyncMock()
    return sender


@pytest.mark.unit
class TestSend:
    @pytest.mark.asyncio
    async def test_enabled_guild_receives_message(self, store, sender):
        dispatcher = NotificationDispatcher(store, sender)

        assert await dispatcher.send(ENABLED, "Bot updated") is True
        sender.send_message.assert_awaited_once_with("c-enabled", "Bot updated")

    @pytest.mark.asyncio
    async def test_disabled_or_unknown_guild_skipped(self, store, sender):
        dispatcher = NotificationDispatcher(store, sender)

        assert await dispatcher.send(DISABLED, "x") is False
        assert await dispatcher.send("999999999999999999", "x") is False
        sender.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_channel_skipped(self, store, sender):
        dispatcher = NotificationDispatcher(store, sender)

        assert await dispatcher.send(NO_CHANNEL, "x") is False
        sender.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delivery_failure_returns_false(self, store, sender):
        sender.send_message.side_effect = RuntimeError("Missing Access")
        dispatcher = NotificationDispatcher(store, sender)

        assert await dispatcher.send(ENABLED, "x") is False


@pytest.mark.unit
class TestBroadcast:
    @pytest.mark.asyncio
    async def test_send_to_all_counts_deliveries(self, store, sender):
        dispatcher = NotificationDispatcher(store, sender)

        assert await dispatcher.send_to_all("Maintenance tonight") == 1
        sender.send_message.assert_awaited_once_with("c-enabled", "Maintenance tonight")
