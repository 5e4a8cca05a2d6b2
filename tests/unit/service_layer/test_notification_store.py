"""
Unit Tests for GuildNotificationStore

File round trips in tmp_path, corrupt-file recovery, write-on-change and
guild reconciliation.
"""

import asyncio
from unittest.mock import patch

import orjson
import pytest

from statusbot.core.exceptions import StorageError
from statusbot.storage.notification_store import (
    GuildNotificationConfig,
    GuildNotificationStore,
)

GUILD_A = "111111111111111111"
GUILD_B = "222222222222222222"
CHANNEL = "333333333333333333"


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "bot_notifications.json"


@pytest.fixture
def store(store_path):
    return GuildNotificationStore(store_path)


def _read(path):
    return orjson.loads(path.read_bytes())


@pytest.mark.unit
class TestLoading:
    @pytest.mark.asyncio
    async def test_missing_file_creates_default(self, store, store_path):
        config = await store.get_config()

        assert config.guilds == {}
        assert _read(store_path) == {"guilds": {}}

    @pytest.mark.asyncio
    async def test_corrupt_file_replaced_with_default(self, store, store_path):
        store_path.write_text("{not json")

        config = await store.get_config()

        assert config.guilds == {}
        assert _read(store_path) == {"guilds": {}}

    @pytest.mark.asyncio
    async def test_existing_file_loaded(self, store, store_path):
        store_path.write_bytes(orjson.dumps({
            "guilds": {GUILD_A: {"bot_notification": "enabled", "channelid": CHANNEL, "enabled": True}}
        }))

        guild = await store.get_guild_config(GUILD_A)

        assert guild == GuildNotificationConfig(bot_notification="enabled", channelid=CHANNEL, enabled=True)

    @pytest.mark.asyncio
    async def test_missing_fields_take_defaults(self, store, store_path):
        store_path.write_bytes(orjson.dumps({"guilds": {GUILD_A: {"enabled": True}}}))

        guild = await store.get_guild_config(GUILD_A)

        assert guild.channelid == ""
        assert guild.bot_notification == "disabled"

    @pytest.mark.asyncio
    async def test_concurrent_first_loads_read_once(self, store, store_path):
        store_path.write_bytes(orjson.dumps({"guilds": {}}))

        with patch("statusbot.storage.notification_store.orjson.loads", wraps=orjson.loads) as loads:
            await asyncio.gather(*(store.get_config() for _ in range(5)))

        assert loads.call_count == 1

    @pytest.mark.asyncio
    async def test_returned_config_is_a_copy(self, store):
        await store.add_guild_default(GUILD_A)

        config = await store.get_config()
        config.guilds[GUILD_A].enabled = True

        assert (await store.get_guild_config(GUILD_A)).enabled is False


@pytest.mark.unit
class TestMutations:
    @pytest.mark.asyncio
    async def test_set_writes_file(self, store, store_path):
        changed = await store.set_guild_config(
            GUILD_A, GuildNotificationConfig(channelid=CHANNEL, enabled=True)
        )

        assert changed is True
        assert _read(store_path)["guilds"][GUILD_A] == {
            "bot_notification": "disabled",
            "channelid": CHANNEL,
            "enabled": True,
        }
        assert not store_path.with_name("bot_notifications.json.tmp").exists()

    @pytest.mark.asyncio
    async def test_unchanged_config_not_rewritten(self, store, store_path):
        guild = GuildNotificationConfig(channelid=CHANNEL, enabled=True)
        await store.set_guild_config(GUILD_A, guild)
        mtime = store_path.stat().st_mtime_ns

        changed = await store.set_guild_config(GUILD_A, guild.model_copy())

        assert changed is False
        assert store_path.stat().st_mtime_ns == mtime

    @pytest.mark.asyncio
    async def test_is_notification_enabled(self, store):
        await store.set_guild_config(GUILD_A, GuildNotificationConfig(enabled=True))
        await store.add_guild_default(GUILD_B)

        assert await store.is_notification_enabled(GUILD_A) is True
        assert await store.is_notification_enabled(GUILD_B) is False
        assert await store.is_notification_enabled("999999999999999999") is False

    @pytest.mark.asyncio
    async def test_add_default_only_once(self, store):
        assert await store.add_guild_default(GUILD_A) is True
        assert await store.add_guild_default(GUILD_A) is False

    @pytest.mark.asyncio
    async def test_remove(self, store, store_path):
        await store.add_guild_default(GUILD_A)

        assert await store.remove_guild_config(GUILD_A) is True
        assert await store.remove_guild_config(GUILD_A) is False
        assert _read(store_path) == {"guilds": {}}

    @pytest.mark.asyncio
    async def test_state_survives_new_instance(self, store, store_path):
        await store.set_guild_config(GUILD_A, GuildNotificationConfig(channelid=CHANNEL, enabled=True))

        reopened = GuildNotificationStore(store_path)

        assert (await reopened.get_guild_config(GUILD_A)).channelid == CHANNEL

    @pytest.mark.asyncio
    async def test_save_failure_raises_storage_error(self, tmp_path):
        store = GuildNotificationStore(tmp_path / "missing-dir" / "bot_notifications.json")

        with pytest.raises(StorageError, match="Failed to save notification config"):
            await store.get_config()


@pytest.mark.unit
class TestGuildReconciliation:
    @pytest.mark.asyncio
    async def test_adds_new_and_drops_departed_guilds(self, store, store_path):
        await store.set_guild_config(GUILD_A, GuildNotificationConfig(enabled=True))

        changed = await store.initialize_guild_defaults([GUILD_B])

        assert changed is True
        assert set(_read(store_path)["guilds"]) == {GUILD_B}

    @pytest.mark.asyncio
    async def test_existing_guild_settings_preserved(self, store):
        await store.set_guild_config(GUILD_A, GuildNotificationConfig(channelid=CHANNEL, enabled=True))

        await store.initialize_guild_defaults([GUILD_A, GUILD_B])

        assert (await store.get_guild_config(GUILD_A)).enabled is True
        assert (await store.get_guild_config(GUILD_B)).enabled is False

    @pytest.mark.asyncio
    async def test_no_change_no_write(self, store, store_path):
        await store.initialize_guild_defaults([GUILD_A])
        mtime = store_path.stat().st_mtime_ns

        assert await store.initialize_guild_defaults([GUILD_A]) is False
        assert store_path.stat().st_mtime_ns == mtime
