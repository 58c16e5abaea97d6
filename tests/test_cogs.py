import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from fakes import make_message
from mediakeeper.cog.commands import channel_cmds
from mediakeeper.cog.listener import events_listener, message_listener, scheduler_cog
from mediakeeper.configuration.channel_store import ChannelStore


def _bot():
    return SimpleNamespace(user=SimpleNamespace(id=1), close=AsyncMock(), wait_until_ready=AsyncMock())


def test_setup_functions_add_cogs(tmp_path):
    added = []
    fake_bot = SimpleNamespace(add_cog=added.append)
    store = ChannelStore(tmp_path / "channels.json")
    service = SimpleNamespace()

    events_listener.setup(fake_bot, store)
    message_listener.setup(fake_bot, service)
    scheduler_cog.setup(fake_bot, service, lambda: 0.5)
    channel_cmds.setup(fake_bot, store)

    assert [type(cog) for cog in added] == [
        events_listener.EventsListenerCog,
        message_listener.MessageListenerCog,
        scheduler_cog.SweepSchedulerCog,
        channel_cmds.ChannelCommandsCog,
    ]


# --------------------------
# Events listener
# --------------------------
@pytest.mark.asyncio
async def test_on_ready_loads_channel_list_once(tmp_path):
    path = tmp_path / "channels.json"
    path.write_text(json.dumps(["500"]), encoding="utf-8")
    store = ChannelStore(path)
    cog = events_listener.EventsListenerCog(_bot(), store)

    await cog.on_ready()
    path.write_text(json.dumps(["600"]), encoding="utf-8")
    await cog.on_ready()

    assert store.channel_ids == ["500"]


@pytest.mark.asyncio
async def test_on_ready_with_broken_channel_file_closes_bot(tmp_path):
    path = tmp_path / "channels.json"
    path.write_text("{broken", encoding="utf-8")
    store = ChannelStore(path)
    bot = _bot()
    cog = events_listener.EventsListenerCog(bot, store)

    await cog.on_ready()

    assert store.load_error is not None
    bot.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_on_ready_closes_bot_when_channel_file_cannot_be_created(tmp_path):
    blocker = tmp_path / "config"
    blocker.write_text("not a directory", encoding="utf-8")
    store = ChannelStore(blocker / "channels.json")
    bot = _bot()
    cog = events_listener.EventsListenerCog(bot, store)

    await cog.on_ready()

    assert "Failed to create" in str(store.load_error)
    bot.close.assert_awaited_once()


# --------------------------
# Message listener
# --------------------------
@pytest.mark.asyncio
async def test_on_message_forwards_to_service():
    service = SimpleNamespace(handle_message=AsyncMock())
    cog = message_listener.MessageListenerCog(_bot(), service)
    message = make_message()

    await cog.on_message(message)

    service.handle_message.assert_awaited_once_with(message)


@pytest.mark.asyncio
async def test_on_message_contains_service_errors():
    service = SimpleNamespace(handle_message=AsyncMock(side_effect=RuntimeError("boom")))
    cog = message_listener.MessageListenerCog(_bot(), service)

    await cog.on_message(make_message())


@pytest.mark.asyncio
async def test_raw_delete_forwards_message_id_to_service():
    service = SimpleNamespace(handle_message_deleted=Mock())
    cog = message_listener.MessageListenerCog(_bot(), service)

    await cog.on_raw_message_delete(SimpleNamespace(message_id=11, channel_id=500))

    service.handle_message_deleted.assert_called_once_with(11)


# --------------------------
# Sweep scheduler
# --------------------------
@pytest.mark.asyncio
async def test_tick_runs_one_sweep():
    service = SimpleNamespace(sweep=AsyncMock(return_value=2))
    cog = scheduler_cog.SweepSchedulerCog(_bot(), service, lambda: 0.5)

    await cog.tick()

    service.sweep.assert_awaited_once()


@pytest.mark.asyncio
async def test_tick_survives_sweep_failure():
    service = SimpleNamespace(sweep=AsyncMock(side_effect=[RuntimeError("boom"), 0]))
    cog = scheduler_cog.SweepSchedulerCog(_bot(), service, lambda: 0.5)

    await cog.tick()
    await cog.tick()

    assert service.sweep.await_count == 2


def test_unload_stops_loop_and_cancels_migrations():
    service = SimpleNamespace(sweep=AsyncMock(return_value=0), cancel_migrations=Mock())
    cog = scheduler_cog.SweepSchedulerCog(_bot(), service, lambda: 0.5)

    cog.cog_unload()

    service.cancel_migrations.assert_called_once_with()
    assert not cog._sweep_task.is_running()


# --------------------------
# /mediaonly commands
# --------------------------
def _ctx(*, manage_channels=True, guild_id=1, channel_id=500, known_channels=(500, 600)):
    guild = SimpleNamespace(get_channel=lambda channel_id: object() if channel_id in known_channels else None)
    return SimpleNamespace(
        guild_id=guild_id,
        guild=guild,
        channel=SimpleNamespace(id=channel_id),
        user=SimpleNamespace(guild_permissions=SimpleNamespace(manage_channels=manage_channels)),
        respond=AsyncMock(),
    )


@pytest.fixture
def store(tmp_path):
    channel_store = ChannelStore(tmp_path / "channels.json")
    channel_store.load()
    return channel_store


@pytest.mark.asyncio
async def test_add_defaults_to_current_channel(store):
    cog = channel_cmds.ChannelCommandsCog(SimpleNamespace(), store)
    ctx = _ctx()

    await channel_cmds.ChannelCommandsCog.add_channel.callback(cog, ctx, None)

    assert 500 in store
    assert "now media-only" in ctx.respond.call_args.args[0]
    assert ctx.respond.call_args.kwargs["ephemeral"] is True

    await channel_cmds.ChannelCommandsCog.add_channel.callback(cog, ctx, None)
    assert "already media-only" in ctx.respond.call_args.args[0]


@pytest.mark.asyncio
async def test_remove_explicit_channel(store):
    store.add(600)
    cog = channel_cmds.ChannelCommandsCog(SimpleNamespace(), store)
    ctx = _ctx()

    await channel_cmds.ChannelCommandsCog.remove_channel.callback(cog, ctx, SimpleNamespace(id=600))

    assert 600 not in store
    assert "no longer media-only" in ctx.respond.call_args.args[0]

    await channel_cmds.ChannelCommandsCog.remove_channel.callback(cog, ctx, SimpleNamespace(id=600))
    assert "is not media-only" in ctx.respond.call_args.args[0]


@pytest.mark.asyncio
async def test_commands_require_manage_channels(store):
    cog = channel_cmds.ChannelCommandsCog(SimpleNamespace(), store)
    ctx = _ctx(manage_channels=False)

    await channel_cmds.ChannelCommandsCog.add_channel.callback(cog, ctx, None)

    assert 500 not in store
    assert "Manage Channels" in ctx.respond.call_args.args[0]


@pytest.mark.asyncio
async def test_commands_require_guild(store):
    cog = channel_cmds.ChannelCommandsCog(SimpleNamespace(), store)
    ctx = _ctx(guild_id=None)

    await channel_cmds.ChannelCommandsCog.list_channels.callback(cog, ctx)

    assert "only be used in a server" in ctx.respond.call_args.args[0]


@pytest.mark.asyncio
async def test_list_shows_only_channels_of_this_guild(store):
    for channel_id in (500, 600, 999):
        store.add(channel_id)
    cog = channel_cmds.ChannelCommandsCog(SimpleNamespace(), store)
    ctx = _ctx()

    await channel_cmds.ChannelCommandsCog.list_channels.callback(cog, ctx)

    embed = ctx.respond.call_args.kwargs["embed"]
    assert embed.description == "<#500>\n<#600>"
