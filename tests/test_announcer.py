"""Tests for the announcement embed and the Discord render hook."""

import logging
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import discord

from timed_giveaway.announcer import DiscordAnnouncer, build_embed, mention_list
from timed_giveaway.models import AnnouncementState, Giveaway
from timed_giveaway.views import GiveawayView


def make_announcement(**overrides) -> AnnouncementState:
    values = dict(
        giveaway_id="abc",
        prize="Nitro",
        description="One month",
        winner_count=2,
        participant_count=4,
        expires_at="2024-01-01 17:30 CET",
        timezone="Europe/Berlin",
    )
    values.update(overrides)
    return AnnouncementState(**values)


def test_mention_list():
    assert mention_list([1, 2]) == "<@1>, <@2>"


def test_active_embed():
    embed = build_embed(make_announcement())
    assert embed.title == "🎉 Giveaway Active"
    assert "**Prize:** Nitro" in embed.description
    assert "**Description:** One month" in embed.description
    assert "**Participants:** 4" in embed.description
    assert "**Ends:** 2024-01-01 17:30 CET" in embed.description
    assert embed.footer.text == "Giveaway ID: abc"


def test_active_embed_without_description():
    embed = build_embed(make_announcement(description=None))
    assert "Description" not in embed.description


def test_winner_embed():
    embed = build_embed(make_announcement(resolved=True, winners=(10, 20)))
    assert embed.title == "🎉 Giveaway Ended"
    assert "<@10>, <@20>" in embed.description
    assert "**Total Participants:** 4" in embed.description
    assert embed.color == discord.Color.green()


def test_no_participant_embed():
    embed = build_embed(
        make_announcement(resolved=True, no_participants=True, participant_count=0)
    )
    assert "No participants joined" in embed.description
    assert embed.color == discord.Color.red()


def test_cancelled_embed():
    embed = build_embed(make_announcement(resolved=True, cancelled=True))
    assert "ended by administrator with no winners" in embed.description


async def test_render_skips_missing_channel():
    bot = MagicMock()
    bot.get_channel.return_value = None
    bot.fetch_channel = AsyncMock(return_value=object())
    giveaway = MagicMock(entry_point=1, message_ref=None, id="abc")

    announcer = DiscordAnnouncer(bot)

    assert await announcer.render(giveaway, make_announcement()) is None


def make_giveaway(message_ref=None) -> Giveaway:
    return Giveaway(
        id="abc",
        prize="Nitro",
        description="One month",
        winner_count=2,
        expires_at=datetime(2024, 1, 1, 16, 30, tzinfo=UTC),
        entry_point=1,
        message_ref=message_ref,
    )


def make_bot():
    message = MagicMock()
    message.id = 777
    message.edit = AsyncMock()

    channel = MagicMock(spec=discord.TextChannel)
    channel.send = AsyncMock(return_value=message)
    channel.fetch_message = AsyncMock(return_value=message)

    bot = MagicMock()
    bot.get_channel.return_value = channel
    return bot, channel, message


def http_error() -> discord.HTTPException:
    return discord.HTTPException(MagicMock(status=500, reason="Server Error"), "boom")


async def test_first_render_posts_announcement_with_buttons():
    bot, channel, _ = make_bot()
    announcer = DiscordAnnouncer(bot)

    handle = await announcer.render(make_giveaway(), make_announcement(participant_count=0))

    assert handle == 777
    channel.send.assert_awaited_once()
    kwargs = channel.send.await_args.kwargs
    assert isinstance(kwargs["view"], GiveawayView)
    assert kwargs["view"].giveaway_id == "abc"
    custom_ids = [item.custom_id for item in kwargs["view"].children]
    assert custom_ids == ["giveaway:participate:abc", "giveaway:end:abc"]
    assert kwargs["embed"].title == "🎉 Giveaway Active"


async def test_entry_edits_existing_announcement():
    bot, channel, message = make_bot()
    announcer = DiscordAnnouncer(bot)

    handle = await announcer.render(make_giveaway(777), make_announcement(participant_count=5))

    assert handle is None
    channel.fetch_message.assert_awaited_once_with(777)
    message.edit.assert_awaited_once()
    embed = message.edit.await_args.kwargs["embed"]
    assert "**Participants:** 5" in embed.description
    assert "view" not in message.edit.await_args.kwargs
    channel.send.assert_not_awaited()


async def test_resolution_removes_buttons_and_congratulates():
    bot, channel, message = make_bot()
    announcer = DiscordAnnouncer(bot)

    await announcer.render(
        make_giveaway(777), make_announcement(resolved=True, winners=(10, 20))
    )

    message.edit.assert_awaited_once()
    assert message.edit.await_args.kwargs["view"] is None
    assert message.edit.await_args.kwargs["embed"].title == "🎉 Giveaway Ended"
    channel.send.assert_awaited_once_with(
        "🎉 Congratulations <@10>, <@20>! You won: **Nitro**"
    )


async def test_no_congratulations_without_winners():
    for announcement in (
        make_announcement(resolved=True, no_participants=True, participant_count=0),
        make_announcement(resolved=True, cancelled=True),
    ):
        bot, channel, message = make_bot()
        await DiscordAnnouncer(bot).render(make_giveaway(777), announcement)

        assert message.edit.await_args.kwargs["view"] is None
        channel.send.assert_not_awaited()


async def test_resolution_before_posting_is_skipped():
    bot, channel, _ = make_bot()
    await DiscordAnnouncer(bot).render(
        make_giveaway(), make_announcement(resolved=True, no_participants=True)
    )
    channel.send.assert_not_awaited()


async def test_http_errors_are_logged_not_raised(caplog):
    bot, channel, message = make_bot()
    channel.send.side_effect = http_error()
    message.edit.side_effect = http_error()
    announcer = DiscordAnnouncer(bot)

    with caplog.at_level(logging.WARNING, logger="timed_giveaway.announcer"):
        assert await announcer.render(make_giveaway(), make_announcement()) is None
        assert await announcer.render(make_giveaway(777), make_announcement()) is None
        assert (
            await announcer.render(
                make_giveaway(777), make_announcement(resolved=True, winners=(10,))
            )
            is None
        )

    assert "Failed to post giveaway abc" in caplog.text
    assert "Failed to update giveaway abc" in caplog.text
