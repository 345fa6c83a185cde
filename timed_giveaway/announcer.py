"""Discord rendering of giveaway announcements."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

import discord

from .models import AnnouncementState, Giveaway
from .views import GiveawayView

if TYPE_CHECKING:
    from .bot import GiveawayBot

log = logging.getLogger(__name__)


def mention_list(user_ids) -> str:
    return ", ".join(f"<@{user_id}>" for user_id in user_ids)


def build_embed(announcement: AnnouncementState) -> discord.Embed:
    """Build the announcement embed for an open or finished giveaway."""
    if not announcement.resolved:
        lines = [f"**Prize:** {announcement.prize}"]
        if announcement.description:
            lines.append(f"**Description:** {announcement.description}")
        lines.append("")
        lines.append(f"**Winners:** {announcement.winner_count}")
        lines.append(f"**Participants:** {announcement.participant_count}")
        lines.append(f"**Ends:** {announcement.expires_at}")
        title = "🎉 Giveaway Active"
        color = discord.Color.green()
    elif announcement.cancelled:
        lines = [
            f"**Prize:** {announcement.prize}",
            "",
            "❌ Giveaway ended by administrator with no winners.",
        ]
        title = "🎉 Giveaway Ended"
        color = discord.Color.red()
    elif announcement.no_participants:
        lines = [
            f"**Prize:** {announcement.prize}",
            "",
            "❌ No participants joined this giveaway.",
        ]
        title = "🎉 Giveaway Ended"
        color = discord.Color.red()
    else:
        lines = [
            f"**Prize:** {announcement.prize}",
            "",
            f"🏆 **Winners:** {mention_list(announcement.winners)}",
            "",
            f"**Total Participants:** {announcement.participant_count}",
        ]
        title = "🎉 Giveaway Ended"
        color = discord.Color.green()

    embed = discord.Embed(title=title, description="\n".join(lines), color=color)
    embed.set_footer(text=f"Giveaway ID: {announcement.giveaway_id}")
    embed.timestamp = discord.utils.utcnow()
    return embed


class DiscordAnnouncer:
    """Posts and edits giveaway announcements in the giveaway's channel."""

    def __init__(self, bot: "GiveawayBot") -> None:
        self.bot = bot

    async def render(
        self, giveaway: Giveaway, announcement: AnnouncementState
    ) -> Optional[int]:
        channel = await self._fetch_text_channel(giveaway.entry_point)
        if channel is None:
            log.warning(
                "Unable to locate channel %s for giveaway %s",
                giveaway.entry_point,
                giveaway.id,
            )
            return None

        embed = build_embed(announcement)
        if giveaway.message_ref is None:
            if announcement.resolved:
                return None
            try:
                message = await channel.send(
                    embed=embed, view=GiveawayView(self.bot, giveaway.id)
                )
            except discord.HTTPException as exc:
                log.warning("Failed to post giveaway %s: %s", giveaway.id, exc)
                return None
            return message.id

        message = await self._fetch_message(channel, giveaway.message_ref)
        try:
            if announcement.resolved:
                if message:
                    await message.edit(embed=embed, view=None)
                if announcement.winners:
                    await channel.send(
                        f"🎉 Congratulations {mention_list(announcement.winners)}! "
                        f"You won: **{announcement.prize}**"
                    )
            elif message:
                await message.edit(embed=embed)
        except discord.HTTPException as exc:
            log.warning("Failed to update giveaway %s: %s", giveaway.id, exc)
        return None

    async def _fetch_text_channel(self, channel_id: Any) -> Optional[discord.TextChannel]:
        channel = self.bot.get_channel(channel_id)
        if isinstance(channel, discord.TextChannel):
            return channel
        try:
            fetched = await self.bot.fetch_channel(channel_id)
        except (discord.NotFound, discord.Forbidden, discord.HTTPException):
            return None
        return fetched if isinstance(fetched, discord.TextChannel) else None

    async def _fetch_message(
        self, channel: discord.TextChannel, message_id: int
    ) -> Optional[discord.Message]:
        try:
            return await channel.fetch_message(message_id)
        except (discord.NotFound, discord.Forbidden, discord.HTTPException):
            return None
