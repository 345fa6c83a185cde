from __future__ import annotations

from typing import TYPE_CHECKING

import discord

from .models import AlreadyEntered, Cancelled, GiveawayValidationError, Joined

if TYPE_CHECKING:
    from .bot import GiveawayBot


class GiveawayView(discord.ui.View):
    def __init__(self, bot: "GiveawayBot", giveaway_id: str) -> None:
        super().__init__(timeout=None)
        self.bot = bot
        self.giveaway_id = giveaway_id

        participate_button = discord.ui.Button(
            label="🎁 Participate",
            style=discord.ButtonStyle.primary,
            custom_id=f"giveaway:participate:{giveaway_id}",
        )
        participate_button.callback = self.participate_callback  # type: ignore[assignment]
        self.add_item(participate_button)

        end_button = discord.ui.Button(
            label="END",
            style=discord.ButtonStyle.danger,
            custom_id=f"giveaway:end:{giveaway_id}",
        )
        end_button.callback = self.end_callback  # type: ignore[assignment]
        self.add_item(end_button)

    async def participate_callback(self, interaction: discord.Interaction) -> None:
        result = await self.bot.lifecycle.enter(self.giveaway_id, interaction.user.id)
        if isinstance(result, Joined):
            message = "You have successfully joined the giveaway!"
        elif isinstance(result, AlreadyEntered):
            message = "You are already participating in this giveaway!"
        else:
            message = "This giveaway is no longer active."
        await interaction.response.send_message(message, ephemeral=True)

    async def end_callback(self, interaction: discord.Interaction) -> None:
        if not isinstance(interaction.user, discord.Member) or not self.bot.is_admin(
            interaction.user
        ):
            await interaction.response.send_message(
                "Only administrators can end giveaways.", ephemeral=True
            )
            return
        result = await self.bot.lifecycle.cancel(self.giveaway_id)
        if isinstance(result, Cancelled):
            message = "Giveaway ended with no winners."
        else:
            message = "This giveaway is no longer active."
        await interaction.response.send_message(message, ephemeral=True)


class GiveawayCreateModal(discord.ui.Modal, title="Create Giveaway"):
    prize = discord.ui.TextInput(
        label="Prize",
        style=discord.TextStyle.short,
        required=True,
    )
    end_time = discord.ui.TextInput(
        label="End Time (e.g., 5:30PM)",
        style=discord.TextStyle.short,
        required=True,
        placeholder="Format: 5:30PM or 11:45AM",
    )
    winners = discord.ui.TextInput(
        label="Number of Winners",
        style=discord.TextStyle.short,
        required=True,
        placeholder="Enter a number",
    )
    description = discord.ui.TextInput(
        label="Description (Optional)",
        style=discord.TextStyle.paragraph,
        required=False,
    )

    def __init__(self, bot: "GiveawayBot", channel_id: int) -> None:
        super().__init__()
        self.bot = bot
        self.channel_id = channel_id
        self.prize.max_length = bot.config.limits.prize_max_length
        self.description.max_length = bot.config.limits.description_max_length

    async def on_submit(self, interaction: discord.Interaction) -> None:
        try:
            giveaway = await self.bot.lifecycle.create(
                self.prize.value,
                self.description.value,
                self.winners.value,
                self.end_time.value,
                self.channel_id,
            )
        except GiveawayValidationError as exc:
            await interaction.response.send_message(f"Error: {exc}", ephemeral=True)
            return
        await interaction.response.send_message(
            f"Giveaway created successfully! (ID: `{giveaway.id}`, times shown in "
            f"{self.bot.lifecycle.timezone})",
            ephemeral=True,
        )
