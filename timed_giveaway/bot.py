from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from .announcer import DiscordAnnouncer, mention_list
from .config import Config, ConfigError, load_config
from .lifecycle import GiveawayLifecycle
from .models import NoParticipants, NotFound, Winners
from .scanner import ExpiryScanner
from .views import GiveawayCreateModal


PERMISSION_LOG = logging.getLogger("giveaway.permissions")
ENV_PATH = Path(".env")


def _load_env_file(path: Path = ENV_PATH) -> None:
    if not path.exists():
        return
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return
    for line in raw.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        key = key.strip()
        if not key:
            continue
        value = value.strip()
        if value and ((value[0] == value[-1]) and value.startswith(("'", '"'))):
            value = value[1:-1]
        os.environ.setdefault(key, value)


def configure_logging(level: str) -> None:
    console_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_dir = Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_dir / "log.txt", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)


class GiveawayBot(commands.Bot):
    def __init__(self, config: Config) -> None:
        intents = discord.Intents.default()

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            application_id=config.application_id,
        )
        self.config = config
        self.lifecycle = GiveawayLifecycle.from_config(
            config, renderer=DiscordAnnouncer(self)
        )
        self.scanner = ExpiryScanner(
            self.lifecycle, interval_seconds=config.scanner.interval_seconds
        )

    async def setup_hook(self) -> None:
        self.scanner.start()
        await self.tree.sync()
        dev_guild_id = self.config.permissions.development_guild_id
        if dev_guild_id:
            guild = discord.Object(dev_guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)

    async def close(self) -> None:
        self.scanner.stop()
        await super().close()

    async def on_ready(self) -> None:
        logging.getLogger(__name__).info(
            "Logged in as %s (%s)", self.user, self.user.id
        )  # type: ignore[attr-defined]

    def is_admin(self, member: discord.Member) -> bool:
        guild = getattr(member, "guild", None)
        if guild is not None and guild.owner_id == member.id:
            PERMISSION_LOG.debug("Member %s is guild owner; treating as giveaway admin.", member.id)
            return True

        permissions = member.guild_permissions
        if permissions.administrator or permissions.manage_guild:
            PERMISSION_LOG.debug(
                "Member %s has administrative permissions; treating as giveaway admin.",
                member.id,
            )
            return True

        admin_roles = set(self.config.permissions.admin_roles)
        matching_roles = sorted(admin_roles.intersection(role.id for role in member.roles))
        if matching_roles:
            PERMISSION_LOG.debug(
                "Member %s matched giveaway admin role(s) %s.", member.id, matching_roles
            )
            return True

        PERMISSION_LOG.debug(
            "Member %s lacks required giveaway admin roles %s.",
            member.id,
            sorted(admin_roles),
        )
        return False


def admin_required(interaction: discord.Interaction, bot: GiveawayBot) -> Optional[str]:
    command_name = getattr(getattr(interaction, "command", None), "name", "unknown")
    if interaction.guild is None or not isinstance(interaction.user, discord.Member):
        return "This command can only be used inside a guild."

    channel_id = bot.config.giveaway_channel_id
    if channel_id and interaction.channel_id != channel_id:
        return f"Giveaways can only be managed in <#{channel_id}>."

    if not bot.is_admin(interaction.user):
        PERMISSION_LOG.warning(
            "Denied command %s for user %s: missing giveaway admin rights.",
            command_name,
            interaction.user.id,
        )
        return "You do not have permission to manage giveaways."
    return None


def build_bot(config_path: Path) -> GiveawayBot:
    _load_env_file()
    config = load_config(config_path)
    configure_logging(config.logging.level)
    return GiveawayBot(config)


def register_commands(bot: GiveawayBot) -> None:
    @bot.tree.command(name="gcreate", description="Create a giveaway in this channel.")
    async def giveaway_create(interaction: discord.Interaction) -> None:
        error = admin_required(interaction, bot)
        if error:
            await interaction.response.send_message(error, ephemeral=True)
            return
        await interaction.response.send_modal(
            GiveawayCreateModal(bot, interaction.channel_id)
        )

    @bot.tree.command(name="gend", description="End the active giveaway in this channel now.")
    async def giveaway_end(interaction: discord.Interaction) -> None:
        error = admin_required(interaction, bot)
        if error:
            await interaction.response.send_message(error, ephemeral=True)
            return

        await interaction.response.defer(ephemeral=True)
        result = await bot.lifecycle.close_for_entry_point(interaction.channel_id)
        if isinstance(result, NotFound):
            await interaction.followup.send(
                "No active giveaway found in this channel.", ephemeral=True
            )
        elif isinstance(result, NoParticipants):
            await interaction.followup.send(
                f"Giveaway for **{result.prize}** ended without participants.",
                ephemeral=True,
            )
        elif isinstance(result, Winners):
            await interaction.followup.send(
                f"Giveaway ended manually! Winners: {mention_list(result.winners)}",
                ephemeral=True,
            )


async def main() -> None:
    parser = argparse.ArgumentParser(description="Timed Discord Giveaway Bot")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config") / "config.yaml",
        help="Path to the bot configuration file.",
    )
    args = parser.parse_args()

    try:
        bot = build_bot(args.config)
    except ConfigError as exc:
        raise SystemExit(f"Configuration error: {exc}") from exc

    register_commands(bot)

    async with bot:
        await bot.start(bot.config.token)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
