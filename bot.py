import aiohttp
import discord
import logging
import os
import sys
from discord.ext import commands
from aiohttp import web
from typing import Optional

from cogs_verification.settings import ConfigError, Settings
from keepalive import start_keepalive


logger = logging.getLogger("relaybot")

COGS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "cogs")


class RelayBot(commands.Bot):
    def __init__(self, settings: Settings):
        self.settings = settings
        self.token = settings.token

        # Initialize intents
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True

        # Call parent constructor
        super().__init__(
            command_prefix=settings.command_prefix,
            help_command=None,
            intents=intents,
            description="Gold / damage report verification relay"
        )

        self.session: Optional[aiohttp.ClientSession] = None
        self.keepalive: Optional[web.AppRunner] = None


    async def setup_hook(self) -> None:
        """
        Open shared resources and load extensions.
        """
        try:
            # Create aiohttp session
            self.session = aiohttp.ClientSession()
            # Health check endpoint
            self.keepalive = await start_keepalive(self.settings.port)
            # Load all cogs
            await self.load_cogs()
        except Exception:
            logger.exception("Error in setup")
            raise


    async def load_cogs(self) -> None:
        """
        Load all cogs from the cogs directory.
        """
        loaded_cogs = 0
        for file in sorted(os.listdir(COGS_DIR)):
            if file.startswith("cog") and file.endswith(".py"):
                await self.load_extension(f"cogs.{file[:-3]}")
                loaded_cogs += 1

        logger.info("Successfully loaded %s cogs", loaded_cogs)


    async def close(self):
        """
        Clean up resources on bot shutdown.
        """
        if self.session:
            await self.session.close()
        if self.keepalive:
            await self.keepalive.cleanup()
        await super().close()


    async def on_ready(self) -> None:
        """
        Handler for when the bot is ready.
        """
        try:
            await self.change_presence(
                activity=discord.Game(f'Verifying reports | {self.settings.command_prefix}verify')
            )
            logger.info("Logged in as %s (ID: %s)", self.user, self.user.id)
        except Exception:
            logger.exception("Error in on_ready")


def main():
    """
    Main entry point for the bot.
    """
    discord.utils.setup_logging()

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    bot = RelayBot(settings)
    bot.run(bot.token, log_handler=None)


if __name__ == "__main__":
    main()
