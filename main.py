#!/usr/bin/env python3
"""
Discord Trivia Bot - Main Entry Point

This script runs the trivia bot. Configure the bot in config.json
(see config.example.json) and set your Discord bot token there or in the
DISCORD_BOT_TOKEN environment variable.

Usage:
    python main.py

Environment Variables:
    DISCORD_BOT_TOKEN: Your Discord bot token (overrides config.json)
    TRIVIA_BOT_CONFIG: Path to the configuration file (default: config.json)
"""

import asyncio
import logging
import sys

from trivia_bot.bot import run_bot, setup_logging
from trivia_bot.config_manager import ConfigManager
from trivia_bot.exceptions import InvalidConfiguration


def load_settings(config_manager: ConfigManager):
    """Load and validate configuration, exiting on any problem."""
    try:
        return config_manager.load()
    except InvalidConfiguration as e:
        print(f"❌ Error: {e}")
        sys.exit(1)


async def run_bot_with_config():
    """Run the bot with configuration."""
    config_manager = ConfigManager()
    settings = load_settings(config_manager)

    setup_logging(settings.log_level, settings.log_directory)
    logging.getLogger(__name__).info(config_manager.get_settings_summary())

    if not settings.token:
        print("❌ Error: Discord bot token not configured!")
        print("Either:")
        print("  1. Set DISCORD_BOT_TOKEN environment variable")
        print("  2. Update the 'token' field in config.json")
        sys.exit(1)

    await run_bot(settings)


def main():
    try:
        print("🤖 Starting Discord Trivia Bot...")
        asyncio.run(run_bot_with_config())
    except KeyboardInterrupt:
        print("\n👋 Bot stopped by user")
    except InvalidConfiguration as e:
        print(f"❌ Refusing to start: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
