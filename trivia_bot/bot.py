import discord
from discord.ext import commands
import logging
from pathlib import Path
from typing import Optional

from .command_handler import CommandHandler
from .data_manager import DataManager
from .messages import LocaleStrings
from .models import BotSettings
from .quiz_controller import QuizController
from .score_store import ScoreStore

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_directory: str = "./logs/"):
    """Set up logging to the console, bot.log and errors.log."""
    logs_dir = Path(log_directory)
    logs_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),  # Console output
            logging.FileHandler(logs_dir / "bot.log", encoding='utf-8'),  # File output
        ]
    )

    # Set up error-specific logging
    error_handler = logging.FileHandler(logs_dir / "errors.log", encoding='utf-8')
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logging.getLogger().addHandler(error_handler)

    logging.getLogger('discord').setLevel(logging.WARNING)  # Reduce discord.py noise
    logging.getLogger('discord.http').setLevel(logging.WARNING)

    return logging.getLogger(__name__)


class DiscordMessenger:
    """Posts text messages to Discord channels."""

    def __init__(self, client: discord.Client):
        self.client = client

    async def send(self, channel_id: int, text: str) -> Optional[discord.Message]:
        """Send a message; failures are logged and return None."""
        try:
            channel = self.client.get_channel(channel_id)
            if channel is None:
                channel = await self.client.fetch_channel(channel_id)
            return await channel.send(text)
        except discord.Forbidden:
            logger.error(f"Missing permission to send messages in channel {channel_id}")
        except discord.NotFound:
            logger.error(f"Channel {channel_id} not found")
        except discord.HTTPException as e:
            logger.error(f"HTTP error while sending to channel {channel_id}: {e}")
        return None


class QuizBot(commands.Bot):
    """Discord bot that runs a trivia loop in a single channel"""

    def __init__(self, settings: BotSettings):
        intents = discord.Intents.default()
        intents.message_content = True  # Answers and commands are plain chat messages

        super().__init__(
            command_prefix=commands.when_mentioned,  # Chat commands are resolved in on_message
            intents=intents,
            help_command=None
        )

        self.settings = settings
        self.messenger = DiscordMessenger(self)

        # Initialized in setup_hook
        self.score_store: Optional[ScoreStore] = None
        self.locale: Optional[LocaleStrings] = None
        self.quiz_controller: Optional[QuizController] = None
        self.command_handler: Optional[CommandHandler] = None

    async def setup_hook(self):
        """Called when the bot is starting up"""
        try:
            logger.info("Setting up bot components...")
            if self.quiz_controller is None:
                self.build_components()
            logger.info("Bot setup completed successfully")
        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            raise

    def build_components(self):
        """Load questions and language files and wire up the quiz components."""
        questions = DataManager(self.settings.questions_file).load_questions()
        self.locale = LocaleStrings.from_file(self.settings.language_file)
        self.score_store = ScoreStore(self.settings.score_file)
        self.quiz_controller = QuizController(
            questions,
            self.settings.quiz,
            self.messenger,
            self.score_store,
            self.locale,
            self.settings.channel_id
        )
        self.command_handler = CommandHandler(
            self.quiz_controller,
            self.score_store,
            self.messenger,
            self.locale,
            self.settings.commands,
            self.settings.channel_admin_id
        )

    async def on_ready(self):
        """Called when the bot has successfully connected to Discord"""
        logger.info(f"Bot is ready! Logged in as {self.user}")
        logger.info(f"Bot is in {len(self.guilds)} guilds")

        if self.quiz_controller.countdown is None:
            self.quiz_controller.start_ticking()
            logger.info(
                f"Bot running. Make sure to start it using \"{self.settings.commands.start}\""
            )

    async def on_message(self, message: discord.Message):
        """Route chat lines in the quiz channel to commands or answers"""
        if message.author == self.user or message.author.bot:
            logger.debug(f"Message was sent from a bot. Ignoring it: {message.content}")
            return

        if message.channel.id != self.settings.channel_id:
            return

        if self.quiz_controller is None or self.command_handler is None:
            return

        # Scores and admin rights follow the user id, the display name is only shown
        user_id = str(message.author.id)
        display_name = message.author.display_name
        text = message.content.lower()

        if await self.command_handler.handle(user_id, text.strip(), display_name):
            logger.debug(f"Message was command. Skipping check for answer: {text}")
            return

        self.quiz_controller.submit_answer(user_id, text, display_name)

    async def on_error(self, event, *args, **kwargs):
        """Handle general bot errors"""
        logger.error(f"An error occurred in event {event}", exc_info=True)

    async def close(self):
        """Stop the quiz timers before disconnecting"""
        if self.quiz_controller is not None:
            await self.quiz_controller.shutdown()
        await super().close()


async def run_bot(settings: BotSettings):
    """Run the bot with proper error handling"""
    if not settings.token:
        logger.error("No Discord bot token provided")
        return

    bot = QuizBot(settings)
    # Bad question or language files stop the bot before it connects
    bot.build_components()

    try:
        logger.info("Starting Discord trivia bot...")
        await bot.start(settings.token)
    except discord.LoginFailure:
        logger.error("Invalid bot token provided")
    except discord.HTTPException as e:
        logger.error(f"HTTP error occurred: {e}")
    finally:
        if not bot.is_closed():
            await bot.close()
