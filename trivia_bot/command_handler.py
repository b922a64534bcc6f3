"""
Chat command handling for the trivia bot.
"""
import logging
from typing import Dict, Optional, Union

from .messages import LocaleStrings
from .models import CommandSettings
from .quiz_controller import Messenger, QuizController
from .score_store import ScoreStore


class CommandHandler:
    """
    Resolves user and admin chat commands.

    Admin commands are only executed for the configured channel admin, matched
    by user id. Store and transport failures are logged and never propagate to
    the caller.
    """

    def __init__(
        self,
        controller: QuizController,
        score_store: ScoreStore,
        messenger: Messenger,
        locale: LocaleStrings,
        commands: CommandSettings,
        channel_admin_id: Union[int, str]
    ):
        self.logger = logging.getLogger(__name__)
        self.controller = controller
        self.score_store = score_store
        self.messenger = messenger
        self.locale = locale
        self.commands = commands
        self.channel_admin_id = str(channel_admin_id)

    async def handle(self, user: str, message: str, display_name: Optional[str] = None) -> bool:
        """
        Execute the command in a chat line, if it is one.

        Args:
            user: Stable id of the sender
            message: Lowercased, stripped chat line
            display_name: Name shown in replies, defaults to the user id

        Returns:
            True if the line was a command (even a refused one), False otherwise
        """
        name = display_name or user

        if await self._handle_admin_command(user, name, message):
            return True

        if message == self.commands.personal_score:
            self.logger.info(f"User \"{name}\" sent command to get own score")
            await self._send_personal_score(user, name)
            return True

        if message == self.commands.current_question:
            self.logger.info(f"User \"{name}\" sent message to get current question")
            await self._send_current_question(name)
            return True

        return False

    async def _handle_admin_command(self, user: str, name: str, message: str) -> bool:
        handlers = {
            self.commands.all_scores: self._all_scores,
            self.commands.reset: self._reset_scores,
            self.commands.start: self._start_bot,
            self.commands.stop: self._stop_bot,
        }
        handler = handlers.get(message)
        if handler is None:
            return False

        if str(user) != self.channel_admin_id:
            self.logger.warning(
                f"Invalid user tried to execute admin command. "
                f"User: \"{name}\" ({user}); Command: \"{message}\""
            )
            return True

        await handler(name)
        return True

    async def _send_personal_score(self, user: str, name: str) -> None:
        try:
            score = await self.score_store.read_one(user)
        except Exception as e:
            self.logger.error(f"Failed to read score of user \"{name}\": {e}")
            return
        await self._say(self.locale.render("commandScore", user=name, scoreNumber=score))

    async def _send_current_question(self, name: str) -> None:
        question = self.controller.get_current_question()
        if question is None:
            self.controller.notify_no_question(name)
            return
        await self._say(self.locale.render(
            "currentQuestion",
            question=question.prompt,
            answerPrefix=self.controller.settings.answer_prefix
        ))

    async def _all_scores(self, admin: str) -> None:
        self.logger.info(f"Admin user \"{admin}\" sent command to get all scores")
        try:
            names = await self.score_store.read_names()
            scores = await self.score_store.read_all()
        except Exception as e:
            self.logger.error(f"Failed to read all scores: {e}")
            return
        await self._send_multiline_scores(scores, names)

    async def _reset_scores(self, admin: str) -> None:
        self.logger.info(f"Admin user \"{admin}\" sent command to reset all scores")
        try:
            names = await self.score_store.read_names()
            previous_scores = await self.score_store.reset_all()
        except Exception as e:
            self.logger.error(f"Failed to reset scores: {e}")
            return
        await self._say(self.locale.render("commandReset"))
        await self._send_multiline_scores(previous_scores, names)

    async def _start_bot(self, admin: str) -> None:
        self.logger.info(f"Admin user \"{admin}\" sent command to start bot")
        self.controller.start()
        await self._say(self.locale.render(
            "botStarted",
            interval=self.locale.duration(self.controller.settings.periodic_interval_seconds),
            next=self.locale.duration(self.controller.get_seconds_until_next_question())
        ))

    async def _stop_bot(self, admin: str) -> None:
        self.logger.info(f"Admin user \"{admin}\" sent command to stop bot")
        self.controller.stop()
        await self._say(self.locale.render("botStopped"))

    async def _send_multiline_scores(self, scores: Dict[str, int], names: Dict[str, str]) -> None:
        if not scores:
            await self._say(self.locale.render("commandResetNobodyHasPoints"))
            return

        ranked = sorted(scores.items(), key=lambda item: (-item[1], names.get(item[0], item[0])))
        for user, score in ranked:
            name = names.get(user, user)
            self.logger.debug(f"User \"{name}\" ({user}) had {score} points")
            await self._say(self.locale.render("commandScore", user=name, scoreNumber=score))

    async def _say(self, text: str) -> None:
        try:
            await self.messenger.send(self.controller.channel_id, text)
        except Exception as e:
            self.logger.error(f"Failed to send chat message: {e}")
