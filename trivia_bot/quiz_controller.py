"""
Quiz session controller for the trivia bot.
Runs the ask -> answer/timeout -> idle cycle for the bot's channel.
"""
import asyncio
import logging
import re
from typing import Any, Awaitable, Optional, Protocol, Sequence, Set

from .countdown import CountdownTimer
from .exceptions import ExhaustedPool
from .messages import LocaleStrings
from .models import AnswerOutcome, Question, QuizPhase, QuizSession, QuizSettings
from .selector import CooldownSelector

_WHITESPACE = re.compile(r"\s+")


class Messenger(Protocol):
    """Sends text to a chat channel."""

    async def send(self, channel_id: int, text: str) -> Any:
        ...


class ScoreKeeper(Protocol):
    """Records points for users."""

    async def increment(self, user: str, display_name: Optional[str] = None) -> int:
        ...


def normalize_answer(text: str) -> str:
    """Lowercase text and remove every whitespace character."""
    return _WHITESPACE.sub("", text.lower())


class QuizController:
    """
    Orchestrates the periodic question cycle for a single channel.

    All transitions run on one asyncio event loop: the countdown queues ask()
    with call_soon, the answer window fires timeout_question() through
    call_later, and chat messages arrive from the transport's handlers. Chat
    sends and score updates are spawned as tasks and never awaited here.
    """

    def __init__(
        self,
        questions: Sequence[Question],
        settings: QuizSettings,
        messenger: Messenger,
        score_store: ScoreKeeper,
        locale: LocaleStrings,
        channel_id: int,
        selector: Optional[CooldownSelector] = None
    ):
        """
        Initialize the quiz controller.

        Args:
            questions: The question pool
            settings: Timing and answer settings
            messenger: Transport used to post messages
            score_store: Store that receives score increments
            locale: Message templates
            channel_id: Channel the quiz runs in
            selector: Question selector, built from the settings if None

        Raises:
            InvalidConfiguration: If the pool or cooldown settings are unusable
        """
        self.logger = logging.getLogger(__name__)
        self.questions = list(questions)
        self.settings = settings
        self.messenger = messenger
        self.score_store = score_store
        self.locale = locale
        self.channel_id = channel_id
        self.selector = selector or CooldownSelector(len(self.questions), settings.cooldown_fraction)
        self.session = QuizSession()
        self.countdown: Optional[CountdownTimer] = None
        self._pending: Set[asyncio.Task] = set()

        self.logger.info(f"QuizController initialized with {len(self.questions)} questions")

    # Lifecycle

    def start_ticking(self) -> CountdownTimer:
        """Start the periodic question countdown. Must run inside the event loop."""
        if self.countdown is None or not self.countdown.is_active:
            self.countdown = CountdownTimer.create(self.ask, self.settings.periodic_interval_seconds)
            self.logger.info(
                f"Question countdown started with an interval of "
                f"{self.settings.periodic_interval_seconds} seconds"
            )
        return self.countdown

    async def shutdown(self) -> None:
        """Stop all timers and wait for outstanding sends and score updates."""
        if self.countdown is not None:
            self.countdown.clear()
        self._cancel_answer_window()
        await self.flush()
        self.logger.info("QuizController shut down")

    async def flush(self) -> None:
        """Wait until every spawned send and score update has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def start(self) -> bool:
        """Enable asking questions and accepting answers."""
        self.session.running = True
        self.logger.info("Started bot")
        return True

    def stop(self) -> bool:
        """Disable asking questions and accepting answers. The countdown keeps ticking."""
        self.session.running = False
        self.logger.info("Stopped bot")
        return True

    @property
    def is_running(self) -> bool:
        return self.session.running

    # Queries

    def get_seconds_until_next_question(self) -> int:
        """Seconds until the countdown asks the next question."""
        if self.countdown is None:
            return self.settings.periodic_interval_seconds - 1
        return self.countdown.get_seconds_remaining()

    def get_current_question(self) -> Optional[Question]:
        """The question currently open for answers, if any."""
        if not self.session.has_active_question():
            return None
        return self.session.active_question

    # Transitions

    def ask(self) -> None:
        """Post a new question. Called every time the countdown expires."""
        if not self.session.running:
            self.logger.info("Bot is not running. Skipping ask question")
            return

        try:
            question = self.questions[self.selector.draw()]
        except ExhaustedPool as e:
            self.logger.error(f"Cannot select a question, stopping bot: {e}")
            self._reset_question()
            self.stop()
            return

        if self.session.has_active_question():
            self.logger.info(
                f"Question {self.session.active_question.index} was not answered; replacing it"
            )
            self._cancel_answer_window()

        self.session.active_question = question
        self.session.phase = QuizPhase.ASKED

        timeout = self.settings.answer_timeout_seconds
        message = self.locale.render(
            "askQuestion",
            question=question.prompt,
            timeout=self.locale.duration(timeout),
            answerPrefix=self.settings.answer_prefix
        )
        self._send(message)
        self.logger.info(f"Quiz question asked: {message}")
        self.logger.info(f"Possible answers: {list(question.accepted_answers)}")

        if timeout > 0:
            self.logger.info(f"Question will timeout in {timeout} seconds")
            loop = asyncio.get_running_loop()
            self.session.answer_deadline = loop.call_later(timeout, self.timeout_question)
        else:
            self.logger.debug("No timeout configured")

    def timeout_question(self) -> None:
        """Close the current question after its answer window expired."""
        if not self.session.has_active_question():
            self.logger.debug("Answer window expired without an active question; ignoring")
            self._cancel_answer_window()
            return

        question = self.session.active_question
        self.logger.info("Question timed out. Resetting it")

        self._send(self.locale.render(
            "questionTimedOut",
            question=question.prompt,
            answer=question.canonical_answer,
            newQuestionIn=self.locale.duration(self.get_seconds_until_next_question())
        ))
        self._reset_question()

    def submit_answer(self, user: str, raw_text: str, display_name: Optional[str] = None) -> AnswerOutcome:
        """
        Check a chat line against the current question.

        Args:
            user: Stable id of the sender, used for scoring
            raw_text: The chat line as received
            display_name: Name shown in replies, defaults to the user id

        Returns:
            How the line was classified
        """
        name = display_name or user
        text = raw_text.lower().strip()
        prefix = self.settings.answer_prefix.lower()
        if not text.startswith(prefix):
            return AnswerOutcome.IGNORED

        if not self.session.running:
            self.logger.debug(f"Not reacting to message from user \"{name}\" as bot is disabled: {raw_text}")
            return AnswerOutcome.NOT_RUNNING

        if not self.session.has_active_question():
            self.notify_no_question(name)
            return AnswerOutcome.NO_QUESTION

        answer = normalize_answer(text[len(prefix):])
        question = self.session.active_question
        accepted = {normalize_answer(candidate) for candidate in question.accepted_answers}

        if answer in accepted:
            self.logger.info(f"User \"{name}\" ({user}) sent the correct answer")
            self._reset_question()
            self._send(self.locale.render(
                "correctAnswer",
                user=name,
                answer=question.canonical_answer,
                newQuestionIn=self.locale.duration(self.get_seconds_until_next_question())
            ))
            self._spawn(self.score_store.increment(user, name), f"increment score of {name}")
            return AnswerOutcome.CORRECT

        self.logger.debug(f"User \"{name}\" sent a wrong answer: {answer}")
        if self.settings.react_to_wrong_answer:
            self._send(self.locale.render("wrongAnswer", user=name))
        return AnswerOutcome.WRONG

    def notify_no_question(self, name: str) -> None:
        """Tell a user that no question is open, if enabled in the settings."""
        if self.settings.react_to_no_question:
            self._send(self.locale.render("noQuestion", user=name))
        else:
            self.logger.debug("Not reacting to no question as it is disabled in the config")

    # Internals

    def _reset_question(self) -> None:
        self._cancel_answer_window()
        self.session.active_question = None
        self.session.phase = QuizPhase.IDLE

    def _cancel_answer_window(self) -> None:
        if self.session.answer_deadline is not None:
            self.logger.debug("Reset timeout")
            self.session.answer_deadline.cancel()
            self.session.answer_deadline = None

    def _send(self, text: str) -> None:
        self._spawn(self.messenger.send(self.channel_id, text), "send chat message")

    def _spawn(self, coro: Awaitable, description: str) -> None:
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(lambda done: self._on_task_done(done, description))

    def _on_task_done(self, task: asyncio.Task, description: str) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"Failed to {description}: {error}", exc_info=error)
