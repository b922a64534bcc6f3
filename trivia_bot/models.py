"""
Core data models for the trivia bot.
"""
import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class Question:
    """A single trivia question from the question pool."""
    prompt: str
    accepted_answers: Tuple[str, ...]
    index: int

    @property
    def canonical_answer(self) -> str:
        """The answer shown to the channel when the question resolves."""
        return self.accepted_answers[0]


class QuizPhase(Enum):
    """Lifecycle phase of the channel's quiz session."""
    IDLE = "idle"
    ASKED = "asked"


class AnswerOutcome(Enum):
    """How a submitted chat line was classified."""
    CORRECT = "correct"
    WRONG = "wrong"
    NO_QUESTION = "no_question"
    NOT_RUNNING = "not_running"
    IGNORED = "ignored"


@dataclass
class QuizSession:
    """Mutable state of the single quiz session, owned by the controller."""
    phase: QuizPhase = QuizPhase.IDLE
    active_question: Optional[Question] = None
    answer_deadline: Optional[asyncio.TimerHandle] = None
    running: bool = False

    def has_active_question(self) -> bool:
        """Check if a question is currently open for answers."""
        return self.phase is QuizPhase.ASKED and self.active_question is not None


@dataclass
class QuizSettings:
    """Timing and answer handling settings for the quiz loop."""
    periodic_interval_seconds: int = 300
    answer_timeout_seconds: int = 60
    cooldown_fraction: float = 0.5
    answer_prefix: str = "!a"
    react_to_wrong_answer: bool = False
    react_to_no_question: bool = True


@dataclass
class CommandSettings:
    """Chat commands understood by the bot."""
    personal_score: str = "!score"
    current_question: str = "!question"
    all_scores: str = "!allscores"
    reset: str = "!reset"
    start: str = "!start"
    stop: str = "!stop"


@dataclass
class BotSettings:
    """Complete bot configuration loaded from config.json."""
    channel_id: int
    channel_admin_id: int
    token: Optional[str] = None
    questions_file: str = "config/questions.json"
    language_file: str = "lang/german.json"
    score_file: str = "data/scores.json"
    log_level: str = "INFO"
    log_directory: str = "./logs/"
    quiz: QuizSettings = field(default_factory=QuizSettings)
    commands: CommandSettings = field(default_factory=CommandSettings)
