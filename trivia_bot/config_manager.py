"""
Configuration manager for trivia bot settings.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import InvalidConfiguration
from .models import BotSettings, CommandSettings, QuizSettings


class ConfigManager:
    """Loads config.json and validates it before the bot starts."""

    DEFAULT_CONFIG_FILE = "config.json"
    CONFIG_FILE_ENV = "TRIVIA_BOT_CONFIG"
    TOKEN_ENV = "DISCORD_BOT_TOKEN"
    TOKEN_PLACEHOLDER = "YOUR_DISCORD_BOT_TOKEN_HERE"

    # Validation limits
    MIN_INTERVAL_SECONDS = 1
    MIN_TIMEOUT_SECONDS = 0
    LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

    def __init__(self):
        """Initialize ConfigManager."""
        self.logger = logging.getLogger(__name__)
        self._settings: Optional[BotSettings] = None

    @classmethod
    def resolve_config_path(cls) -> Path:
        """Config file path, overridable through TRIVIA_BOT_CONFIG."""
        return Path(os.getenv(cls.CONFIG_FILE_ENV, cls.DEFAULT_CONFIG_FILE))

    def load(self, config_path: Union[str, Path, None] = None) -> BotSettings:
        """
        Load and validate the configuration file.

        Args:
            config_path: Path to config.json, defaults to resolve_config_path()

        Returns:
            Validated bot settings

        Raises:
            InvalidConfiguration: If the file is missing, not JSON, or fails validation
        """
        path = Path(config_path) if config_path else self.resolve_config_path()

        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except FileNotFoundError:
            raise InvalidConfiguration(f"Configuration file not found: {path}")
        except json.JSONDecodeError as e:
            raise InvalidConfiguration(f"Invalid JSON in {path}: {e}")

        return self.load_from_dict(raw)

    def load_from_dict(self, raw: Dict[str, Any]) -> BotSettings:
        """
        Validate a parsed configuration and build settings from it.

        Raises:
            InvalidConfiguration: If any setting is invalid
        """
        validation_result = self.validate_settings(raw)
        if not validation_result["valid"]:
            for issue in validation_result["issues"]:
                self.logger.error(f"Configuration issue: {issue}")
            raise InvalidConfiguration(
                "Invalid configuration: " + "; ".join(validation_result["issues"])
            )

        bot_config = raw.get('bot', {})
        quiz_config = raw.get('quiz', {})
        log_config = raw.get('logging', {})
        defaults = BotSettings(channel_id=0, channel_admin_id=0)

        quiz_settings = QuizSettings(
            periodic_interval_seconds=quiz_config['post_question_interval_seconds'],
            answer_timeout_seconds=quiz_config.get('question_timeout_seconds', QuizSettings.answer_timeout_seconds),
            cooldown_fraction=quiz_config.get('question_cooldown_fraction', QuizSettings.cooldown_fraction),
            answer_prefix=quiz_config.get('answer_prefix', QuizSettings.answer_prefix).lower(),
            react_to_wrong_answer=quiz_config.get('react_to_wrong_answer', QuizSettings.react_to_wrong_answer),
            react_to_no_question=quiz_config.get('react_to_no_question', QuizSettings.react_to_no_question)
        )

        command_values = {**raw.get('commands', {}), **raw.get('admin_commands', {})}
        command_settings = CommandSettings(**{
            name: value.lower() for name, value in command_values.items()
        })

        self._settings = BotSettings(
            channel_id=int(bot_config['channel_id']),
            channel_admin_id=int(bot_config['channel_admin_id']),
            token=self.get_bot_token(raw),
            questions_file=quiz_config.get('questions_file', defaults.questions_file),
            language_file=quiz_config.get('language_file', defaults.language_file),
            score_file=quiz_config.get('score_file', defaults.score_file),
            log_level=log_config.get('level', defaults.log_level).upper(),
            log_directory=log_config.get('log_directory', defaults.log_directory),
            quiz=quiz_settings,
            commands=command_settings
        )

        self.logger.info("Configuration loaded successfully")
        return self._settings

    def get_bot_token(self, raw: Dict[str, Any]) -> Optional[str]:
        """Get bot token from environment variable or config file."""
        # Environment variable takes precedence
        token = os.getenv(self.TOKEN_ENV)
        if token:
            return token

        token = raw.get('bot', {}).get('token')
        if not token or token == self.TOKEN_PLACEHOLDER:
            return None
        return token

    def validate_settings(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a parsed configuration.

        Returns:
            Dictionary with validation results and any issues found
        """
        validation_result = {
            "valid": True,
            "issues": []
        }
        issues: List[str] = validation_result["issues"]

        if not isinstance(raw, dict):
            validation_result["valid"] = False
            issues.append("Configuration must be a JSON object")
            return validation_result

        for section in ('bot', 'quiz', 'commands', 'admin_commands', 'logging'):
            if section in raw and not isinstance(raw[section], dict):
                issues.append(f"Section '{section}' must be an object")
        if issues:
            validation_result["valid"] = False
            return validation_result

        bot_config = raw.get('bot', {})
        quiz_config = raw.get('quiz', {})

        # Validate channel and admin snowflakes
        channel_id = bot_config.get('channel_id')
        if not self._is_snowflake(channel_id):
            issues.append(f"Invalid channel id: {channel_id!r}")

        admin_id = bot_config.get('channel_admin_id')
        if not self._is_snowflake(admin_id):
            issues.append(f"Invalid channel admin id: {admin_id!r} (must be the admin's Discord user id)")

        # Validate question interval
        if 'post_question_interval_seconds' not in quiz_config:
            issues.append("Missing question interval: quiz.post_question_interval_seconds")
        elif not self._is_int(quiz_config['post_question_interval_seconds'], self.MIN_INTERVAL_SECONDS):
            issues.append(
                f"Invalid question interval: {quiz_config['post_question_interval_seconds']!r} "
                f"(must be an integer of at least {self.MIN_INTERVAL_SECONDS})"
            )

        # Validate answer timeout
        if 'question_timeout_seconds' in quiz_config and not self._is_int(
                quiz_config['question_timeout_seconds'], self.MIN_TIMEOUT_SECONDS):
            issues.append(
                f"Invalid question timeout: {quiz_config['question_timeout_seconds']!r} "
                f"(must be an integer of at least {self.MIN_TIMEOUT_SECONDS}, 0 disables it)"
            )

        # Validate cooldown fraction
        if 'question_cooldown_fraction' in quiz_config:
            fraction = quiz_config['question_cooldown_fraction']
            if isinstance(fraction, bool) or not isinstance(fraction, (int, float)) or not 0 <= fraction < 1:
                issues.append(f"Invalid question cooldown fraction: {fraction!r} (must be in [0, 1))")

        if 'answer_prefix' in quiz_config and not isinstance(quiz_config['answer_prefix'], str):
            issues.append(f"Invalid answer prefix: {quiz_config['answer_prefix']!r}")

        for flag in ('react_to_wrong_answer', 'react_to_no_question'):
            if flag in quiz_config and not isinstance(quiz_config[flag], bool):
                issues.append(f"Invalid {flag.replace('_', ' ')} setting: {quiz_config[flag]!r}")

        for key in ('questions_file', 'language_file', 'score_file'):
            if key in quiz_config and (not isinstance(quiz_config[key], str) or not quiz_config[key].strip()):
                issues.append(f"Invalid {key.replace('_', ' ')}: {quiz_config[key]!r}")

        # Validate chat commands
        known_commands = set(CommandSettings.__dataclass_fields__)
        for section in ('commands', 'admin_commands'):
            for name, value in raw.get(section, {}).items():
                if name not in known_commands:
                    issues.append(f"Unknown command '{section}.{name}'")
                elif not isinstance(value, str) or not value.strip():
                    issues.append(f"Invalid command text for '{section}.{name}': {value!r}")

        level = raw.get('logging', {}).get('level', 'INFO')
        if not isinstance(level, str) or level.upper() not in self.LOG_LEVELS:
            issues.append(f"Invalid log level: {level!r}")

        validation_result["valid"] = not issues
        return validation_result

    @staticmethod
    def _is_int(value, minimum: int) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and value >= minimum

    @staticmethod
    def _is_snowflake(value) -> bool:
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            return False
        return str(value).isdigit() and int(value) > 0

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        if self._settings is None:
            return "Trivia Settings: not loaded"

        quiz = self._settings.quiz
        timeout_str = (
            f"{quiz.answer_timeout_seconds} seconds"
            if quiz.answer_timeout_seconds > 0
            else "disabled"
        )
        return (
            f"Trivia Settings:\n"
            f"• Question interval: {quiz.periodic_interval_seconds} seconds\n"
            f"• Answer timeout: {timeout_str}\n"
            f"• Question cooldown: {quiz.cooldown_fraction:.0%} of the pool\n"
            f"• Answer prefix: {quiz.answer_prefix!r}\n"
            f"• Channel: {self._settings.channel_id}, admin user id: {self._settings.channel_admin_id}\n"
            f"• Questions file: {self._settings.questions_file}"
        )
