"""
Localized chat messages and duration formatting.
"""
import json
import logging
from pathlib import Path
from string import Template
from typing import Dict, Union

from .exceptions import InvalidConfiguration

logger = logging.getLogger(__name__)

DEFAULT_UNITS = {
    "hour": "hour",
    "hours": "hours",
    "minute": "minute",
    "minutes": "minutes",
    "second": "second",
    "seconds": "seconds",
    "and": "and"
}

REQUIRED_MESSAGES = (
    "askQuestion",
    "currentQuestion",
    "questionTimedOut",
    "correctAnswer",
    "wrongAnswer",
    "noQuestion",
    "commandScore",
    "commandReset",
    "commandResetNobodyHasPoints",
    "botStarted",
    "botStopped",
)


def format_duration(seconds: int, units: Dict[str, str] = None) -> str:
    """
    Format a number of seconds as readable text.

    Examples (English units): 0 -> "0 seconds", 65 -> "1 minute and 5 seconds",
    3720 -> "1 hour and 2 minutes".

    Args:
        seconds: Duration in seconds, negative values count as 0
        units: Unit names, see DEFAULT_UNITS for the keys

    Returns:
        Human readable duration
    """
    units = {**DEFAULT_UNITS, **(units or {})}
    seconds = max(0, int(seconds))

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)

    parts = []
    for value, singular, plural in (
        (hours, "hour", "hours"),
        (minutes, "minute", "minutes"),
        (secs, "second", "seconds"),
    ):
        if value:
            parts.append(f"{value} {units[singular] if value == 1 else units[plural]}")

    if not parts:
        return f"0 {units['seconds']}"
    if len(parts) == 1:
        return parts[0]
    return ", ".join(parts[:-1]) + f" {units['and']} " + parts[-1]


class LocaleStrings:
    """Message templates for one language, using ${name} placeholders."""

    def __init__(self, messages: Dict[str, str], units: Dict[str, str] = None):
        """
        Args:
            messages: Message key -> template
            units: Unit names used by format_duration
        """
        self.messages = dict(messages)
        self.units = {**DEFAULT_UNITS, **(units or {})}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "LocaleStrings":
        """
        Load a language file.

        Raises:
            InvalidConfiguration: If the file is missing, not JSON, or lacks messages
        """
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise InvalidConfiguration(f"Language file not found: {path}")
        except json.JSONDecodeError as e:
            raise InvalidConfiguration(f"Invalid JSON in language file {path}: {e}")

        if not isinstance(data, dict):
            raise InvalidConfiguration(f"Language file {path} must contain a JSON object")

        units = data.pop("units", {})
        if not isinstance(units, dict) or not all(
                isinstance(key, str) and isinstance(value, str) for key, value in units.items()):
            raise InvalidConfiguration(f"Language file {path} has invalid 'units', expected an object of strings")

        missing = [key for key in REQUIRED_MESSAGES if not isinstance(data.get(key), str)]
        if missing:
            raise InvalidConfiguration(f"Language file {path} is missing messages: {', '.join(missing)}")

        logger.info(f"Loaded {len(data)} messages from {path}")
        return cls(data, units)

    def render(self, key: str, **params) -> str:
        """
        Fill in a message template.

        Placeholders without a matching parameter are left in place.
        """
        template = self.messages.get(key)
        if template is None:
            logger.warning(f"No message for key '{key}', sending the key instead")
            template = key
        return Template(template).safe_substitute({name: str(value) for name, value in params.items()})

    def duration(self, seconds: int) -> str:
        """Format a duration with this language's unit names."""
        return format_duration(seconds, self.units)
