"""
Per-user score storage backed by a JSON file.
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union


class ScoreStore:
    """
    Keeps per-user scores in a JSON file of the form
    {"<user id>": {"score": 3, "name": "Alice"}}.

    Users are keyed by their stable chat user id. The name is the last display
    name seen for that user and is only used when scores are shown.

    All methods are coroutines. File access runs in a worker thread, and an
    asyncio lock keeps read-modify-write cycles from interleaving.
    """

    def __init__(self, score_file: Union[str, Path] = "data/scores.json"):
        """
        Initialize the store.

        Args:
            score_file: Path to the JSON score file, created on first write
        """
        self.score_file = Path(score_file)
        self.logger = logging.getLogger(__name__)
        self._lock = asyncio.Lock()

    def _read_file(self) -> Dict[str, Dict[str, Any]]:
        if not self.score_file.exists():
            return {}
        try:
            with open(self.score_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error(f"Invalid JSON in score file {self.score_file}: {e}; starting from empty scores")
            return {}

        if not isinstance(data, dict):
            self.logger.error(f"Score file {self.score_file} does not contain an object; starting from empty scores")
            return {}
        return data

    def _write_file(self, data: Dict[str, Dict[str, Any]]) -> None:
        self.score_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.score_file.with_suffix(self.score_file.suffix + ".tmp")
        with open(tmp_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_file.replace(self.score_file)

    @staticmethod
    def _score_of(entry) -> int:
        if isinstance(entry, dict):
            return int(entry.get('score', 0))
        return 0

    @staticmethod
    def _name_of(user: str, entry) -> str:
        if isinstance(entry, dict) and isinstance(entry.get('name'), str):
            return entry['name']
        return user

    async def increment(self, user: str, display_name: Optional[str] = None) -> int:
        """
        Add one point for a user.

        Args:
            user: Stable user id
            display_name: Name to remember for the user, keeps the stored one if None

        Returns:
            The user's new score
        """
        async with self._lock:
            data = await asyncio.to_thread(self._read_file)
            entry = data.get(user)
            score = self._score_of(entry) + 1
            name = display_name or self._name_of(user, entry)
            data[user] = {'score': score, 'name': name}
            await asyncio.to_thread(self._write_file, data)

        self.logger.info(f"User \"{name}\" ({user}) now has {score} points")
        return score

    async def read_one(self, user: str) -> int:
        """Get a user's score, 0 for unknown users."""
        async with self._lock:
            data = await asyncio.to_thread(self._read_file)
        return self._score_of(data.get(user))

    async def read_all(self) -> Dict[str, int]:
        """Get every user's score."""
        async with self._lock:
            data = await asyncio.to_thread(self._read_file)
        return {user: self._score_of(entry) for user, entry in data.items()}

    async def read_names(self) -> Dict[str, str]:
        """Get the last known display name of every user with a score."""
        async with self._lock:
            data = await asyncio.to_thread(self._read_file)
        return {user: self._name_of(user, entry) for user, entry in data.items()}

    async def reset_all(self) -> Dict[str, int]:
        """
        Remove all scores.

        Returns:
            The scores as they were before the reset
        """
        async with self._lock:
            data = await asyncio.to_thread(self._read_file)
            await asyncio.to_thread(self._write_file, {})

        self.logger.info(f"Reset scores of {len(data)} users")
        return {user: self._score_of(entry) for user, entry in data.items()}
