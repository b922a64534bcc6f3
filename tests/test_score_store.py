"""
Unit tests for the JSON file ScoreStore.
"""
import json
import shutil
import tempfile
import unittest
from pathlib import Path

from trivia_bot.score_store import ScoreStore


class TestScoreStore(unittest.IsolatedAsyncioTestCase):
    """Test cases for score persistence."""

    async def asyncSetUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.score_file = Path(self.temp_dir) / "data" / "scores.json"
        self.store = ScoreStore(self.score_file)

    async def asyncTearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    async def test_unknown_user_has_zero(self):
        """Users without points have a score of 0."""
        self.assertEqual(await self.store.read_one("nobody"), 0)
        self.assertEqual(await self.store.read_all(), {})

    async def test_increment_creates_file(self):
        """Incrementing writes the score file."""
        self.assertEqual(await self.store.increment("alice"), 1)
        self.assertEqual(await self.store.increment("alice"), 2)
        await self.store.increment("bob")

        with open(self.score_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
        self.assertEqual(data, {
            "alice": {"score": 2, "name": "alice"},
            "bob": {"score": 1, "name": "bob"}
        })
        self.assertEqual(await self.store.read_one("alice"), 2)

    async def test_read_all(self):
        """All scores are returned as a flat mapping."""
        await self.store.increment("alice")
        await self.store.increment("bob")
        await self.store.increment("bob")

        self.assertEqual(await self.store.read_all(), {"alice": 1, "bob": 2})

    async def test_scores_follow_user_id_across_renames(self):
        """A renamed user keeps the score; the latest name is remembered."""
        await self.store.increment("111", "Alice")
        await self.store.increment("111", "Alicia")
        await self.store.increment("222", "Alice")

        self.assertEqual(await self.store.read_all(), {"111": 2, "222": 1})
        self.assertEqual(await self.store.read_names(), {"111": "Alicia", "222": "Alice"})

    async def test_increment_without_name_keeps_stored_name(self):
        """Incrementing without a display name keeps the remembered one."""
        await self.store.increment("111", "Alice")
        await self.store.increment("111")

        self.assertEqual(await self.store.read_names(), {"111": "Alice"})

    async def test_legacy_entries_without_name(self):
        """Entries without a stored name are shown by their id."""
        self.score_file.parent.mkdir(parents=True)
        self.score_file.write_text(json.dumps({"111": {"score": 3}}), encoding='utf-8')

        self.assertEqual(await self.store.read_names(), {"111": "111"})
        self.assertEqual(await self.store.read_one("111"), 3)

    async def test_reset_returns_previous_scores(self):
        """Reset empties the store and returns the old scores."""
        await self.store.increment("alice")

        previous = await self.store.reset_all()

        self.assertEqual(previous, {"alice": 1})
        self.assertEqual(await self.store.read_all(), {})

    async def test_scores_survive_new_store_instance(self):
        """Scores are read back from disk."""
        await self.store.increment("alice")

        self.assertEqual(await ScoreStore(self.score_file).read_one("alice"), 1)

    async def test_corrupt_file_is_treated_as_empty(self):
        """A corrupt score file is logged and replaced."""
        self.score_file.parent.mkdir(parents=True)
        self.score_file.write_text("{oops", encoding='utf-8')

        with self.assertLogs('trivia_bot.score_store', level='ERROR'):
            self.assertEqual(await self.store.increment("alice"), 1)


if __name__ == '__main__':
    unittest.main()
