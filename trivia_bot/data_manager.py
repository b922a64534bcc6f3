"""
Data manager for loading and validating the trivia question pool.
"""
import json
import logging
from pathlib import Path
from typing import List, Union

from .exceptions import InvalidConfiguration
from .models import Question


class DataManager:
    """Loads the question pool from a JSON file."""

    def __init__(self, questions_file: Union[str, Path] = "config/questions.json"):
        """
        Initialize DataManager with the question file path.

        Args:
            questions_file: Path to the JSON question file
        """
        self.questions_file = Path(questions_file)
        self.questions: List[Question] = []
        self.logger = logging.getLogger(__name__)
        self.load_errors: List[str] = []

    def load_questions(self) -> List[Question]:
        """
        Load and validate the question pool.

        Returns:
            Questions in file order, each carrying its pool index

        Raises:
            InvalidConfiguration: If the file is missing, malformed, or empty
        """
        self.questions = []
        self.load_errors = []

        try:
            with open(self.questions_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise InvalidConfiguration(f"Question file not found: {self.questions_file}")
        except json.JSONDecodeError as e:
            raise InvalidConfiguration(f"Invalid JSON in {self.questions_file}: {e}")
        except OSError as e:
            raise InvalidConfiguration(f"Failed to read question file {self.questions_file}: {e}")

        if not self.validate_question_structure(data):
            raise InvalidConfiguration(
                f"Invalid question file {self.questions_file}: " + "; ".join(self.load_errors)
            )

        self.questions = self._parse_questions(data)
        self.logger.info(f"Loaded {len(self.questions)} questions from {self.questions_file}")
        self.logger.debug(
            "All available questions:\n" + json.dumps(data, indent=1, ensure_ascii=False)
        )
        return self.questions

    def validate_question_structure(self, data) -> bool:
        """
        Validate that JSON data has the correct question pool structure.

        Expected structure:
        [
            {
                "question": str,
                "answers": [str, ...]  # first entry is shown as the answer
            }
        ]

        Problems are collected in load_errors.

        Args:
            data: Parsed JSON data to validate

        Returns:
            True if structure is valid, False otherwise
        """
        if not isinstance(data, list):
            self.load_errors.append("Question data must be a JSON array")
            return False

        if not data:
            self.load_errors.append("Question pool cannot be empty")
            return False

        for i, question_data in enumerate(data):
            if not isinstance(question_data, dict):
                self.load_errors.append(f"Question {i} must be an object")
                continue

            if not isinstance(question_data.get("question"), str) or not question_data["question"].strip():
                self.load_errors.append(f"Question {i} needs a non-empty 'question' string")

            answers = question_data.get("answers")
            if not isinstance(answers, list) or not answers:
                self.load_errors.append(f"Question {i} needs a non-empty 'answers' array")
            elif not all(isinstance(answer, str) and answer.strip() for answer in answers):
                self.load_errors.append(f"Question {i} 'answers' must only contain non-empty strings")

        for error in self.load_errors:
            self.logger.error(error)
        return not self.load_errors

    def _parse_questions(self, data: list) -> List[Question]:
        """
        Parse validated question data into Question objects.

        Args:
            data: Validated question list

        Returns:
            List of Question objects
        """
        questions = []

        for index, question_data in enumerate(data):
            question = Question(
                prompt=question_data["question"],
                accepted_answers=tuple(question_data["answers"]),
                index=index
            )
            questions.append(question)

        return questions
