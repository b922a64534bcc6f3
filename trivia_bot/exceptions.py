"""
Exception types for the trivia bot.
"""


class QuizBotError(Exception):
    """Base exception for trivia bot errors."""
    pass


class InvalidConfiguration(QuizBotError, ValueError):
    """Raised at startup when timing or selection settings are unusable."""
    pass


class ExhaustedPool(InvalidConfiguration):
    """Raised when the selector has no eligible question left to draw."""
    pass
