"""
Chat trivia bot: periodic questions, timed answer windows and per-user scores.
"""

__version__ = "1.0.0"
