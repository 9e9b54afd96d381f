"""Wordbank: vocabulary learning with a spaced-repetition review scheduler."""

__version__ = "0.1.0"

from .core import (
    DuplicateIdError,
    DuplicateWordError,
    EntryNotFoundError,
    ReviewScheduler,
    WordbankError,
    WordEntry,
    apply_review,
    expected_interval,
    priority_score,
    select_next,
)
from .database import WordbankDatabase
from .ai import AIService, OpenAIService, GeminiService

__all__ = [
    "WordEntry",
    "ReviewScheduler",
    "WordbankDatabase",
    "WordbankError",
    "EntryNotFoundError",
    "DuplicateWordError",
    "DuplicateIdError",
    "expected_interval",
    "priority_score",
    "select_next",
    "apply_review",
    "AIService",
    "OpenAIService",
    "GeminiService",
]
