"""Quiz card planning for a selected word.

Which kind of card to show is presentation policy, not scheduling: a word that
was never shown gets a yes/no recognition card, a word seen before gets either
a free-text meaning card or a multiple-choice card.
"""

import random
from enum import Enum
from typing import List, Optional

import structlog
from pydantic import BaseModel, Field

from .ai import AIService, WordChoice
from .core import WordEntry, is_meaning_correct

logger = structlog.get_logger(__name__)

_YES_ANSWERS = ("y", "yes", "true", "1")


class QuizMode(str, Enum):
    JUDGE = "judge"
    INPUT_MEANING = "input_meaning"
    INPUT_SENTENCE = "input_sentence"
    MULTIPLE = "multiple"


class QuizStep(BaseModel):
    """A quiz card ready to be rendered.

    Attributes:
        mode: The kind of card.
        entry: The word being quizzed.
        question: Text shown to the learner.
        choices: Options for a multiple-choice card, empty otherwise.
        definition: Definition shown on an example-sentence card.
    """

    mode: QuizMode
    entry: WordEntry
    question: str
    choices: List[WordChoice] = Field(default_factory=list)
    definition: str = ""

    @property
    def options(self) -> List[str]:
        return [c.choice for c in self.choices]


def _meaning_step(entry: WordEntry) -> QuizStep:
    return QuizStep(
        mode=QuizMode.INPUT_MEANING,
        entry=entry,
        question=f'What is the meaning of "{entry.word}"?',
    )


def plan_quiz(
    entry: WordEntry,
    ai_service: Optional[AIService] = None,
    rng: Optional[random.Random] = None,
) -> QuizStep:
    """Chooses the quiz card for ``entry``.

    Args:
        entry: The word picked by the scheduler.
        ai_service: Service used to build multiple-choice options. Without it
            the free-text meaning card is used instead.
        rng: Random source for the card choice, for reproducible sessions.

    Returns:
        The QuizStep to present.
    """
    if entry.shown_times == 0:
        return QuizStep(
            mode=QuizMode.JUDGE,
            entry=entry,
            question=f'Do you know the word "{entry.word}"?',
        )

    rng = rng or random.Random()
    if rng.random() < 0.5 or ai_service is None:
        return _meaning_step(entry)

    try:
        choices = ai_service.generate_word_choices(entry.word)
    except Exception as e:
        logger.warning("quiz.choices_unavailable", word=entry.word, error=str(e))
        return _meaning_step(entry)
    if not choices:
        return _meaning_step(entry)

    return QuizStep(
        mode=QuizMode.MULTIPLE,
        entry=entry,
        question=f'What is the meaning of "{entry.word}"?',
        choices=choices,
    )


def plan_sentence_step(entry: WordEntry, ai_service: AIService) -> QuizStep:
    """Follows a "no" on the recognition card: show a definition, ask for a sentence."""
    definition = ai_service.generate_definition(entry.word) or entry.definition
    return QuizStep(
        mode=QuizMode.INPUT_SENTENCE,
        entry=entry,
        question=(
            f'The meaning of "{entry.word}" is: {definition}. '
            "Please write an example sentence using this word."
        ),
        definition=definition,
    )


def grade_answer(step: QuizStep, answer: str, ai_service: Optional[AIService] = None) -> bool:
    """Decides whether ``answer`` to ``step`` counts as correct.

    Raises:
        ValueError: For an example-sentence card without an AI service to grade it.
    """
    if step.mode is QuizMode.JUDGE:
        return answer.strip().lower() in _YES_ANSWERS
    if step.mode is QuizMode.INPUT_MEANING:
        return is_meaning_correct(answer, step.entry.definition)
    if step.mode is QuizMode.MULTIPLE:
        return any(c.is_correct for c in step.choices if c.choice == answer)
    if ai_service is None:
        raise ValueError("An AI service is required to grade example sentences.")
    return ai_service.check_example(step.entry.word, answer)
