"""Core classes for the Wordbank review scheduler."""

import time
from typing import Iterable, List, Optional, Sequence, Tuple

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger(__name__)

BASE_DAY_MS = 86_400_000

# Correct-answer interval progression, in days, indexed by shown_times.
INTERVAL_STEPS_DAYS: Tuple[int, ...] = (1, 3, 7, 14, 30, 90, 180)

MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 5.0

NEW_ENTRY_BONUS = 100.0
EARLY_ENTRY_BONUS = 10.0
EARLY_ENTRY_LIMIT = 3
DIFFICULTY_WEIGHT = 0.5
RECENT_MISS_BONUS = 5.0
STALE_ENTRY_BONUS = 2.0
STALE_AFTER_MS = 180 * BASE_DAY_MS

CORRECT_DIFFICULTY_STEP = 0.1
INCORRECT_DIFFICULTY_STEP = 0.2
EASING_AFTER_SHOWN_TIMES = 3


class WordbankError(Exception):
    """Base class for all Wordbank errors."""


class EntryNotFoundError(WordbankError, LookupError):
    """Raised when a word is not present in the collection."""

    def __init__(self, word: str):
        self.word = word
        super().__init__(f"Word not found in wordbank: {word}")


class DuplicateWordError(WordbankError, ValueError):
    """Raised when adding a word that already exists in the collection."""

    def __init__(self, word: str):
        self.word = word
        super().__init__(f"Word already exists in wordbank: {word}")


class DuplicateIdError(WordbankError, ValueError):
    """Raised when two entries of a collection share an id."""

    def __init__(self, entry_id: int):
        self.entry_id = entry_id
        super().__init__(f"Duplicate id in wordbank: {entry_id}")


class WordEntry(BaseModel):
    """Represents one vocabulary item under study.

    Attributes:
        id: Stable identifier of the entry.
        word: The term being studied, unique within a collection (case-insensitive).
        definition: Reference meaning, used to grade free-text answers. May be empty.
        example: Optional illustrative sentence.
        last_shown_at: Milliseconds since epoch of the last presentation, 0 if never shown.
        last_correct_at: Milliseconds since epoch of the last correct answer, 0 if never correct.
        shown_times: Number of presentations so far.
        difficulty: Adaptive difficulty, 5 being hardest. Values outside
            ``[1.0, 5.0]`` are accepted on load and clamped wherever they are used.
    """

    id: int = Field(..., description="Unique identifier for the entry")
    word: str = Field(..., min_length=1, description="The word to learn")
    definition: str = Field(default="", description="Reference meaning of the word")
    example: str = Field(default="", description="Example sentence using the word")
    last_shown_at: int = Field(
        default=0,
        alias="last_shown_timestamp",
        description="Last presentation time in ms since epoch",
    )
    last_correct_at: int = Field(
        default=0,
        alias="last_correct_timestamp",
        description="Last correct answer time in ms since epoch",
    )
    shown_times: int = Field(default=0, ge=0, description="Number of presentations")
    difficulty: float = Field(default=0.0, description="Adaptive difficulty")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("word")
    @classmethod
    def _word_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("word must not be blank")
        return value

    @property
    def key(self) -> str:
        """Lookup key used for case-insensitive word matching."""
        return normalize_word(self.word)


def normalize_word(word: str) -> str:
    return word.strip().lower()


def now_ms() -> int:
    """Returns the current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def clamp_difficulty(difficulty: float) -> float:
    return min(MAX_DIFFICULTY, max(MIN_DIFFICULTY, difficulty))


def expected_interval(difficulty: float, shown_times: int, was_correct: bool) -> float:
    """Returns the delay, in milliseconds, before an entry is due again.

    Args:
        difficulty: Difficulty of the entry. Clamped to ``[1.0, 5.0]``.
        shown_times: Number of presentations so far.
        was_correct: Outcome of the previous presentation.

    Returns:
        A positive duration in milliseconds. A miss yields a fractional-day
        retry window (0.2 to 0.6 days); a hit walks the step progression and
        is stretched for easy words and shrunk for hard ones.
    """
    difficulty = clamp_difficulty(difficulty)

    if not was_correct:
        return BASE_DAY_MS * (difficulty * 0.1 + 0.1)

    step = INTERVAL_STEPS_DAYS[min(max(shown_times, 0), len(INTERVAL_STEPS_DAYS) - 1)]
    difficulty_factor = max(0.5, 2 - difficulty * 0.3)
    return BASE_DAY_MS * step * difficulty_factor


def was_last_correct(entry: WordEntry) -> bool:
    """Whether the most recent presentation of ``entry`` was answered correctly.

    There is no stored outcome flag; the timestamps are the source of truth.
    A never-shown entry (both timestamps 0) counts as correct.
    """
    return entry.last_correct_at >= entry.last_shown_at


def priority_score(entry: WordEntry, now: int) -> float:
    """Computes the review urgency of an entry. Higher means review sooner.

    The score is a weighted sum: the overdue ratio against the expected
    interval, a large bonus for never-shown entries, a smaller one for entries
    shown fewer than three times, a difficulty term, a bonus for a recent miss
    and a bonus for entries untouched for more than 180 days.

    Args:
        entry: The entry to score.
        now: Current time in milliseconds since epoch.

    Returns:
        The priority score.
    """
    last_correct = was_last_correct(entry)
    difficulty = clamp_difficulty(entry.difficulty)
    since_shown = now - entry.last_shown_at
    since_correct = now - entry.last_correct_at

    interval = expected_interval(difficulty, entry.shown_times, last_correct)
    priority = since_shown / interval

    if entry.shown_times == 0:
        priority += NEW_ENTRY_BONUS
    elif entry.shown_times < EARLY_ENTRY_LIMIT:
        priority += EARLY_ENTRY_BONUS

    priority += difficulty * DIFFICULTY_WEIGHT

    if not last_correct and since_correct > since_shown:
        priority += RECENT_MISS_BONUS

    if since_shown > STALE_AFTER_MS:
        priority += STALE_ENTRY_BONUS

    return priority


def rank_entries(entries: Iterable[WordEntry], now: int) -> List[Tuple[WordEntry, float]]:
    """Scores every entry and orders them from most to least urgent.

    Ties are broken by ascending ``id`` and then by collection order.
    """
    scored = [(entry, priority_score(entry, now)) for entry in entries]
    # sorted() is stable, so equal (score, id) keys keep collection order
    return sorted(scored, key=lambda pair: (-pair[1], pair[0].id))


def select_next(entries: Iterable[WordEntry], now: int) -> Optional[WordEntry]:
    """Returns the entry to present next, or None when there is nothing to review."""
    best: Optional[WordEntry] = None
    best_key: Optional[Tuple[float, int]] = None
    for entry in entries:
        key = (-priority_score(entry, now), entry.id)
        if best_key is None or key < best_key:
            best, best_key = entry, key
    return best


def apply_review(entry: WordEntry, was_correct: bool, now: int) -> WordEntry:
    """Applies a review outcome and returns the updated entry.

    The given entry is not modified; callers persist the returned value.

    Args:
        entry: Entry state before the presentation.
        was_correct: Whether the answer was correct.
        now: Time of the review in milliseconds since epoch.

    Returns:
        A new WordEntry with ``shown_times`` incremented, ``last_shown_at`` set
        to ``now`` and ``difficulty`` adjusted to the outcome.
    """
    difficulty = clamp_difficulty(entry.difficulty)
    update = {"shown_times": entry.shown_times + 1, "last_shown_at": now}

    if was_correct:
        update["last_correct_at"] = now
        # The correct-rate check is always satisfied once last_correct_at == now,
        # so easing depends on shown_times alone.
        if entry.shown_times > EASING_AFTER_SHOWN_TIMES and difficulty > MIN_DIFFICULTY:
            difficulty = max(MIN_DIFFICULTY, difficulty - CORRECT_DIFFICULTY_STEP)
    else:
        difficulty = min(MAX_DIFFICULTY, difficulty + INCORRECT_DIFFICULTY_STEP)

    update["difficulty"] = difficulty
    return entry.model_copy(update=update)


def find_entry(entries: Iterable[WordEntry], word: str) -> Optional[WordEntry]:
    key = normalize_word(word)
    for entry in entries:
        if entry.key == key:
            return entry
    return None


def review_word(
    entries: Sequence[WordEntry], word: str, was_correct: bool, now: int
) -> WordEntry:
    """Looks up ``word`` in the collection and applies a review outcome to it.

    Raises:
        EntryNotFoundError: If no entry matches ``word``.
    """
    entry = find_entry(entries, word)
    if entry is None:
        raise EntryNotFoundError(word)
    return apply_review(entry, was_correct, now)


def is_meaning_correct(answer: str, definition: str) -> bool:
    """Grades a free-text meaning answer against the stored definition."""
    return answer.strip().lower() == definition.strip().lower()


class ReviewScheduler:
    """Picks the next word to review and records review outcomes.

    The scheduler holds no collection state. Every call takes the entries it
    works on and returns a value for the caller to persist.
    """

    def next_entry(
        self, entries: Iterable[WordEntry], now: Optional[int] = None
    ) -> Optional[WordEntry]:
        """Returns the most urgent entry, or None if ``entries`` is empty."""
        now = now_ms() if now is None else now
        entry = select_next(entries, now)
        if entry is None:
            logger.info("scheduler.empty_collection")
        else:
            logger.debug("scheduler.selected", word=entry.word, shown_times=entry.shown_times)
        return entry

    def review(
        self, entry: WordEntry, was_correct: bool, now: Optional[int] = None
    ) -> WordEntry:
        """Returns ``entry`` updated with the outcome of a presentation."""
        now = now_ms() if now is None else now
        updated = apply_review(entry, was_correct, now)
        logger.info(
            "scheduler.reviewed",
            word=entry.word,
            was_correct=was_correct,
            shown_times=updated.shown_times,
            difficulty=round(updated.difficulty, 2),
        )
        return updated

    def review_word(
        self,
        entries: Sequence[WordEntry],
        word: str,
        was_correct: bool,
        now: Optional[int] = None,
    ) -> WordEntry:
        """Looks up ``word`` in ``entries`` and records a review outcome for it.

        Raises:
            EntryNotFoundError: If no entry matches ``word``.
        """
        entry = find_entry(entries, word)
        if entry is None:
            raise EntryNotFoundError(word)
        return self.review(entry, was_correct, now)
