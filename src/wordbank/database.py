"""Database module for storing the wordbank."""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import duckdb
import structlog

from .core import (
    DuplicateIdError,
    DuplicateWordError,
    EntryNotFoundError,
    WordbankError,
    WordEntry,
    normalize_word,
)

logger = structlog.get_logger(__name__)

_COLUMNS = (
    "id, word, definition, example, last_shown_timestamp, "
    "last_correct_timestamp, shown_times, difficulty"
)


def _row_to_entry(row: tuple) -> WordEntry:
    return WordEntry(
        id=row[0],
        word=row[1],
        definition=row[2],
        example=row[3],
        last_shown_at=row[4],
        last_correct_at=row[5],
        shown_times=row[6],
        difficulty=row[7],
    )


class WordbankDatabase:
    """Manages the DuckDB database holding the wordbank.

    This is the storage side of the review loop: it hands out complete
    snapshots of the collection and persists single updated entries, keyed by
    their (case-insensitive) word. It never schedules anything itself.
    """

    def __init__(self, db_path: Optional[str] = None):
        """Initializes the WordbankDatabase connection.

        Args:
            db_path: Optional path to a DuckDB file. If None, an in-memory database is used.
        """
        self.db_path = db_path or ":memory:"
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.connection = duckdb.connect(self.db_path)
        self._create_tables()

    def _create_tables(self) -> None:
        """Creates the words table if it does not exist yet."""
        self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS words (
                id INTEGER PRIMARY KEY,
                word VARCHAR NOT NULL UNIQUE,
                definition VARCHAR NOT NULL DEFAULT '',
                example VARCHAR NOT NULL DEFAULT '',
                last_shown_timestamp BIGINT NOT NULL DEFAULT 0,
                last_correct_timestamp BIGINT NOT NULL DEFAULT 0,
                shown_times INTEGER NOT NULL DEFAULT 0,
                difficulty DOUBLE NOT NULL DEFAULT 0.0
            )
        """
        )

    def _next_id(self) -> int:
        return self.connection.execute(
            "SELECT COALESCE(MAX(id), 0) + 1 FROM words"
        ).fetchone()[0]

    def add_word(
        self,
        word: str,
        definition: str = "",
        example: str = "",
        difficulty: float = 0.0,
    ) -> WordEntry:
        """Adds a new, never-shown word to the wordbank.

        The word is stored trimmed and lower-cased.

        Args:
            word: The word to add.
            definition: Its reference meaning. May be empty and filled in later.
            example: An example sentence.
            difficulty: Initial difficulty.

        Returns:
            The stored WordEntry.

        Raises:
            ValueError: If the word is blank.
            DuplicateWordError: If the word is already in the wordbank.
        """
        key = normalize_word(word)
        if not key:
            raise ValueError("Word must not be empty.")
        if self.get_word(key) is not None:
            raise DuplicateWordError(key)

        entry = WordEntry(
            id=self._next_id(),
            word=key,
            definition=definition.strip(),
            example=example.strip(),
            difficulty=difficulty,
        )
        self._insert(entry)
        logger.info("wordbank.word_added", word=key, id=entry.id)
        return entry

    def _insert(self, entry: WordEntry) -> None:
        try:
            self.connection.execute(
                f"INSERT INTO words ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    entry.id,
                    normalize_word(entry.word),
                    entry.definition,
                    entry.example,
                    entry.last_shown_at,
                    entry.last_correct_at,
                    entry.shown_times,
                    entry.difficulty,
                ),
            )
        except duckdb.ConstraintException as e:
            raise DuplicateWordError(entry.word) from e

    def remove_word(self, word: str) -> None:
        """Removes a word from the wordbank.

        Raises:
            EntryNotFoundError: If the word is not in the wordbank.
        """
        key = normalize_word(word)
        if self.get_word(key) is None:
            raise EntryNotFoundError(word)
        self.connection.execute("DELETE FROM words WHERE word = ?", (key,))
        logger.info("wordbank.word_removed", word=key)

    def get_word(self, word: str) -> Optional[WordEntry]:
        """Retrieves a single entry by word, case-insensitively.

        Returns:
            The WordEntry if found, otherwise None.
        """
        result = self.connection.execute(
            f"SELECT {_COLUMNS} FROM words WHERE word = ?",
            (normalize_word(word),),
        ).fetchone()
        return _row_to_entry(result) if result else None

    def get_all_words(self) -> List[WordEntry]:
        """Returns a snapshot of the whole wordbank, ordered by word."""
        results = self.connection.execute(
            f"SELECT {_COLUMNS} FROM words ORDER BY word ASC"
        ).fetchall()
        return [_row_to_entry(result) for result in results]

    def update_word(self, entry: WordEntry) -> None:
        """Writes back an entry after a review, keyed by its word.

        Raises:
            EntryNotFoundError: If the word is not in the wordbank.
        """
        key = entry.key
        if self.get_word(key) is None:
            raise EntryNotFoundError(entry.word)
        self.connection.execute(
            """
            UPDATE words
            SET definition = ?, example = ?, last_shown_timestamp = ?,
                last_correct_timestamp = ?, shown_times = ?, difficulty = ?
            WHERE word = ?
        """,
            (
                entry.definition,
                entry.example,
                entry.last_shown_at,
                entry.last_correct_at,
                entry.shown_times,
                entry.difficulty,
                key,
            ),
        )
        logger.debug("wordbank.word_updated", word=key, shown_times=entry.shown_times)

    def mark_word_as_shown(self, word: str, now: int) -> None:
        """Records a presentation without an outcome.

        Raises:
            EntryNotFoundError: If the word is not in the wordbank.
        """
        key = normalize_word(word)
        if self.get_word(key) is None:
            raise EntryNotFoundError(word)
        self.connection.execute(
            """
            UPDATE words
            SET last_shown_timestamp = ?, shown_times = shown_times + 1
            WHERE word = ?
        """,
            (now, key),
        )

    def replace_all(self, entries: Iterable[WordEntry]) -> int:
        """Replaces the whole wordbank with ``entries``, as done on import.

        Entries are checked for repeated words and ids before anything is
        deleted. If storing them still fails, the previous content is written
        back and the error is raised again.

        Returns:
            The number of entries stored.

        Raises:
            DuplicateWordError: If two entries share a word.
            DuplicateIdError: If two entries share an id.
        """
        entries = list(entries)
        seen_words = set()
        seen_ids = set()
        for entry in entries:
            if entry.key in seen_words:
                raise DuplicateWordError(entry.key)
            if entry.id in seen_ids:
                raise DuplicateIdError(entry.id)
            seen_words.add(entry.key)
            seen_ids.add(entry.id)

        # DuckDB can reject re-inserting a deleted key within one
        # transaction, so a failed import is undone by rewriting the snapshot.
        previous = self.get_all_words()
        self.connection.execute("DELETE FROM words")
        try:
            for entry in entries:
                self._insert(entry)
        except (WordbankError, duckdb.Error) as e:
            logger.error("wordbank.replace_failed", error=str(e), restored=len(previous))
            self.connection.execute("DELETE FROM words")
            for entry in previous:
                self._insert(entry)
            raise
        logger.info("wordbank.replaced", count=len(entries))
        return len(entries)

    def get_stats(self) -> Dict[str, Any]:
        """Retrieves statistics about the wordbank.

        Returns:
            A dictionary containing:
            - "total_words": Number of words in the wordbank.
            - "never_shown": Number of words never presented.
            - "shown_words": Number of words presented at least once.
            - "average_shown_times": Mean presentations per word, rounded to 2 decimals.
        """
        total_words, never_shown, shown_words, avg_shown = self.connection.execute(
            """
            SELECT
                COUNT(*),
                COUNT(*) FILTER (WHERE last_shown_timestamp = 0),
                COUNT(*) FILTER (WHERE last_shown_timestamp > 0),
                AVG(shown_times)
            FROM words
        """
        ).fetchone()

        return {
            "total_words": total_words,
            "never_shown": never_shown,
            "shown_words": shown_words,
            "average_shown_times": round(avg_shown or 0, 2),
        }

    def close(self) -> None:
        """Closes the database connection."""
        self.connection.close()

    def __enter__(self) -> "WordbankDatabase":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
