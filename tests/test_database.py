"""Unit tests for database module."""

from unittest.mock import patch

import pytest

from wordbank.core import (
    DuplicateIdError,
    DuplicateWordError,
    EntryNotFoundError,
    WordEntry,
    apply_review,
)
from wordbank.database import WordbankDatabase


@pytest.fixture
def db():
    database = WordbankDatabase()
    yield database
    database.close()


class TestWordbankDatabase:
    def test_database_initialization(self) -> None:
        db = WordbankDatabase()
        assert db is not None
        assert db.get_all_words() == []
        db.close()

    def test_file_database_persists(self, tmp_path) -> None:
        path = tmp_path / "nested" / "wordbank.duckdb"
        with WordbankDatabase(str(path)) as db:
            db.add_word("robust", "strong and healthy")
        with WordbankDatabase(str(path)) as db:
            assert db.get_word("robust").definition == "strong and healthy"

    def test_add_and_get_word(self, db: WordbankDatabase) -> None:
        entry = db.add_word("  Hello ", " a greeting ", "Hello there!")
        assert entry.word == "hello"
        assert entry.definition == "a greeting"
        assert entry.shown_times == 0
        assert entry.last_shown_at == 0
        assert entry.last_correct_at == 0

        retrieved = db.get_word("HELLO")
        assert retrieved == entry

    def test_ids_are_assigned_incrementally(self, db: WordbankDatabase) -> None:
        first = db.add_word("one")
        second = db.add_word("two")
        assert second.id == first.id + 1

    def test_duplicate_word_is_rejected(self, db: WordbankDatabase) -> None:
        db.add_word("hello")
        with pytest.raises(DuplicateWordError):
            db.add_word("Hello")

    def test_blank_word_is_rejected(self, db: WordbankDatabase) -> None:
        with pytest.raises(ValueError):
            db.add_word("   ")

    def test_get_missing_word(self, db: WordbankDatabase) -> None:
        assert db.get_word("missing") is None

    def test_remove_word(self, db: WordbankDatabase) -> None:
        db.add_word("hello")
        db.remove_word("Hello")
        assert db.get_word("hello") is None
        with pytest.raises(EntryNotFoundError):
            db.remove_word("hello")

    def test_get_all_words_is_ordered(self, db: WordbankDatabase) -> None:
        for word in ("yield", "algorithm", "insight"):
            db.add_word(word)
        assert [e.word for e in db.get_all_words()] == ["algorithm", "insight", "yield"]

    def test_update_word_writes_back_review(self, db: WordbankDatabase) -> None:
        entry = db.add_word("converge", "to come together")
        updated = apply_review(entry, False, 1_000)
        db.update_word(updated)

        stored = db.get_word("converge")
        assert stored.shown_times == 1
        assert stored.last_shown_at == 1_000
        assert stored.last_correct_at == 0
        assert stored.difficulty == pytest.approx(1.2)

    def test_update_missing_word(self, db: WordbankDatabase) -> None:
        with pytest.raises(EntryNotFoundError):
            db.update_word(WordEntry(id=1, word="ghost"))

    def test_mark_word_as_shown(self, db: WordbankDatabase) -> None:
        db.add_word("via")
        db.mark_word_as_shown("via", 5_000)
        db.mark_word_as_shown("VIA", 6_000)
        stored = db.get_word("via")
        assert stored.shown_times == 2
        assert stored.last_shown_at == 6_000
        with pytest.raises(EntryNotFoundError):
            db.mark_word_as_shown("nothing", 1)

    def test_replace_all(self, db: WordbankDatabase) -> None:
        db.add_word("old")
        entries = [
            WordEntry(id=10, word="feasible", shown_times=2, last_shown_at=50, last_correct_at=40, difficulty=2.5),
            WordEntry(id=11, word="insight"),
        ]
        assert db.replace_all(entries) == 2
        assert db.get_word("old") is None
        assert db.get_word("feasible") == entries[0]
        assert db.add_word("new").id == 12

    def test_replace_all_with_duplicates_keeps_content(self, db: WordbankDatabase) -> None:
        db.add_word("old")
        entries = [WordEntry(id=1, word="same"), WordEntry(id=2, word="SAME")]
        with pytest.raises(DuplicateWordError):
            db.replace_all(entries)
        assert db.get_word("old") is not None

    def test_replace_all_with_duplicate_ids_keeps_content(self, db: WordbankDatabase) -> None:
        db.add_word("keep1")
        db.add_word("keep2")
        entries = [WordEntry(id=1, word="alpha"), WordEntry(id=1, word="beta")]
        with pytest.raises(DuplicateIdError, match="Duplicate id in wordbank: 1"):
            db.replace_all(entries)
        assert [e.word for e in db.get_all_words()] == ["keep1", "keep2"]

    def test_replace_all_restores_content_when_insert_fails(self, db: WordbankDatabase) -> None:
        db.add_word("keep1")
        db.add_word("keep2")
        real_insert = db._insert

        def failing_insert(entry: WordEntry) -> None:
            if entry.word == "beta":
                raise DuplicateWordError(entry.word)
            real_insert(entry)

        entries = [WordEntry(id=1, word="alpha"), WordEntry(id=2, word="beta")]
        with patch.object(db, "_insert", side_effect=failing_insert):
            with pytest.raises(DuplicateWordError):
                db.replace_all(entries)
        assert [e.word for e in db.get_all_words()] == ["keep1", "keep2"]
        assert db.get_word("keep2").id == 2

    def test_get_stats(self, db: WordbankDatabase) -> None:
        assert db.get_stats() == {
            "total_words": 0,
            "never_shown": 0,
            "shown_words": 0,
            "average_shown_times": 0,
        }

        db.add_word("one")
        db.add_word("two")
        db.add_word("three")
        db.mark_word_as_shown("one", 100)
        db.mark_word_as_shown("one", 200)
        db.mark_word_as_shown("two", 300)

        stats = db.get_stats()
        assert stats["total_words"] == 3
        assert stats["never_shown"] == 1
        assert stats["shown_words"] == 2
        assert stats["average_shown_times"] == 1.0
