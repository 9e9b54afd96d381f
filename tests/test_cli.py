"""Unit tests for the command-line interface."""

import json
from unittest.mock import MagicMock

import pytest

from wordbank.ai import AIService, WordChoice
from wordbank.cli import learn, main, review_once
from wordbank.config import Settings
from wordbank.core import ReviewScheduler
from wordbank.database import WordbankDatabase


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch, tmp_path):
    monkeypatch.setenv("WORDBANK_HOME", str(tmp_path / "home"))
    for name in ("OPENAI_API_KEY", "GEMINI_API_KEY", "WORDBANK_DEBUG"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "wordbank.duckdb")


def run(db_path: str, *args: str) -> None:
    main(["--db", db_path, *args])


def scripted_input(*answers: str):
    replies = list(answers)
    return lambda prompt="": replies.pop(0)


class TestCommands:
    def test_no_command_prints_help(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1
        assert "usage" in capsys.readouterr().out

    def test_add_show_and_list(self, db_path, capsys) -> None:
        run(db_path, "add", "Converge", "--definition", "to come together")
        run(db_path, "add", "yield", "--definition", "produce or provide")
        run(db_path, "show", "converge")
        run(db_path, "list")
        out = capsys.readouterr().out
        assert "Added word: converge" in out
        assert "Definition: to come together" in out
        assert "Shown: 0 times, last never" in out
        assert "yield: produce or provide" in out

    def test_add_duplicate_exits_with_error(self, db_path, capsys) -> None:
        run(db_path, "add", "converge")
        with pytest.raises(SystemExit) as exc:
            run(db_path, "add", "CONVERGE")
        assert exc.value.code == 1
        assert "Error: Word already exists in wordbank: converge" in capsys.readouterr().out

    def test_remove_missing_word(self, db_path, capsys) -> None:
        with pytest.raises(SystemExit):
            run(db_path, "remove", "ghost")
        assert "Error: Word not found in wordbank: ghost" in capsys.readouterr().out

    def test_next_on_empty_wordbank(self, db_path, capsys) -> None:
        run(db_path, "next")
        assert "No words to review" in capsys.readouterr().out

    def test_ranked_list(self, db_path, capsys) -> None:
        run(db_path, "add", "converge")
        run(db_path, "list", "--ranked")
        assert "converge" in capsys.readouterr().out

    def test_import_export_and_stats(self, db_path, tmp_path, capsys) -> None:
        source = tmp_path / "in.json"
        source.write_text(
            json.dumps(
                [
                    {
                        "id": 1,
                        "word": "insight",
                        "definition": "accurate understanding",
                        "last_shown_timestamp": 1_700_000_000_000,
                        "last_correct_timestamp": 1_700_000_000_000,
                        "shown_times": 3,
                        "difficulty": 1.5,
                        "example": "",
                    }
                ]
            )
        )
        target = tmp_path / "out.json"
        run(db_path, "import", str(source))
        run(db_path, "export", str(target))
        run(db_path, "stats")

        out = capsys.readouterr().out
        assert "Imported 1 words" in out
        assert json.loads(target.read_text())[0]["shown_times"] == 3
        assert "Total words: 1" in out
        assert "Average times shown: 3.0" in out

    def test_import_invalid_file(self, db_path, tmp_path, capsys) -> None:
        source = tmp_path / "in.json"
        source.write_text("not json")
        with pytest.raises(SystemExit):
            run(db_path, "import", str(source))
        assert "Error: Invalid JSON file." in capsys.readouterr().out

    def test_import_missing_file(self, db_path, tmp_path, capsys) -> None:
        with pytest.raises(SystemExit):
            run(db_path, "import", str(tmp_path / "missing.json"))
        assert "Error: Cannot read wordbank file" in capsys.readouterr().out

    def test_check_ai_without_key(self, db_path, capsys) -> None:
        with pytest.raises(SystemExit):
            run(db_path, "check-ai")
        assert "OPENAI_API_KEY" in capsys.readouterr().out


class TestLearn:
    @pytest.fixture
    def db(self):
        database = WordbankDatabase()
        yield database
        database.close()

    def test_review_once_records_outcome(self, db) -> None:
        db.add_word("converge", "to come together")
        updated = review_once(db, ReviewScheduler(), None, scripted_input("y"))
        assert updated.shown_times == 1
        assert db.get_word("converge").last_correct_at == updated.last_shown_at

    def test_review_once_on_empty_wordbank(self, db) -> None:
        assert review_once(db, ReviewScheduler(), None, scripted_input()) is None

    def test_unknown_word_with_ai_asks_for_sentence(self, db) -> None:
        ai_service = MagicMock(spec=AIService)
        ai_service.generate_definition.return_value = "to come together"
        ai_service.check_example.return_value = False
        db.add_word("converge")

        updated = review_once(db, ReviewScheduler(), ai_service, scripted_input("n", "converge is a word"))
        assert updated.last_correct_at == 0
        assert updated.difficulty == pytest.approx(1.2)
        ai_service.check_example.assert_called_once_with("converge", "converge is a word")

    def test_session_covers_each_new_word_first(self, db, capsys) -> None:
        for word in ("alpha", "beta", "gamma"):
            db.add_word(word, f"{word} meaning")
        learn(db, Settings(), 3, scripted_input("y", "n", "y"))

        assert all(entry.shown_times == 1 for entry in db.get_all_words())
        assert "3 words reviewed" in capsys.readouterr().out

    def test_session_stops_when_empty(self, db, capsys) -> None:
        learn(db, Settings(), 5, scripted_input())
        out = capsys.readouterr().out
        assert "No words to review" in out
        assert "0 words reviewed" in out

    def test_multiple_choice_prompt_rejects_bad_index(self, db, capsys) -> None:
        ai_service = MagicMock(spec=AIService)
        ai_service.generate_word_choices.return_value = [
            WordChoice(choice=f"option {i}", is_correct=i == 2) for i in range(4)
        ]
        entry = db.add_word("converge", "option 2")
        db.update_word(
            entry.model_copy(update={"shown_times": 1, "last_shown_at": 1, "last_correct_at": 1})
        )
        rng = MagicMock()
        rng.random.return_value = 0.9

        updated = review_once(db, ReviewScheduler(), ai_service, scripted_input("9", "3"), rng)
        assert updated.shown_times == 2
        assert updated.last_correct_at == updated.last_shown_at
        assert "Please enter a number between 1 and 4" in capsys.readouterr().out
