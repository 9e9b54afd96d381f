"""Command-line interface for Wordbank."""

import argparse
import random
import sys
from datetime import datetime
from typing import Callable, List, Optional

from .ai import AIService, AIServiceFactory
from .config import Settings, get_database_path, load_settings
from .core import ReviewScheduler, WordbankError, WordEntry, now_ms, rank_entries
from .database import WordbankDatabase
from .files import load_wordbank_from_file, save_wordbank_to_file
from .logging import configure_logging
from .quiz import QuizMode, QuizStep, grade_answer, plan_quiz, plan_sentence_step


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Wordbank: vocabulary learning with spaced repetition and AI-written quizzes"
    )
    parser.add_argument("--db", help="Path to the wordbank database file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    add_parser = subparsers.add_parser("add", help="Add a new word")
    add_parser.add_argument("word", help="Word to learn")
    add_parser.add_argument("--definition", default="", help="Meaning of the word")
    add_parser.add_argument("--example", default="", help="Example sentence")
    add_parser.add_argument("--difficulty", type=float, default=0.0, help="Initial difficulty")
    add_parser.add_argument(
        "--generate", action="store_true", help="Fill a missing definition and example with AI"
    )

    remove_parser = subparsers.add_parser("remove", help="Remove a word")
    remove_parser.add_argument("word", help="Word to remove")

    show_parser = subparsers.add_parser("show", help="Show one word")
    show_parser.add_argument("word", help="Word to show")

    list_parser = subparsers.add_parser("list", help="List all words")
    list_parser.add_argument(
        "--ranked", action="store_true", help="Order by review priority and show scores"
    )

    subparsers.add_parser("next", help="Show the word that would be reviewed next")

    learn_parser = subparsers.add_parser("learn", help="Start an interactive review session")
    learn_parser.add_argument(
        "--count", type=int, help="Number of words to review (default: words_per_session)"
    )

    import_parser = subparsers.add_parser("import", help="Replace the wordbank with a JSON file")
    import_parser.add_argument("path", help="Wordbank JSON file")

    export_parser = subparsers.add_parser("export", help="Write the wordbank to a JSON file")
    export_parser.add_argument("path", nargs="?", default="wordbank.json", help="Output file")

    subparsers.add_parser("stats", help="Show wordbank statistics")
    subparsers.add_parser("check-ai", help="Check the connection to the AI service")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    settings = load_settings()
    configure_logging(debug=args.debug or settings.advanced.debug_mode)

    db = WordbankDatabase(args.db or str(get_database_path()))

    try:
        if args.command == "add":
            add_word(db, settings, args.word, args.definition, args.example, args.difficulty, args.generate)
        elif args.command == "remove":
            db.remove_word(args.word)
            print(f"Removed word: {args.word}")
        elif args.command == "show":
            show_word(db, args.word)
        elif args.command == "list":
            list_words(db, args.ranked)
        elif args.command == "next":
            show_next(db)
        elif args.command == "learn":
            learn(db, settings, args.count or settings.general.words_per_session)
        elif args.command == "import":
            count = db.replace_all(load_wordbank_from_file(args.path))
            print(f"Imported {count} words from {args.path}")
        elif args.command == "export":
            path = save_wordbank_to_file(db.get_all_words(), args.path)
            print(f"Exported wordbank to {path}")
        elif args.command == "stats":
            show_stats(db)
        elif args.command == "check-ai":
            if not check_ai(settings):
                sys.exit(1)
    except WordbankError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()


def _format_time(timestamp: int) -> str:
    if not timestamp:
        return "never"
    return datetime.fromtimestamp(timestamp / 1000).strftime("%Y-%m-%d %H:%M")


def _describe(entry: WordEntry) -> str:
    lines = [
        f"Word: {entry.word}",
        f"Definition: {entry.definition or '-'}",
        f"Example: {entry.example or '-'}",
        f"Shown: {entry.shown_times} times, last {_format_time(entry.last_shown_at)}",
        f"Last correct: {_format_time(entry.last_correct_at)}",
        f"Difficulty: {entry.difficulty:.2f}",
    ]
    return "\n".join(lines)


def add_word(
    db: WordbankDatabase,
    settings: Settings,
    word: str,
    definition: str,
    example: str,
    difficulty: float,
    generate: bool,
) -> None:
    """Add a new word, optionally asking the AI service for missing text."""
    if generate and (not definition or not example):
        ai_service = AIServiceFactory.from_settings(settings)
        if ai_service is None:
            print("AI is not configured; adding the word without generated text.")
        else:
            if not definition:
                definition = ai_service.generate_definition(word)
            if not example:
                examples = ai_service.generate_examples(word, 1)
                example = examples[0] if examples else ""

    entry = db.add_word(word, definition, example, difficulty)
    print(f"Added word: {entry.word}")
    if entry.definition:
        print(f"Definition: {entry.definition}")


def show_word(db: WordbankDatabase, word: str) -> None:
    entry = db.get_word(word)
    if entry is None:
        print(f"Word not found in wordbank: {word}")
        return
    print(_describe(entry))


def list_words(db: WordbankDatabase, ranked: bool) -> None:
    """List the wordbank, alphabetically or by review priority."""
    entries = db.get_all_words()
    if not entries:
        print("The wordbank is empty.")
        return

    if ranked:
        for entry, score in rank_entries(entries, now_ms()):
            print(f"{score:12.2f}  {entry.word}")
    else:
        for entry in entries:
            print(f"{entry.word}: {entry.definition}")


def show_next(db: WordbankDatabase) -> None:
    entry = ReviewScheduler().next_entry(db.get_all_words())
    if entry is None:
        print("No words to review. Please add more words or import a wordbank.")
        return
    print(_describe(entry))


def _ask_step(step: QuizStep, input_fn: Callable[[str], str]) -> str:
    print(f"\n{step.question}")
    if step.mode is QuizMode.JUDGE:
        return input_fn("Answer (y/n): ")
    if step.mode is QuizMode.MULTIPLE:
        for i, option in enumerate(step.options, 1):
            print(f"  {i}. {option}")
        while True:
            answer = input_fn("Choose 1-4: ").strip()
            if answer.isdigit() and 1 <= int(answer) <= len(step.options):
                return step.options[int(answer) - 1]
            print("Please enter a number between 1 and 4")
    return input_fn("Your answer: ")


def review_once(
    db: WordbankDatabase,
    scheduler: ReviewScheduler,
    ai_service: Optional[AIService],
    input_fn: Callable[[str], str] = input,
    rng: Optional[random.Random] = None,
) -> Optional[WordEntry]:
    """Run one quiz card and persist its outcome.

    Returns:
        The updated entry, or None when the wordbank has nothing to review.
    """
    entry = scheduler.next_entry(db.get_all_words())
    if entry is None:
        return None

    step = plan_quiz(entry, ai_service, rng)
    answer = _ask_step(step, input_fn)
    correct = grade_answer(step, answer)

    if step.mode is QuizMode.JUDGE and not correct and ai_service is not None:
        step = plan_sentence_step(entry, ai_service)
        sentence = _ask_step(step, input_fn)
        correct = grade_answer(step, sentence, ai_service)

    updated = scheduler.review(entry, correct)
    db.update_word(updated)

    if correct:
        print("Correct!")
    else:
        print("Not quite.")
        if entry.definition:
            print(f"Meaning: {entry.definition}")
    return updated


def learn(
    db: WordbankDatabase,
    settings: Settings,
    count: int,
    input_fn: Callable[[str], str] = input,
) -> None:
    """Review up to ``count`` words interactively."""
    scheduler = ReviewScheduler()
    ai_service = AIServiceFactory.from_settings(settings)
    if ai_service is None:
        print("AI is not configured; only free-text cards will be used.")

    reviewed = 0
    while reviewed < count:
        if review_once(db, scheduler, ai_service, input_fn) is None:
            print("No words to review. Please add more words or import a wordbank.")
            break
        reviewed += 1

    print(f"\nSession finished: {reviewed} words reviewed.")


def show_stats(db: WordbankDatabase) -> None:
    """Show wordbank statistics."""
    stats = db.get_stats()

    print("=== Wordbank Statistics ===")
    print(f"Total words: {stats['total_words']}")
    print(f"Never shown: {stats['never_shown']}")
    print(f"Shown words: {stats['shown_words']}")
    print(f"Average times shown: {stats['average_shown_times']}")


def check_ai(settings: Settings) -> bool:
    ai_service = AIServiceFactory.from_settings(settings)
    if ai_service is None:
        key_name = f"{settings.ai.service.upper()}_API_KEY"
        print(f"Error: No API key configured for {settings.ai.service}")
        print(f"Set {key_name} environment variable or add it to the settings file")
        return False

    if ai_service.test_connection():
        print(f"{settings.ai.service} API connection successful ({ai_service.get_current_model()})")
        return True
    print(f"{settings.ai.service} API connection failed")
    return False


if __name__ == "__main__":
    main()
