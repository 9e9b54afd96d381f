#!/usr/bin/env python3
"""Basic usage example for Wordbank."""

from wordbank import ReviewScheduler, WordbankDatabase
from wordbank.ai import AIServiceFactory
from wordbank.config import load_settings
from wordbank.core import BASE_DAY_MS, now_ms, priority_score


def main() -> None:
    """Demonstrate basic Wordbank functionality."""
    print("🎯 Wordbank Basic Usage Example")
    print("=" * 50)

    db = WordbankDatabase()
    scheduler = ReviewScheduler()

    settings = load_settings()
    ai_service = AIServiceFactory.from_settings(settings)
    if ai_service is None:
        print("⚠️  No API key found. Set OPENAI_API_KEY or GEMINI_API_KEY.")
        print("   Definitions will not be generated.")

    try:
        print("\n📝 Adding sample words...")
        words_data = [
            ("converge", "to come together from different directions"),
            ("yield", ""),
            ("insight", "an accurate and deep understanding"),
        ]
        for word, definition in words_data:
            if not definition and ai_service is not None:
                definition = ai_service.generate_definition(word)
            entry = db.add_word(word, definition)
            print(f"   ✅ Added: {entry.word}")

        # Pretend "insight" was last reviewed a month ago
        now = now_ms()
        insight = db.get_word("insight")
        db.update_word(
            insight.model_copy(
                update={
                    "last_shown_at": now - 30 * BASE_DAY_MS,
                    "last_correct_at": now - 30 * BASE_DAY_MS,
                    "shown_times": 4,
                    "difficulty": 1.5,
                }
            )
        )

        print("\n📊 Priorities:")
        for entry in db.get_all_words():
            print(f"   {entry.word}: {priority_score(entry, now):.2f}")

        print("\n🔄 Reviewing the three most urgent words...")
        for correct in (True, False, True):
            entry = scheduler.next_entry(db.get_all_words())
            updated = scheduler.review(entry, correct)
            db.update_word(updated)
            outcome = "correct" if correct else "incorrect"
            print(
                f"   {updated.word}: {outcome}, shown {updated.shown_times} times, "
                f"difficulty {updated.difficulty:.2f}"
            )

        print("\n📊 Final statistics:")
        stats = db.get_stats()
        print(f"   Total words: {stats['total_words']}")
        print(f"   Never shown: {stats['never_shown']}")
        print(f"   Average times shown: {stats['average_shown_times']}")

        print("\n🎉 Example completed successfully!")

    finally:
        db.close()


if __name__ == "__main__":
    main()
