"""Demo interface for Wordbank using Gradio."""

import random
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

import gradio as gr
import structlog

from .ai import AIService, AIServiceFactory
from .config import Settings, get_database_path, load_settings
from .core import ReviewScheduler, WordbankError
from .database import WordbankDatabase
from .files import load_wordbank_from_file, save_wordbank_to_file
from .logging import configure_logging
from .quiz import QuizMode, QuizStep, grade_answer, plan_quiz, plan_sentence_step

logger = structlog.get_logger(__name__)

NOTHING_TO_REVIEW = "No words to review. Please add more words or select a new wordbank."


class WordbankDemo:
    """Interactive demo interface for the Wordbank application.

    This class holds the state of one learning session (the database, the
    scheduler, the AI service and the card currently on screen) and exposes
    plain-text methods that the Gradio interface wires to its widgets.
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initializes the WordbankDemo instance.

        Args:
            db_path: Wordbank database file. Defaults to the one in the Wordbank home.
            settings: Settings to use. Defaults to the stored settings.
            rng: Random source for quiz card selection.
        """
        self.settings = settings or load_settings()
        self.db = WordbankDatabase(db_path or str(get_database_path()))
        self.scheduler = ReviewScheduler()
        self.rng = rng or random.Random()
        self.current_step: Optional[QuizStep] = None
        self.ai_service: Optional[AIService] = None
        self._refresh_ai_service()

    def _refresh_ai_service(self) -> None:
        try:
            self.ai_service = AIServiceFactory.from_settings(self.settings)
        except WordbankError as e:
            logger.warning("demo.ai_unavailable", error=str(e))
            self.ai_service = None

    def add_word(self, word: str, definition: str, example: str) -> str:
        """Adds a word to the wordbank.

        Returns:
            A string message indicating success or failure.
        """
        if not word.strip():
            return "Please provide a word."
        try:
            entry = self.db.add_word(word, definition, example)
        except WordbankError as e:
            return str(e)
        return f"Added word: {entry.word}"

    def remove_word(self, word: str) -> str:
        try:
            self.db.remove_word(word)
        except WordbankError as e:
            return str(e)
        return f"Removed word: {word.strip().lower()}"

    def start_review(self) -> Tuple[str, List[str]]:
        """Picks the next word and prepares its quiz card.

        Returns:
            A tuple of the question text and the multiple-choice options
            (empty for free-text and yes/no cards).
        """
        entry = self.scheduler.next_entry(self.db.get_all_words())
        if entry is None:
            self.current_step = None
            return NOTHING_TO_REVIEW, []

        self.current_step = plan_quiz(entry, self.ai_service, self.rng)
        return self.current_step.question, self.current_step.options

    def submit_answer(self, answer: str) -> str:
        """Grades the answer to the current card and records the outcome.

        A "no" on a recognition card is followed, when AI is configured, by an
        example-sentence card; the outcome is recorded once that is answered.

        Returns:
            A string message summarizing the outcome.
        """
        step = self.current_step
        if step is None:
            return "No card to review. Please start a review first."
        if not answer or not answer.strip():
            return "Please enter an answer."

        try:
            correct = grade_answer(step, answer, self.ai_service)
        except ValueError as e:
            return f"Error during review: {e}"

        if step.mode is QuizMode.JUDGE and not correct and self.ai_service is not None:
            self.current_step = plan_sentence_step(step.entry, self.ai_service)
            return self.current_step.question

        try:
            updated = self.scheduler.review(step.entry, correct)
            self.db.update_word(updated)
        except WordbankError as e:
            return f"Error during review: {e}"
        finally:
            self.current_step = None

        result = "Correct!\n\n" if correct else "Not quite.\n\n"
        result += f"Word: {updated.word}\n"
        if updated.definition:
            result += f"Meaning: {updated.definition}\n"
        result += f"Times shown: {updated.shown_times}\n"
        result += f"Difficulty: {updated.difficulty:.2f}"
        return result

    def import_wordbank(self, file_path: Optional[str]) -> str:
        if not file_path:
            return "Please choose a wordbank file."
        try:
            count = self.db.replace_all(load_wordbank_from_file(file_path))
        except WordbankError as e:
            return str(e)
        self.current_step = None
        return f"Imported {count} words."

    def export_wordbank(self) -> str:
        """Writes the wordbank to a temporary JSON file and returns its path."""
        path = Path(tempfile.mkdtemp()) / "wordbank.json"
        return str(save_wordbank_to_file(self.db.get_all_words(), path))

    def set_api_key(self, api_key: str, service_type: str) -> str:
        """Sets the API key and AI service type for quiz generation.

        Returns:
            A string message confirming the API key status.
        """
        self.settings.ai.api_key = api_key.strip()
        self.settings.ai.service = service_type
        self._refresh_ai_service()

        if not self.settings.ai.api_key:
            return "API key cleared."

        return f"API key set for {service_type} service."

    def get_stats(self) -> str:
        """Retrieves and formats wordbank statistics from the database."""
        stats = self.db.get_stats()

        result = "=== Wordbank Statistics ===\n"
        result += f"Total words: {stats['total_words']}\n"
        result += f"Never shown: {stats['never_shown']}\n"
        result += f"Shown words: {stats['shown_words']}\n"
        result += f"Average times shown: {stats['average_shown_times']}"

        return result


def create_demo_interface(demo: Optional[WordbankDemo] = None) -> gr.Blocks:
    """Creates and configures the Gradio web interface for Wordbank.

    Returns:
        A Gradio Blocks object ready to be launched.
    """
    demo = demo or WordbankDemo()

    def start():
        question, options = demo.start_review()
        return question, gr.update(choices=options, value=None, visible=bool(options)), ""

    def submit(text_answer, choice_answer):
        return demo.submit_answer(choice_answer or text_answer or "")

    with gr.Blocks(title="Wordbank") as interface:
        gr.Markdown("# Wordbank")
        gr.Markdown("Spaced repetition vocabulary practice with AI-written quizzes")

        with gr.Tab("Learn"):
            start_btn = gr.Button("Next Word", variant="primary")
            question_output = gr.Textbox(label="Question", interactive=False)
            choice_input = gr.Radio(label="Choices", choices=[], visible=False)
            answer_input = gr.Textbox(
                label="Your Answer", placeholder="Type your answer, or yes/no"
            )
            submit_btn = gr.Button("Submit", variant="primary")
            result_output = gr.Textbox(label="Result", interactive=False)

            start_btn.click(
                start, outputs=[question_output, choice_input, result_output]
            )
            submit_btn.click(
                submit, inputs=[answer_input, choice_input], outputs=result_output
            )

        with gr.Tab("Words"):
            with gr.Row():
                word_input = gr.Textbox(label="Word", placeholder="Enter the word")
                definition_input = gr.Textbox(label="Definition")
                example_input = gr.Textbox(label="Example")
            with gr.Row():
                add_btn = gr.Button("Add Word", variant="primary")
                remove_btn = gr.Button("Remove Word")
            words_output = gr.Textbox(label="Result", interactive=False)

            add_btn.click(
                demo.add_word,
                inputs=[word_input, definition_input, example_input],
                outputs=words_output,
            )
            remove_btn.click(demo.remove_word, inputs=[word_input], outputs=words_output)

        with gr.Tab("Import / Export"):
            file_input = gr.File(label="Wordbank JSON", type="filepath")
            import_btn = gr.Button("Import", variant="primary")
            import_output = gr.Textbox(label="Import Result", interactive=False)
            export_btn = gr.Button("Export")
            export_output = gr.File(label="Exported Wordbank")

            import_btn.click(demo.import_wordbank, inputs=[file_input], outputs=import_output)
            export_btn.click(demo.export_wordbank, outputs=export_output)

        with gr.Tab("Statistics"):
            stats_btn = gr.Button("Get Statistics", variant="primary")
            stats_output = gr.Textbox(label="Statistics", interactive=False)

            stats_btn.click(demo.get_stats, outputs=stats_output)

        with gr.Tab("Settings"):
            with gr.Row():
                api_key_input = gr.Textbox(
                    label="API Key",
                    placeholder="Enter your OpenAI or Gemini API key",
                    type="password",
                )
                service_select = gr.Dropdown(
                    choices=AIServiceFactory.get_available_services(),
                    value=demo.settings.ai.service,
                    label="AI Service",
                )
                set_key_btn = gr.Button("Set API Key")
            key_output = gr.Textbox(label="API Key Status", interactive=False)

            set_key_btn.click(
                demo.set_api_key,
                inputs=[api_key_input, service_select],
                outputs=key_output,
            )

    return interface


def main() -> None:
    """Runs the Wordbank demo interface."""
    settings = load_settings()
    configure_logging(debug=settings.advanced.debug_mode)
    interface = create_demo_interface(WordbankDemo(settings=settings))
    interface.launch(share=False, server_name="0.0.0.0", server_port=7860)


if __name__ == "__main__":
    main()
