"""AI service module for generating quiz content.

The services here write definitions, examples and multiple-choice options for
the quiz cards and grade free-form example sentences. Scheduling never depends
on anything they return.
"""

import json
from abc import ABC, abstractmethod
from typing import List, Optional

import google.generativeai as genai
import openai
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import Settings
from .core import WordbankError

logger = structlog.get_logger(__name__)

DEFAULT_OPENAI_URL = "https://api.openai.com/v1/"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_GEMINI_MODEL = "models/gemini-2.5-flash-lite"


class AIConfigurationError(WordbankError, RuntimeError):
    """Raised when an AI service is used without the required configuration."""


class WordChoice(BaseModel):
    """One option of a multiple-choice question."""

    choice: str = Field(..., description="Candidate meaning")
    is_correct: bool = Field(..., alias="isCorrect", description="Whether this is the meaning")

    model_config = ConfigDict(populate_by_name=True)


class WordAnalysis(BaseModel):
    word: str
    definition: str = ""
    examples: List[str] = Field(default_factory=list)
    synonyms: List[str] = Field(default_factory=list)
    context: str = ""


def _parse_word_choices(content: str) -> Optional[List[WordChoice]]:
    """Parses a model reply into exactly four choices with one correct answer.

    Returns:
        The choices, or None if the reply does not match the expected format.
    """
    try:
        data = json.loads(_strip_code_fence(content))
    except json.JSONDecodeError:
        logger.warning("ai.choices_not_json", content=content)
        return None

    if not isinstance(data, list) or len(data) != 4:
        return None
    try:
        choices = [WordChoice.model_validate(item, strict=True) for item in data]
    except ValidationError:
        return None
    if sum(1 for c in choices if c.is_correct) != 1:
        return None
    return choices


def _strip_code_fence(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        content = content.strip("`")
        if content.startswith("json"):
            content = content[len("json"):]
    return content.strip()


def _strip_quotes(sentence: str) -> str:
    if len(sentence) >= 2 and sentence.startswith('"') and sentence.endswith('"'):
        return sentence[1:-1]
    return sentence


def _get_openai_client(api_key: str, base_url: str) -> openai.OpenAI:
    return openai.OpenAI(api_key=api_key, base_url=base_url)


def _get_gemini_client(api_key: str, model_name: str) -> genai.GenerativeModel:
    genai.configure(api_key=api_key)
    return genai.GenerativeModel(model_name)


class AIService(ABC):
    """Abstract base class for AI services.

    Subclasses only provide ``_complete``; the prompts and the parsing of the
    replies are shared. Provider errors are logged and turned into neutral
    results (empty text, empty lists, False) so a failing provider never
    blocks a review.
    """

    def __init__(self, api_key: str, model_name: str):
        if not api_key:
            raise AIConfigurationError("API key is required")
        self.api_key = api_key
        self.model_name = model_name

    @abstractmethod
    def _complete(
        self, system: str, prompt: str, max_tokens: int, temperature: float
    ) -> str:
        """Sends a single chat turn and returns the stripped reply text."""

    def get_current_model(self) -> str:
        return self.model_name

    def test_connection(self) -> bool:
        """Checks that the provider answers a trivial request."""
        try:
            return bool(self._complete("", "Hello", max_tokens=5, temperature=0.0))
        except Exception as e:
            logger.error("ai.connection_failed", model=self.model_name, error=str(e))
            return False

    def generate_definition(self, word: str, context: str = "") -> str:
        """Generates a short definition of ``word``, optionally as used in ``context``."""
        prompt = (
            f'Define the word "{word}" as used in this context: "{context}". '
            "Provide a clear, concise definition."
            if context
            else f'Define the word "{word}". Provide a clear, concise definition.'
        )
        try:
            return self._complete(
                "You are a helpful assistant that provides clear, concise definitions "
                "of words. Keep definitions brief but informative.",
                prompt,
                max_tokens=150,
                temperature=0.3,
            )
        except Exception as e:
            logger.error("ai.definition_failed", word=word, error=str(e))
            return ""

    def generate_examples(self, word: str, count: int = 3) -> List[str]:
        """Generates ``count`` example sentences, one per list item."""
        prompt = (
            f'Create {count} example sentences using the word "{word}". Each sentence '
            "should demonstrate different uses or meanings of the word. Return only "
            "the sentences, one per line."
        )
        try:
            content = self._complete(
                "You are a helpful assistant that creates example sentences. Provide "
                "clear, practical examples that demonstrate word usage.",
                prompt,
                max_tokens=200,
                temperature=0.5,
            )
        except Exception as e:
            logger.error("ai.examples_failed", word=word, error=str(e))
            return []
        return [line.strip() for line in content.split("\n") if line.strip()]

    def generate_synonyms(self, word: str, count: int = 5) -> List[str]:
        prompt = (
            f'Provide {count} synonyms for the word "{word}". '
            "Return only the synonyms, separated by commas."
        )
        try:
            content = self._complete(
                "You are a helpful assistant that provides synonyms. Return only the "
                "synonyms, separated by commas.",
                prompt,
                max_tokens=50,
                temperature=0.3,
            )
        except Exception as e:
            logger.error("ai.synonyms_failed", word=word, error=str(e))
            return []
        return [s.strip() for s in content.split(",") if s.strip()]

    def analyze_word(self, word: str, context: str = "") -> WordAnalysis:
        """Collects a definition, three examples and five synonyms for ``word``."""
        return WordAnalysis(
            word=word,
            definition=self.generate_definition(word, context),
            examples=self.generate_examples(word, 3),
            synonyms=self.generate_synonyms(word, 5),
            context=context,
        )

    def generate_word_choices(self, word: str, retry: int = 1) -> List[WordChoice]:
        """Generates four candidate meanings for ``word``, exactly one of them correct.

        Args:
            word: The word to quiz.
            retry: How many extra attempts to make when a reply is malformed.

        Returns:
            Four WordChoice objects, or an empty list if no usable reply came back.
        """
        system = (
            "You are a helpful assistant that creates multiple-choice vocabulary "
            "questions. Always return a strict JSON array of objects with fields: "
            "choice (string), isCorrect (boolean). Do not include any explanation or "
            "text outside the JSON."
        )
        prompt = (
            f'For the word "{word}", generate four answer choices as an array of JSON '
            "objects. Each object must have two fields: 'choice' (string, the meaning) "
            "and 'isCorrect' (boolean, true only for the correct meaning). Only one "
            "object should have isCorrect: true. The other three should be plausible "
            "but incorrect. Return only the JSON array, nothing else."
        )
        for attempt in range(retry + 1):
            try:
                content = self._complete(system, prompt, max_tokens=300, temperature=0.7)
            except Exception as e:
                logger.error("ai.choices_failed", word=word, error=str(e))
                return []
            choices = _parse_word_choices(content)
            if choices:
                return choices
            logger.info("ai.choices_retry", word=word, attempt=attempt + 1)
        return []

    def check_example(self, word: str, example: str) -> bool:
        """Asks whether ``example`` uses ``word`` correctly and without grammar errors."""
        prompt = (
            f'Is the following sentence a correct example of the word "{word}" with '
            f'no grammar errors? "{example}" Respond with "yes" or "no".'
        )
        try:
            content = self._complete(
                "You are a helpful assistant that verifies example sentences for words.",
                prompt,
                max_tokens=10,
                temperature=0.0,
            )
        except Exception as e:
            logger.error("ai.check_example_failed", word=word, error=str(e))
            return False
        return content.strip().strip(".").lower() == "yes"

    def refine_example(self, word: str, example: str) -> str:
        prompt = (
            f'Refine the following example sentence for the word "{word}" to make it '
            f'grammatically correct and more concise: "{example}". Provide only the '
            "refined sentence."
        )
        try:
            content = self._complete(
                "You are a helpful assistant that refines example sentences for "
                "clarity and conciseness.",
                prompt,
                max_tokens=100,
                temperature=0.5,
            )
        except Exception as e:
            logger.error("ai.refine_example_failed", word=word, error=str(e))
            return ""
        return _strip_quotes(content)


class OpenAIService(AIService):
    """OpenAI (or OpenAI-compatible) chat completion service."""

    def __init__(
        self,
        api_key: str,
        model_name: str = DEFAULT_OPENAI_MODEL,
        base_url: str = DEFAULT_OPENAI_URL,
    ):
        super().__init__(api_key, model_name)
        self.base_url = base_url
        self.client = _get_openai_client(api_key, base_url)

    def _complete(
        self, system: str, prompt: str, max_tokens: int, temperature: float
    ) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = self.client.chat.completions.create(
            model=self.model_name,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        return (response.choices[0].message.content or "").strip()


class GeminiService(AIService):
    """Google Gemini content generation service."""

    def __init__(self, api_key: str, model_name: str = DEFAULT_GEMINI_MODEL):
        super().__init__(api_key, model_name)
        self.client = _get_gemini_client(api_key, model_name)

    def _complete(
        self, system: str, prompt: str, max_tokens: int, temperature: float
    ) -> str:
        # The system instruction is bound to the model in this SDK, so it is
        # sent as a preamble of the single user turn instead.
        contents = f"{system}\n\n{prompt}" if system else prompt
        response = self.client.generate_content(
            contents,
            generation_config={
                "temperature": temperature,
                "max_output_tokens": max_tokens,
            },
        )
        return response.text.strip()


class AIServiceFactory:
    """Factory for creating AI service instances."""

    @staticmethod
    def create_service(
        service_type: str,
        api_key: str,
        model_name: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> AIService:
        """Creates an instance of an AI service based on the specified type.

        Args:
            service_type: The type of AI service to create ("openai" or "gemini").
            api_key: API key for the service.
            model_name: Model to use. Defaults to the service's default model.
            base_url: Endpoint of an OpenAI-compatible API. Ignored for Gemini.

        Returns:
            An instance of a concrete AIService implementation.

        Raises:
            ValueError: If an unknown AI service type is provided.
            AIConfigurationError: If ``api_key`` is empty.
        """
        if service_type.lower() == "openai":
            return OpenAIService(
                api_key,
                model_name=model_name or DEFAULT_OPENAI_MODEL,
                base_url=base_url or DEFAULT_OPENAI_URL,
            )
        elif service_type.lower() == "gemini":
            return GeminiService(api_key, model_name=model_name or DEFAULT_GEMINI_MODEL)
        else:
            raise ValueError(f"Unknown AI service type: {service_type}")

    @staticmethod
    def get_available_services() -> List[str]:
        """Returns a list of supported AI service types.

        Returns:
            A list of strings, e.g., ["openai", "gemini"].
        """
        return ["openai", "gemini"]

    @staticmethod
    def from_settings(settings: Settings) -> Optional[AIService]:
        """Creates the service configured in ``settings``, or None without an API key."""
        if not settings.is_ai_configured():
            logger.warning("ai.not_configured")
            return None
        return AIServiceFactory.create_service(
            settings.ai.service,
            settings.ai.api_key,
            model_name=settings.ai.model_name,
            base_url=settings.ai.api_url,
        )
