"""Wordbank file import and export.

A wordbank file is a JSON array of entry objects::

    [
      {
        "id": 1,
        "word": "converge",
        "definition": "to come together",
        "last_shown_timestamp": 0,
        "last_correct_timestamp": 0,
        "shown_times": 0,
        "difficulty": 0.0,
        "example": ""
      }
    ]
"""

import json
from pathlib import Path
from typing import Iterable, List, Union

from pydantic import TypeAdapter, ValidationError

from .core import WordbankError, WordEntry


class WordbankFileError(WordbankError, ValueError):
    """Raised when a wordbank file cannot be read."""


_FIELD_TYPES = {
    "id": (int,),
    "word": (str,),
    "definition": (str,),
    "last_shown_timestamp": (int, float),
    "last_correct_timestamp": (int, float),
    "shown_times": (int, float),
    "difficulty": (int, float),
    "example": (str,),
}

_entries_adapter = TypeAdapter(List[WordEntry])


def _has_valid_fields(item: object) -> bool:
    if not isinstance(item, dict):
        return False
    for name, types in _FIELD_TYPES.items():
        value = item.get(name)
        # bool is an int subclass but never a valid number here
        if isinstance(value, bool) or not isinstance(value, types):
            return False
    return True


def parse_wordbank(text: str) -> List[WordEntry]:
    """Parses and validates the content of a wordbank file.

    Args:
        text: The JSON text.

    Returns:
        The entries, in file order.

    Raises:
        WordbankFileError: If the text is not valid JSON, is not an array,
            holds a malformed entry or repeats a word or an id.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise WordbankFileError("Invalid JSON file.") from e

    if not isinstance(data, list):
        raise WordbankFileError("Wordbank JSON must be an array.")

    if not all(_has_valid_fields(item) for item in data):
        raise WordbankFileError("Invalid wordbank entry format.")

    try:
        entries = _entries_adapter.validate_python(data)
    except ValidationError as e:
        raise WordbankFileError("Invalid wordbank entry format.") from e

    seen_words = set()
    seen_ids = set()
    for entry in entries:
        if entry.key in seen_words:
            raise WordbankFileError(f"Duplicate word in wordbank: {entry.word}")
        if entry.id in seen_ids:
            raise WordbankFileError(f"Duplicate id in wordbank: {entry.id}")
        seen_words.add(entry.key)
        seen_ids.add(entry.id)

    return entries


def load_wordbank_from_file(path: Union[str, Path]) -> List[WordEntry]:
    """Reads a wordbank file from disk. See parse_wordbank.

    Raises:
        WordbankFileError: If the file cannot be read or is not UTF-8 text,
            besides the content errors of parse_wordbank.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise WordbankFileError("Invalid JSON file.") from e
    except OSError as e:
        raise WordbankFileError(f"Cannot read wordbank file: {path}") from e
    return parse_wordbank(text)


def dump_wordbank(entries: Iterable[WordEntry]) -> str:
    """Serialises entries to the wordbank file format."""
    data = [entry.model_dump(mode="json", by_alias=True) for entry in entries]
    return json.dumps(data, indent=2, ensure_ascii=False)


def save_wordbank_to_file(entries: Iterable[WordEntry], path: Union[str, Path]) -> Path:
    """Writes entries to ``path`` in the wordbank file format.

    Returns:
        The path written to.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_wordbank(entries) + "\n", encoding="utf-8")
    return path
