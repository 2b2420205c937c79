"""
WordCatalog - Read-only vocabulary grouped by level.

Provides read-only access to:
- Words for each of the ten levels, in catalog order
- Lookup by word ID, category and JLPT tier
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from kotoba.schemas import MAX_LEVEL, MIN_LEVEL, JLPTLevel, Word, is_valid_level
from kotoba.utils.data_loader import load_data_file

from .curriculum import distribute_words


logger = logging.getLogger(__name__)


class WordCatalog:
    """
    Immutable mapping from level number to its ordered words.

    The catalog is fixed for the lifetime of the process; the engine only
    reads from it.
    """

    def __init__(self, words_by_level: dict[int, Iterable[Word]]):
        """
        Initialize catalog.

        Args:
            words_by_level: Dict of level -> words. Levels outside 1-10 are ignored.
        """
        self._levels: dict[int, tuple[Word, ...]] = {
            level: tuple(words_by_level.get(level, ()))
            for level in range(MIN_LEVEL, MAX_LEVEL + 1)
        }
        self._by_id: dict[str, Word] = {}
        self._level_ids: dict[int, frozenset[str]] = {}
        for level, words in self._levels.items():
            self._level_ids[level] = frozenset(word.id for word in words)
            for word in words:
                if word.id in self._by_id:
                    logger.warning(f"Duplicate word id in catalog: {word.id}")
                    continue
                self._by_id[word.id] = word

        ignored = sorted(set(words_by_level) - set(self._levels))
        if ignored:
            logger.warning(f"Ignoring out-of-range catalog levels: {ignored}")

    @classmethod
    def from_words(cls, words: Iterable[Word]) -> "WordCatalog":
        """Group words by their own level field."""
        by_level: dict[int, list[Word]] = {}
        for word in words:
            by_level.setdefault(word.level, []).append(word)
        return cls(by_level)

    @classmethod
    def distributed(cls, words: Iterable[Word], max_per_level: int = 100) -> "WordCatalog":
        """Assign words to levels with the category rules before grouping."""
        return cls(distribute_words(words, max_per_level=max_per_level))

    @classmethod
    def from_file(cls, path: str | Path, data_dir: Optional[Path] = None) -> "WordCatalog":
        """
        Load a catalog file.

        Accepts either a list of word entries or a mapping with a "words" key.

        Raises:
            FileNotFoundError: If the file doesn't exist
            pydantic.ValidationError: If an entry is not a valid word
        """
        data = load_data_file(path, data_dir=data_dir)
        entries = data.get("words", []) if isinstance(data, dict) else (data or [])
        words = [Word.model_validate(entry) for entry in entries]
        logger.info(f"Loaded {len(words)} words from {path}")
        return cls.from_words(words)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_words_for_level(self, level: int) -> list[Word]:
        """Words of a level in catalog order; empty for unknown levels."""
        if not is_valid_level(level):
            return []
        return list(self._levels[level])

    def get_word_ids_for_level(self, level: int) -> frozenset[str]:
        return self._level_ids.get(level, frozenset())

    def get_word(self, word_id: str) -> Optional[Word]:
        return self._by_id.get(word_id)

    def level_of(self, word_id: str) -> Optional[int]:
        word = self._by_id.get(word_id)
        return word.level if word else None

    def get_words_by_category(self, category: str) -> list[Word]:
        if category == "all":
            return self.all_words()
        return [word for word in self.all_words() if word.category == category]

    def get_words_by_jlpt_level(self, jlpt_level: JLPTLevel | str) -> list[Word]:
        jlpt_level = JLPTLevel(jlpt_level)
        return [word for word in self.all_words() if word.jlpt_level == jlpt_level]

    def all_words(self) -> list[Word]:
        return [word for words in self._levels.values() for word in words]

    def level_sizes(self) -> dict[int, int]:
        return {level: len(words) for level, words in self._levels.items()}

    def __len__(self) -> int:
        return sum(len(words) for words in self._levels.values())

    def __contains__(self, word_id: object) -> bool:
        return word_id in self._by_id
