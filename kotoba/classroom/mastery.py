"""
Mastery calculation - Per-level word mastery statistics.

Provides:
- calculate_word_mastery: coarse "mastered" counts against level thresholds
- level_mastery_breakdown: distribution of a level's words over SRS tiers
- MasteryCache: per-level memoization keyed by a word progress version
"""

from dataclasses import dataclass, field
from typing import Optional

from kotoba.schemas import (
    LevelDefinition,
    MAX_MASTERY_LEVEL,
    UserProgress,
    WordMasteryStatus,
    is_valid_level,
)

from .catalog import WordCatalog


LEARNED_TIER = 3
MASTERED_TIER = 4


def calculate_word_mastery(
    level: int,
    user_progress: UserProgress,
    catalog: WordCatalog,
    definition: Optional[LevelDefinition],
) -> WordMasteryStatus:
    """
    Compute mastery statistics for one level.

    Counts the level's words whose progress has the coarse mastered flag
    set and checks them against the level's required word mastery.
    Unknown levels, or levels without a definition, give a zero status.
    """
    if not is_valid_level(level) or definition is None:
        return WordMasteryStatus()

    words = catalog.get_words_for_level(level)
    total_words = len(words)
    if total_words == 0:
        return WordMasteryStatus()

    mastered_words = 0
    for word in words:
        progress = user_progress.word_progress.get(word.id)
        if progress is not None and progress.mastered:
            mastered_words += 1

    mastery_percentage = mastered_words * 100 / total_words
    required = definition.required_word_mastery
    meets_requirements = (
        mastered_words >= required.min_words
        and mastery_percentage >= required.mastery_threshold
    )

    return WordMasteryStatus(
        mastered_words=mastered_words,
        total_words=total_words,
        mastery_percentage=mastery_percentage,
        meets_requirements=meets_requirements,
    )


@dataclass
class TierBreakdown:
    """How a level's words are spread over SRS tiers."""
    level: int
    total_words: int
    tiers: dict[int, int]
    learned_words: int     # tier >= 3
    mastered_words: int    # tier >= 4
    average_tier: float


def level_mastery_breakdown(
    level: int,
    user_progress: UserProgress,
    catalog: WordCatalog,
) -> TierBreakdown:
    """Distribution of a level's words over SRS tiers 0-5 (unseen words count as tier 0)."""
    tiers = {tier: 0 for tier in range(MAX_MASTERY_LEVEL + 1)}
    words = catalog.get_words_for_level(level)

    total_tier = 0
    for word in words:
        progress = user_progress.word_progress.get(word.id)
        tier = progress.mastery_level if progress else 0
        tiers[tier] += 1
        total_tier += tier

    return TierBreakdown(
        level=level,
        total_words=len(words),
        tiers=tiers,
        learned_words=sum(n for t, n in tiers.items() if t >= LEARNED_TIER),
        mastered_words=sum(n for t, n in tiers.items() if t >= MASTERED_TIER),
        average_tier=total_tier / len(words) if words else 0.0,
    )


@dataclass
class MasteryCache:
    """
    Memoizes WordMasteryStatus per level.

    Entries are valid for one word progress version; the owner bumps the
    version whenever any WordProgress changes.
    """
    catalog: WordCatalog
    definitions: dict[int, LevelDefinition]
    version: int = 0
    _entries: dict[int, WordMasteryStatus] = field(default_factory=dict)
    hits: int = 0
    misses: int = 0

    def invalidate(self):
        """Mark all cached statuses stale."""
        self.version += 1
        self._entries.clear()

    def get(self, level: int, user_progress: UserProgress) -> WordMasteryStatus:
        cached = self._entries.get(level)
        if cached is not None:
            self.hits += 1
            return cached.model_copy()

        self.misses += 1
        status = calculate_word_mastery(
            level, user_progress, self.catalog, self.definitions.get(level)
        )
        self._entries[level] = status
        return status.model_copy()
