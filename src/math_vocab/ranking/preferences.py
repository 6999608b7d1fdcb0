"""User preference provider."""

import time
from collections import Counter, deque
from typing import Optional, Protocol

import structlog

from math_vocab.ranking.models import (
    InputContext,
    PersonalizationWeights,
    Suggestion,
    UserPreferences,
)

logger = structlog.get_logger()

RECENT_WINDOW_SECONDS = 24 * 60 * 60


class PreferenceProvider(Protocol):
    """User preferences consumed by the suggestion ranker."""

    def get_preferences(self) -> UserPreferences:
        ...

    def get_personalization_weights(
        self, context: Optional[InputContext]
    ) -> PersonalizationWeights:
        ...


class StaticPreferenceProvider:
    """In-memory preference profile implementing :class:`PreferenceProvider`.

    The personalization vector is derived from simple counters that
    :meth:`record_choice` keeps up to date.
    """

    def __init__(
        self,
        preferences: Optional[UserPreferences] = None,
        mastered_concepts: Optional[set[str]] = None,
        history_size: int = 1000,
    ):
        self.preferences = preferences or UserPreferences()
        self.mastered_concepts: set[str] = set(mastered_concepts or ())
        self.category_usage: Counter = Counter()
        self.total_inputs = 0
        self._selections: deque[float] = deque(maxlen=history_size)

    def get_preferences(self) -> UserPreferences:
        return self.preferences

    def get_personalization_weights(
        self, context: Optional[InputContext]
    ) -> PersonalizationWeights:
        if context is None or context.detected_category is None:
            category_preference = 0.5
        else:
            category_preference = min(1.0, self.category_usage[context.detected_category] * 0.01)

        cutoff = time.time() - RECENT_WINDOW_SECONDS
        recent = sum(1 for ts in self._selections if ts >= cutoff)

        return PersonalizationWeights(
            category_preference=category_preference,
            usage_frequency=min(1.0, self.total_inputs * 0.001),
            recent_activity=min(1.0, recent * 0.1),
            learning_progress=min(1.0, len(self.mastered_concepts) * 0.05),
        )

    def record_choice(self, suggestion: Suggestion, timestamp: Optional[float] = None) -> None:
        """Update usage counters after the user accepts ``suggestion``."""
        self.total_inputs += 1
        self.category_usage[suggestion.category] += 1
        self._selections.append(timestamp if timestamp is not None else time.time())
        logger.debug(
            "preference_choice_recorded",
            category=suggestion.category.name,
            total_inputs=self.total_inputs,
        )

    def mark_mastered(self, concept: str) -> None:
        self.mastered_concepts.add(concept)
