"""Multi-criteria ranking of input-completion suggestions.

Each suggestion gets five independent component scores (relevance, context,
preference, quality, novelty), combined with a weight vector that drifts
slowly with user feedback. The sorted list then goes through a diversity pass
that favours categories and types not yet seen higher up, and a small bounded
personalization nudge.
"""

import threading
import time
from collections import OrderedDict, deque
from typing import Callable, Optional, Union

import structlog

from math_vocab.config import RankingConfig, get_config
from math_vocab.exceptions import InvalidInput, RankingDegraded
from math_vocab.ranking.models import (
    COMPONENTS,
    FeedbackRecord,
    InputContext,
    PersonalizationWeights,
    RankedSuggestion,
    RankingMetrics,
    RankingWeights,
    Suggestion,
    UserPreferences,
)
from math_vocab.ranking.preferences import PreferenceProvider
from math_vocab.ranking.similarity import (
    clamp,
    code_complexity,
    code_quality,
    code_relevance,
    description_quality,
    text_similarity,
    type_consistency,
)

logger = structlog.get_logger()

NEUTRAL_SCORE = 0.5
NOVEL_SCORE = 0.8
NOVELTY_FLOOR = 0.1
FEEDBACK_KEY_LENGTH = 3

# Personalization nudge scale per signal
CATEGORY_NUDGE = 0.04
SIGNAL_NUDGE = 0.02


def feedback_key(query: str) -> str:
    """Group similar queries by their normalized prefix."""
    return query.strip().lower()[:FEEDBACK_KEY_LENGTH]


def normalize_weights(
    weights: RankingWeights, low: float = 0.0, high: float = 1.0
) -> RankingWeights:
    """Rescale weights so they sum to 1, then keep each within [low, high].

    Proportions are preserved by the first rescale, so weights given on any
    scale (0.3 or 30) end up the same. Clamping and rescaling then alternate
    until both hold. If the bounds cannot be met by five weights summing to 1,
    only the rescaling is applied.
    """
    values = {name: max(0.0, getattr(weights, name)) for name in COMPONENTS}
    total = sum(values.values())
    if total <= 0:
        return RankingWeights()
    values = {name: v / total for name, v in values.items()}

    if low * len(values) <= 1.0 <= high * len(values):
        for _ in range(50):
            if all(low - 1e-9 <= v <= high + 1e-9 for v in values.values()):
                break
            values = {name: clamp(v, low, high) for name, v in values.items()}
            total = sum(values.values())
            values = {name: v / total for name, v in values.items()}

    return RankingWeights(**values)


def _validate_query(query: str) -> None:
    if not isinstance(query, str):
        raise InvalidInput(f"query must be str, got {type(query).__name__}")
    if not query.strip():
        raise InvalidInput("query must not be empty")


class SuggestionRanker:
    """Rank suggestions for what the user is typing.

    ``rank`` is a pure function of its arguments plus the feedback history and
    weights at call time. ``record_feedback`` and ``reset_weights`` are the only
    mutators. All shared state is guarded by one lock, and a ranking computed
    while feedback arrived is returned but never cached, so a ranker can be
    shared between threads.
    """

    def __init__(
        self,
        preference_provider: Optional[PreferenceProvider] = None,
        config: Optional[RankingConfig] = None,
    ):
        self.config = config or get_config().ranking
        self.preference_provider = preference_provider
        self._weights = self.default_weights()
        self._feedback: dict[str, deque[FeedbackRecord]] = {}
        self._cache: OrderedDict[tuple, tuple[float, list[RankedSuggestion]]] = OrderedDict()
        self._lock = threading.RLock()
        # Bumped whenever weights or feedback change; stale rankings are not cached
        self._generation = 0

    # ------------------------------------------------------------------
    # Weights
    # ------------------------------------------------------------------

    def default_weights(self) -> RankingWeights:
        cfg = self.config
        return normalize_weights(
            RankingWeights(
                relevance=cfg.relevance_weight,
                context=cfg.context_weight,
                preference=cfg.preference_weight,
                quality=cfg.quality_weight,
                novelty=cfg.novelty_weight,
            )
        )

    @property
    def weights(self) -> RankingWeights:
        with self._lock:
            return self._weights.model_copy()

    def reset_weights(self) -> None:
        with self._lock:
            self._weights = self.default_weights()
            self._generation += 1
            self._cache.clear()

    # ------------------------------------------------------------------
    # Ranking
    # ------------------------------------------------------------------

    def rank(
        self,
        suggestions: list[Suggestion],
        query: str,
        context: Optional[InputContext] = None,
    ) -> list[RankedSuggestion]:
        """Order ``suggestions`` for ``query``.

        Args:
            suggestions: Candidates to rank (never added to or dropped)
            query: What the user has typed so far
            context: Optional typing context

        Returns:
            Every suggestion, best first

        Raises:
            InvalidInput: If ``query`` is not a non-empty string
        """
        _validate_query(query)
        if not suggestions:
            return []
        if not all(isinstance(s, Suggestion) for s in suggestions):
            raise InvalidInput("suggestions must be Suggestion instances")

        with self._lock:
            weights = self._weights.model_copy()
            history = list(self._feedback.get(feedback_key(query), ()))
            generation = self._generation

        degraded: list[str] = []
        preferences = self._fetch_preferences(degraded)
        signals = self._fetch_signals(context, degraded)

        # Provider snapshots are part of the key so profile changes are never served stale
        cache_key = (
            query,
            context.fingerprint() if context else None,
            tuple(suggestions),
            preferences.model_dump_json() if preferences else None,
            signals.model_dump_json() if signals else None,
        )
        if not degraded:
            cached = self._cache_get(cache_key)
            if cached is not None:
                return cached

        scored = [
            self._score(s, query, context, preferences, weights, history, degraded)
            for s in suggestions
        ]
        ranked = sorted(scored, key=lambda r: -r.score)
        ranked = self.apply_diversity(ranked)
        ranked = self._apply_personalization(ranked, context, signals)

        if not degraded:
            self._cache_put(cache_key, ranked, generation)

        logger.debug(
            "suggestions_ranked",
            query=query,
            count=len(ranked),
            degraded=sorted(set(degraded)) or None,
        )
        return [r.model_copy(deep=True) for r in ranked]

    def _score(
        self,
        suggestion: Suggestion,
        query: str,
        context: Optional[InputContext],
        preferences: Optional[UserPreferences],
        weights: RankingWeights,
        history: list[FeedbackRecord],
        degraded: list[str],
    ) -> RankedSuggestion:
        calculators: dict[str, Callable[[], float]] = {
            "relevance": lambda: self.relevance_score(suggestion, query),
            "context": lambda: self.context_score(suggestion, context),
            "preference": lambda: self.preference_score(suggestion, preferences),
            "quality": lambda: self.quality_score(suggestion),
            "novelty": lambda: self.novelty_score(suggestion, history),
        }

        components = {}
        for name, calculate in calculators.items():
            try:
                components[name] = clamp(calculate())
            except Exception as e:
                self._log_degraded(RankingDegraded(name, str(e)), degraded)
                components[name] = NEUTRAL_SCORE

        composite = clamp(sum(components[name] * getattr(weights, name) for name in COMPONENTS))
        return RankedSuggestion(suggestion=suggestion, score=composite, components=components)

    # ------------------------------------------------------------------
    # Component scores
    # ------------------------------------------------------------------

    def relevance_score(self, suggestion: Suggestion, query: str) -> float:
        score = text_similarity(suggestion.text, query) * 0.4
        score += code_relevance(suggestion.code, query) * 0.3
        score += text_similarity(suggestion.description, query) * 0.2
        score += suggestion.score * 0.1
        return score

    def context_score(self, suggestion: Suggestion, context: Optional[InputContext]) -> float:
        if context is None:
            return NEUTRAL_SCORE

        score = 0.0
        if context.detected_category is not None and suggestion.category == context.detected_category:
            score += 0.4
        score += self._recent_term_relevance(suggestion, context.recent_terms) * 0.3
        # Surrounding text is noisy, so its similarity only counts half
        score += text_similarity(suggestion.text, context.surrounding_text) * 0.5 * 0.3
        return score

    @staticmethod
    def _recent_term_relevance(suggestion: Suggestion, recent_terms: tuple[str, ...]) -> float:
        terms = [t for t in recent_terms if t]
        if not terms:
            return 0.0
        for term in terms:
            if term in suggestion.text or suggestion.text in term:
                return 0.8
        return 0.2

    def preference_score(
        self, suggestion: Suggestion, preferences: Optional[UserPreferences]
    ) -> float:
        if preferences is None:
            return NEUTRAL_SCORE

        score = 0.0
        if suggestion.category in preferences.preferred_categories:
            score += 0.4
        if suggestion.type in preferences.preferred_input_types:
            score += 0.3
        difficulty = code_complexity(suggestion.code)
        score += (1 - abs(difficulty - preferences.difficulty_level)) * 0.3
        return score

    def quality_score(self, suggestion: Suggestion) -> float:
        score = code_quality(suggestion.code) * 0.4
        score += description_quality(suggestion.description) * 0.3
        score += type_consistency(suggestion.type, suggestion.code) * 0.3
        return score

    def novelty_score(self, suggestion: Suggestion, history: list[FeedbackRecord]) -> float:
        """0.8 for a never-chosen suggestion, else decays by 0.1 per prior choice."""
        selections = sum(1 for record in history if record.matches(suggestion))
        if selections == 0:
            return NOVEL_SCORE
        return max(NOVELTY_FLOOR, 1 - selections * 0.1)

    # ------------------------------------------------------------------
    # Re-ranking passes
    # ------------------------------------------------------------------

    def apply_diversity(self, ranked: list[RankedSuggestion]) -> list[RankedSuggestion]:
        """Boost suggestions whose category or type is new to the list so far.

        The first suggestion is left alone. Membership never changes; only
        scores and order do.
        """
        if len(ranked) < 2:
            return list(ranked)

        seen_categories = {ranked[0].suggestion.category}
        seen_types = {ranked[0].suggestion.type}
        adjusted = [ranked[0]]

        for item in ranked[1:]:
            bonus = 0.0
            if item.suggestion.category not in seen_categories:
                bonus += self.config.category_diversity_bonus
            if item.suggestion.type not in seen_types:
                bonus += self.config.type_diversity_bonus
            if bonus:
                item = item.model_copy(update={"score": clamp(item.score + bonus)})
            adjusted.append(item)
            seen_categories.add(item.suggestion.category)
            seen_types.add(item.suggestion.type)

        return sorted(adjusted, key=lambda r: -r.score)

    def _apply_personalization(
        self,
        ranked: list[RankedSuggestion],
        context: Optional[InputContext],
        signals: Optional[PersonalizationWeights],
    ) -> list[RankedSuggestion]:
        if signals is None:
            return ranked

        shared = SIGNAL_NUDGE * (
            signals.usage_frequency + signals.recent_activity + signals.learning_progress
        )
        adjusted = []
        for item in ranked:
            nudge = shared
            if context is not None and item.suggestion.category == context.detected_category:
                nudge += CATEGORY_NUDGE * signals.category_preference
            nudge = min(self.config.personalization_cap, nudge)
            adjusted.append(item.model_copy(update={"score": clamp(item.score + nudge)}))

        return sorted(adjusted, key=lambda r: -r.score)

    def _fetch_preferences(self, degraded: list[str]) -> Optional[UserPreferences]:
        if self.preference_provider is None:
            return None
        try:
            return self.preference_provider.get_preferences()
        except Exception as e:
            self._log_degraded(RankingDegraded("preference", str(e)), degraded)
            return None

    def _fetch_signals(
        self, context: Optional[InputContext], degraded: list[str]
    ) -> Optional[PersonalizationWeights]:
        if self.preference_provider is None:
            return None
        try:
            return self.preference_provider.get_personalization_weights(context)
        except Exception as e:
            self._log_degraded(RankingDegraded("personalization", str(e)), degraded)
            return None

    @staticmethod
    def _log_degraded(error: RankingDegraded, degraded: list[str]) -> None:
        degraded.append(error.component)
        logger.warning("ranking_degraded", component=error.component, error=error.reason)

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------

    def record_feedback(
        self,
        query: str,
        selected: Union[Suggestion, str],
        selection_rank: Optional[int] = None,
    ) -> FeedbackRecord:
        """Record that the user picked ``selected`` after typing ``query``.

        Args:
            query: Query the suggestions were ranked for
            selected: Chosen suggestion, or its text/code
            selection_rank: 0-based position of the choice in the shown list

        Returns:
            The stored feedback record
        """
        _validate_query(query)
        if isinstance(selected, Suggestion):
            record = FeedbackRecord(
                query=query,
                selected_text=selected.text,
                selected_code=selected.code,
                selection_rank=selection_rank,
            )
        elif isinstance(selected, str) and selected:
            record = FeedbackRecord(
                query=query,
                selected_text=selected,
                selected_code=selected,
                selection_rank=selection_rank,
            )
        else:
            raise InvalidInput("selected must be a Suggestion or a non-empty string")

        with self._lock:
            key = feedback_key(query)
            history = self._feedback.get(key)
            if history is None:
                history = deque(maxlen=self.config.feedback_history_size)
                self._feedback[key] = history
            history.append(record)
            self._adjust_weights(record)
            self._generation += 1
            self._cache.clear()

        logger.debug("feedback_recorded", key=key, history=len(history))
        return record

    def _adjust_weights(self, record: FeedbackRecord) -> None:
        step = self.config.feedback_step
        values = self._weights.model_dump()
        if "\\" in record.selected_code:
            values["quality"] += step
        if record.query.strip().lower() in record.selected_text.lower():
            values["relevance"] += step
        self._weights = normalize_weights(
            RankingWeights(**values), self.config.weight_min, self.config.weight_max
        )

    def feedback_history(self, query: str) -> list[FeedbackRecord]:
        """Feedback recorded under ``query``'s prefix key, oldest first."""
        with self._lock:
            return list(self._feedback.get(feedback_key(query), ()))

    def get_ranking_metrics(self) -> RankingMetrics:
        """Summarize how highly chosen suggestions had been ranked."""
        with self._lock:
            records = [r for history in self._feedback.values() for r in history]

        ranked = [r.selection_rank for r in records if r.selection_rank is not None]
        if not ranked:
            return RankingMetrics(total_feedback_count=len(records))

        return RankingMetrics(
            total_feedback_count=len(records),
            average_selection_rank=sum(ranked) / len(ranked),
            top_three_selection_rate=sum(1 for rank in ranked if rank < 3) / len(ranked),
            ranking_accuracy=sum(max(0.0, 1 - rank * 0.2) for rank in ranked) / len(ranked),
        )

    # ------------------------------------------------------------------
    # Response cache
    # ------------------------------------------------------------------

    def _cache_get(self, key: tuple) -> Optional[list[RankedSuggestion]]:
        if self.config.cache_size <= 0:
            return None
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            expires_at, ranked = entry
            if time.monotonic() >= expires_at:
                del self._cache[key]
                return None
            self._cache.move_to_end(key)
            return [r.model_copy(deep=True) for r in ranked]

    def _cache_put(
        self, key: tuple, ranked: list[RankedSuggestion], generation: int
    ) -> None:
        if self.config.cache_size <= 0:
            return
        with self._lock:
            if generation != self._generation:
                return
            self._cache[key] = (time.monotonic() + self.config.cache_ttl_seconds, ranked)
            self._cache.move_to_end(key)
            while len(self._cache) > self.config.cache_size:
                self._cache.popitem(last=False)
