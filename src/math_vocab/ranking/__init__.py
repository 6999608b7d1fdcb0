"""Suggestion ranking: composite scoring, diversity and personalization."""

from math_vocab.ranking.context import build_context, detect_category, extract_recent_terms
from math_vocab.ranking.models import (
    FeedbackRecord,
    InputContext,
    PersonalizationWeights,
    RankedSuggestion,
    RankingMetrics,
    RankingWeights,
    Suggestion,
    UserPreferences,
)
from math_vocab.ranking.preferences import PreferenceProvider, StaticPreferenceProvider
from math_vocab.ranking.ranker import SuggestionRanker

__all__ = [
    "build_context",
    "detect_category",
    "extract_recent_terms",
    "FeedbackRecord",
    "InputContext",
    "PersonalizationWeights",
    "PreferenceProvider",
    "RankedSuggestion",
    "RankingMetrics",
    "RankingWeights",
    "StaticPreferenceProvider",
    "Suggestion",
    "SuggestionRanker",
    "UserPreferences",
]
