"""Value types for suggestion ranking."""

import time
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from math_vocab.dictionary.models import MathCategory

SuggestionType = Literal["term", "formula", "template"]

COMPONENTS = ("relevance", "context", "preference", "quality", "novelty")


class Suggestion(BaseModel):
    """An input-completion candidate supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="Text inserted when the suggestion is chosen")
    code: str = Field(default="", description="Symbolic (LaTeX) code")
    description: str = Field(default="", description="Human-readable description")
    category: MathCategory
    type: SuggestionType = "term"
    score: float = Field(default=0.5, ge=0.0, le=1.0, description="Base relevance score")


class RankedSuggestion(BaseModel):
    """A suggestion with its composite ranking score."""

    suggestion: Suggestion
    score: float = Field(ge=0.0, le=1.0)
    components: dict[str, float] = Field(default_factory=dict)


class InputContext(BaseModel):
    """Optional signal about where the user is typing."""

    model_config = ConfigDict(frozen=True)

    detected_category: Optional[MathCategory] = None
    recent_terms: tuple[str, ...] = ()
    surrounding_text: str = ""

    def fingerprint(self) -> tuple:
        return (
            self.detected_category.name if self.detected_category else None,
            self.recent_terms,
            self.surrounding_text,
        )


class FeedbackRecord(BaseModel):
    """One accepted suggestion."""

    query: str
    selected_text: str
    selected_code: str = ""
    timestamp: float = Field(default_factory=time.time)
    selection_rank: Optional[int] = Field(
        default=None, description="0-based position of the choice in the ranked list"
    )

    def matches(self, suggestion: Suggestion) -> bool:
        """True if this record selected ``suggestion`` (by text or by code)."""
        if self.selected_text and self.selected_text == suggestion.text:
            return True
        if self.selected_code and self.selected_code == suggestion.code:
            return True
        return False


class RankingWeights(BaseModel):
    """Weights of the five scoring components. Always sum to 1."""

    relevance: float = 0.30
    context: float = 0.25
    preference: float = 0.20
    quality: float = 0.15
    novelty: float = 0.10

    def total(self) -> float:
        return sum(getattr(self, name) for name in COMPONENTS)


class UserPreferences(BaseModel):
    """User category, type and difficulty preferences."""

    preferred_categories: list[MathCategory] = Field(
        default_factory=lambda: [MathCategory.ALGEBRA]
    )
    preferred_input_types: list[SuggestionType] = Field(
        default_factory=lambda: ["term", "formula"]
    )
    difficulty_level: float = Field(default=0.5, ge=0.0, le=1.0)


class PersonalizationWeights(BaseModel):
    """Per-context personalization signals, each in [0, 1]."""

    category_preference: float = Field(default=0.0, ge=0.0, le=1.0)
    usage_frequency: float = Field(default=0.0, ge=0.0, le=1.0)
    recent_activity: float = Field(default=0.0, ge=0.0, le=1.0)
    learning_progress: float = Field(default=0.0, ge=0.0, le=1.0)


class RankingMetrics(BaseModel):
    """How well past rankings anticipated the user's choices."""

    total_feedback_count: int = 0
    average_selection_rank: float = 0.0
    top_three_selection_rate: float = 0.0
    ranking_accuracy: float = 0.0
