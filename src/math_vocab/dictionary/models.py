"""Vocabulary types shared by the term store and the recognition core."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MathCategory(str, Enum):
    """Mathematics branch a term belongs to. Values are the Chinese labels."""

    ALGEBRA = "代数"
    CALCULUS = "微积分"
    GEOMETRY = "几何"
    STATISTICS = "统计"
    LINEAR_ALGEBRA = "线性代数"
    DISCRETE_MATH = "离散数学"
    NUMBER_THEORY = "数论"
    TOPOLOGY = "拓扑学"
    ANALYSIS = "数学分析"
    PROBABILITY = "概率论"
    SET_THEORY = "集合论"
    LOGIC = "逻辑"

    @classmethod
    def parse(cls, value: str) -> "MathCategory":
        """Accept either the member name (``CALCULUS``) or the label (``微积分``)."""
        try:
            return cls[value.strip().upper()]
        except KeyError:
            return cls(value.strip())


class TermDescriptor(BaseModel):
    """A single vocabulary entry as seen by the recognition core."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Stable term identifier")
    name: str = Field(description="Canonical Chinese name")
    category: MathCategory = Field(description="Mathematics branch")
    code: str = Field(default="", description="Symbolic (LaTeX) code")
    aliases: tuple[str, ...] = Field(default=(), description="Alternative names")
    english_name: Optional[str] = Field(default=None, description="English name")
    definition: Optional[str] = Field(default=None, description="Short definition")


class ValidationResult(BaseModel):
    """Outcome of validating a prospective new term name."""

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
