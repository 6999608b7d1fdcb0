"""Scan free text for dictionary terms.

Every canonical name and alias in the term store is tried against the text,
longest first. A character claimed by an earlier match can never be claimed
again, so a long term such as ``二阶导数`` shadows the embedded ``导数`` and the
returned occurrences never overlap.
"""

import re
from dataclasses import dataclass
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from math_vocab.config import RecognitionConfig, get_config
from math_vocab.dictionary.models import MathCategory, TermDescriptor
from math_vocab.dictionary.store import TermStore
from math_vocab.exceptions import InternalScanFailure, InvalidInput, ServiceUnavailable

logger = structlog.get_logger()

CJK_CHAR = re.compile(r"[\u4e00-\u9fff]")
MATH_SYMBOL = re.compile(r"[=+\-*/^()\[\]{}\\∫∑∏∆∇∂∞±≤≥≠≈∈∉⊂⊃∪∩]")
LIST_ITEM = re.compile(r"^\s*(?:[-*+]|\d+\.)\s")

# Suffixes that turn a matched term into part of a longer compound term
EXTENSION_KEYWORDS = ("定理", "公式", "方法", "算法", "性质", "法则", "原理")

MATH_KEYWORDS = (
    "公式", "定理", "证明", "计算", "求解", "推导", "定义",
    "性质", "法则", "原理", "方法", "算法", "解法",
)

EMPHASIS_MARKERS = ("**", "*", "__", "_", "==", "~~")

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0


class RecognizedOccurrence(BaseModel):
    """A term found in a text, ``text[start:end] == text``."""

    start: int = Field(ge=0, description="Start offset (inclusive)")
    end: int = Field(ge=0, description="End offset (exclusive)")
    text: str = Field(description="Matched name or alias")
    confidence: float = Field(ge=MIN_CONFIDENCE, le=MAX_CONFIDENCE)
    category: MathCategory
    suggested_code: str = ""
    term_id: str
    is_alias: bool = False


@dataclass(frozen=True)
class _Candidate:
    name: str
    term: TermDescriptor
    is_alias: bool


def clamp_confidence(value: float) -> float:
    return min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, value))


class TextScanner:
    """Find non-overlapping term occurrences and score their confidence."""

    def __init__(self, config: Optional[RecognitionConfig] = None):
        self.config = config or get_config().recognition

    def scan(self, text: str, term_store: TermStore) -> list[RecognizedOccurrence]:
        """Scan ``text`` against every name in ``term_store``.

        Args:
            text: Text to scan
            term_store: Vocabulary to match against

        Returns:
            Occurrences sorted by start offset

        Raises:
            InvalidInput: If ``text`` is not a string
            ServiceUnavailable: If the term store cannot be reached
        """
        if not isinstance(text, str):
            raise InvalidInput(f"text must be str, got {type(text).__name__}")
        if not text:
            return []

        try:
            candidates = self._load_candidates(term_store)
            occurrences = self._scan_candidates(text, candidates)
        except ServiceUnavailable:
            raise
        except Exception as e:
            failure = InternalScanFailure(str(e))
            logger.error("scan_failed", error=str(failure), exc_info=True)
            return []

        logger.debug("scan_complete", chars=len(text), terms=len(occurrences))
        return occurrences

    def _load_candidates(self, term_store: TermStore) -> list[_Candidate]:
        try:
            terms = term_store.all_terms()
        except ServiceUnavailable:
            raise
        except (ConnectionError, TimeoutError, OSError) as e:
            raise ServiceUnavailable(f"term store unreachable: {e}") from e

        by_name: dict[str, _Candidate] = {}
        for term in terms:
            if term.name:
                by_name.setdefault(term.name, _Candidate(term.name, term, False))
        for term in terms:
            for alias in term.aliases:
                if alias and alias not in by_name:
                    by_name[alias] = _Candidate(alias, term, True)

        # Longest first; same length ordered by name so the result is deterministic
        return sorted(by_name.values(), key=lambda c: (-len(c.name), c.name))

    def _scan_candidates(
        self, text: str, candidates: list[_Candidate]
    ) -> list[RecognizedOccurrence]:
        claimed: set[int] = set()
        occurrences: list[RecognizedOccurrence] = []

        for candidate in candidates:
            name = candidate.name
            index = text.find(name)
            while index != -1:
                end = index + len(name)
                if not any(i in claimed for i in range(index, end)) and self.is_valid_match(
                    text, index, end
                ):
                    occurrences.append(self._make_occurrence(text, index, end, candidate))
                    claimed.update(range(index, end))
                index = text.find(name, index + 1)

        occurrences.sort(key=lambda o: o.start)
        return occurrences

    def _make_occurrence(
        self, text: str, start: int, end: int, candidate: _Candidate
    ) -> RecognizedOccurrence:
        confidence = self.calculate_confidence(text, start, end)
        if candidate.is_alias:
            confidence = clamp_confidence(confidence * self.config.alias_factor)
        return RecognizedOccurrence(
            start=start,
            end=end,
            text=candidate.name,
            confidence=confidence,
            category=candidate.term.category,
            suggested_code=candidate.term.code,
            term_id=candidate.term.id,
            is_alias=candidate.is_alias,
        )

    # ------------------------------------------------------------------
    # Boundary check
    # ------------------------------------------------------------------

    def is_valid_match(self, text: str, start: int, end: int) -> bool:
        """Reject matches that are fragments of an unlisted compound term.

        Only matches wedged between two CJK characters are inspected: if an
        extension keyword (定理, 公式, ...) overlaps the two characters on either
        side, the match is part of a longer term that is not in the dictionary.
        """
        before = text[start - 1] if start > 0 else ""
        after = text[end] if end < len(text) else ""
        if not (CJK_CHAR.match(before) and CJK_CHAR.match(after)):
            return True

        window_start = max(0, start - 2)
        window_end = min(len(text), end + 2)
        window = text[window_start:window_end]
        for keyword in EXTENSION_KEYWORDS:
            pos = window.find(keyword)
            while pos != -1:
                kw_start = window_start + pos
                kw_end = kw_start + len(keyword)
                if not (kw_start >= start and kw_end <= end):
                    return False
                pos = window.find(keyword, pos + 1)
        return True

    # ------------------------------------------------------------------
    # Confidence
    # ------------------------------------------------------------------

    def calculate_confidence(self, text: str, start: int, end: int) -> float:
        """Heuristic confidence for the match ``text[start:end]``, clamped to [0.1, 1.0]."""
        cfg = self.config
        window = cfg.context_window
        context_before = text[max(0, start - window):start]
        context_after = text[end:end + window]

        confidence = cfg.base_confidence
        if has_math_context(context_before + context_after):
            confidence += cfg.math_context_bonus
        if in_math_markup(text, start):
            confidence += cfg.math_markup_bonus
        if in_emphasis(text, start, end):
            confidence += cfg.emphasis_bonus
        if in_list_item(text, start):
            confidence += cfg.list_bonus
        if end - start >= cfg.long_term_length:
            confidence += cfg.long_term_bonus

        return clamp_confidence(confidence)


def has_math_context(context: str) -> bool:
    """True when the surrounding text holds a math operator glyph or keyword."""
    if MATH_SYMBOL.search(context):
        return True
    return any(keyword in context for keyword in MATH_KEYWORDS)


def in_math_markup(text: str, start: int) -> bool:
    """True inside ``$...$`` / ``$$...$$`` or right after a ``\\begin{`` marker."""
    if text.count("$", 0, start) % 2 == 1:
        return True
    return "\\begin{" in text[max(0, start - 10):start]


def in_emphasis(text: str, start: int, end: int) -> bool:
    """True when Markdown emphasis or a heading marker sits next to the match."""
    before = text[max(0, start - 5):start]
    after = text[end:end + 5]
    if any(marker in before or marker in after for marker in EMPHASIS_MARKERS):
        return True
    line_start = text.rfind("\n", 0, start) + 1
    return text[line_start:start].lstrip().startswith("#")


def in_list_item(text: str, start: int) -> bool:
    """True when the line holding the match is a bullet or numbered list item."""
    line_start = text.rfind("\n", 0, start) + 1
    return bool(LIST_ITEM.match(text[line_start:start]))
