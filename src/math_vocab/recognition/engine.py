"""Recognition entry point: scan, then adjust confidence by historical usage."""

from typing import Optional

import structlog

from math_vocab.config import RecognitionConfig, get_config
from math_vocab.dictionary.store import TermStore
from math_vocab.recognition.scanner import RecognizedOccurrence, TextScanner, clamp_confidence
from math_vocab.recognition.usage import UsageProvider

logger = structlog.get_logger()


class RecognitionCoordinator:
    """Recognize dictionary terms in text.

    Frequently used terms are recognized with slightly higher confidence, but
    usage alone never adds more than ``usage_boost_cap``.

    Example:
        coordinator = RecognitionCoordinator(TermDictionary.builtin(), UsageTracker())
        coordinator.recognize("函数的导数是什么")
    """

    def __init__(
        self,
        term_store: TermStore,
        usage_provider: Optional[UsageProvider] = None,
        scanner: Optional[TextScanner] = None,
        config: Optional[RecognitionConfig] = None,
    ):
        self.config = config or get_config().recognition
        self.term_store = term_store
        self.usage_provider = usage_provider
        self.scanner = scanner or TextScanner(self.config)

    def recognize(self, text: str) -> list[RecognizedOccurrence]:
        """Recognize terms in ``text``.

        Raises:
            InvalidInput: If ``text`` is not a string
            ServiceUnavailable: If the term store cannot be reached
        """
        occurrences = self.scanner.scan(text, self.term_store)
        adjusted = [self._apply_usage_boost(o) for o in occurrences]
        if adjusted:
            logger.info("terms_recognized", count=len(adjusted))
        return adjusted

    def usage_boost(self, term_name: str) -> float:
        """Confidence boost earned by ``term_name``'s historical usage."""
        if self.usage_provider is None:
            return 0.0
        try:
            count = self.usage_provider.get_usage_count(term_name)
        except Exception as e:
            logger.warning("usage_lookup_failed", term=term_name, error=str(e))
            return 0.0
        return min(self.config.usage_boost_cap, max(0, count) * self.config.usage_boost_per_use)

    def _apply_usage_boost(self, occurrence: RecognizedOccurrence) -> RecognizedOccurrence:
        boost = self.usage_boost(occurrence.text)
        if boost <= 0:
            return occurrence
        return occurrence.model_copy(
            update={"confidence": clamp_confidence(occurrence.confidence + boost)}
        )
