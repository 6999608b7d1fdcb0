"""Historical usage counters for recognized terms."""

from collections import Counter
from datetime import datetime
from typing import Optional, Protocol

import structlog

logger = structlog.get_logger()


class UsageProvider(Protocol):
    """Per-term usage counts consumed by the recognition coordinator."""

    def get_usage_count(self, term_name: str) -> int:
        """Total recorded uses of ``term_name``."""
        ...


class UsageTracker:
    """In-memory usage counter implementing :class:`UsageProvider`.

    Keeps an all-time total, a per-day count and a per-session count for
    every term. Nothing here is persisted.
    """

    def __init__(self, initial: Optional[dict[str, int]] = None):
        self._totals: Counter[str] = Counter(initial or {})
        self._daily: dict[str, Counter[str]] = {}
        self._session: Counter[str] = Counter()
        self._last_used: dict[str, datetime] = {}

    def record_usage(self, term_name: str, now: Optional[datetime] = None) -> int:
        """Record one use of a term.

        Args:
            term_name: Matched term name
            now: Timestamp of the use (defaults to the current time)

        Returns:
            New total count for the term
        """
        now = now or datetime.now()
        self._totals[term_name] += 1
        self._daily.setdefault(now.strftime("%Y-%m-%d"), Counter())[term_name] += 1
        self._session[term_name] += 1
        self._last_used[term_name] = now
        logger.debug("usage_recorded", term=term_name, total=self._totals[term_name])
        return self._totals[term_name]

    def get_usage_count(self, term_name: str) -> int:
        return self._totals.get(term_name, 0)

    def get_daily_usage_count(self, term_name: str, day: Optional[datetime] = None) -> int:
        key = (day or datetime.now()).strftime("%Y-%m-%d")
        return self._daily.get(key, Counter()).get(term_name, 0)

    def get_session_usage_count(self, term_name: str) -> int:
        return self._session.get(term_name, 0)

    def last_used(self, term_name: str) -> Optional[datetime]:
        return self._last_used.get(term_name)

    def reset_session(self) -> None:
        """Forget session counts; totals are kept."""
        self._session.clear()

    def statistics(self) -> dict[str, int]:
        """Term name → all-time total."""
        return dict(self._totals)

    def most_used(self, n: int = 10) -> list[tuple[str, int]]:
        return self._totals.most_common(n)
