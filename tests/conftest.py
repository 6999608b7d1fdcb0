"""Pytest configuration and fixtures."""

import pytest

from math_vocab.config import AppConfig, RankingConfig, RecognitionConfig, set_config
from math_vocab.dictionary import MathCategory, TermDescriptor, TermDictionary
from math_vocab.ranking import StaticPreferenceProvider, Suggestion


@pytest.fixture(autouse=True)
def default_config():
    """Isolate every test from a previously set global config."""
    config = AppConfig(recognition=RecognitionConfig(), ranking=RankingConfig())
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def builtin_dictionary() -> TermDictionary:
    return TermDictionary.builtin()


@pytest.fixture
def make_term():
    """Factory for ad-hoc dictionary terms."""

    def _make(name, category=MathCategory.CALCULUS, code="", aliases=()):
        return TermDescriptor(
            id=f"term_{name}",
            name=name,
            category=category,
            code=code,
            aliases=tuple(aliases),
        )

    return _make


@pytest.fixture
def make_suggestion():
    """Factory for suggestions with neutral defaults."""

    def _make(text, category=MathCategory.CALCULUS, code=r"\alpha", **kwargs):
        kwargs.setdefault("description", "")
        kwargs.setdefault("type", "term")
        kwargs.setdefault("score", 0.5)
        return Suggestion(text=text, category=category, code=code, **kwargs)

    return _make


@pytest.fixture
def preference_provider() -> StaticPreferenceProvider:
    return StaticPreferenceProvider()
