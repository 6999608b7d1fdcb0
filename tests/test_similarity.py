"""Tests for ranking heuristics."""

import pytest

from math_vocab.ranking.similarity import (
    code_complexity,
    code_quality,
    code_relevance,
    description_quality,
    max_brace_depth,
    text_similarity,
    type_consistency,
)


class TestTextSimilarity:
    """Test text similarity."""

    def test_exact_match_ignores_case(self):
        assert text_similarity("Matrix", "matrix") == 1.0

    def test_containment(self):
        assert text_similarity("二阶导数", "导数") == 0.8
        assert text_similarity("导数", "二阶导数") == 0.8

    def test_character_overlap(self):
        assert text_similarity("abc", "abd") == pytest.approx(0.5)

    def test_empty(self):
        assert text_similarity("", "导数") == 0.0


class TestCodeRelevance:
    """Test code-token overlap."""

    def test_command_name_match(self):
        assert code_relevance(r"\frac{d}{dx}", "frac") == 0.8
        assert code_relevance(r"\alpha", "al") == 0.8

    def test_common_symbol(self):
        assert code_relevance("int_a^b", "int") == 0.6

    def test_no_overlap(self):
        assert code_relevance("x^2", "导数") == 0.2

    def test_empty(self):
        assert code_relevance("", "frac") == 0.0


class TestCodeStructure:
    """Test code complexity and quality."""

    def test_brace_depth(self):
        assert max_brace_depth(r"\frac{a}{b^{2}}") == 2
        assert max_brace_depth("x") == 0

    def test_complexity(self):
        assert code_complexity(r"\frac{d}{dx}") == pytest.approx(0.32)
        assert code_complexity("") == 0.0

    def test_complexity_components_capped(self):
        code = r"\a\b\c\d\e\f\g{{{{{x}}}}}" * 4
        assert code_complexity(code) == pytest.approx(1.0)

    def test_quality(self):
        assert code_quality(r"\frac{d}{dx}") == pytest.approx(0.9)
        assert code_quality("x^{2") == pytest.approx(0.5)
        assert code_quality("\\" + "x" * 120) == pytest.approx(0.8)
        assert code_quality("") == 0.0


class TestDescriptionAndType:
    """Test description quality and type consistency."""

    def test_description_quality(self):
        assert description_quality("") == 0.3
        assert description_quality("常用微积分术语：导数") == pytest.approx(1.0)
        assert description_quality("null") == pytest.approx(0.5)

    def test_type_consistency(self):
        assert type_consistency("term", r"\text{lcm}") == 0.8
        assert type_consistency("formula", "a = b") == 0.8
        assert type_consistency("template", "${1:x}") == 0.8
        assert type_consistency("term", "x") == 0.6
