"""Tests for the text scanner."""

import pytest

from math_vocab.dictionary import MathCategory, TermDictionary
from math_vocab.exceptions import InvalidInput, ServiceUnavailable
from math_vocab.recognition.scanner import (
    TextScanner,
    has_math_context,
    in_emphasis,
    in_list_item,
    in_math_markup,
)


@pytest.fixture
def scanner() -> TextScanner:
    return TextScanner()


@pytest.fixture
def derivative_only(make_term) -> TermDictionary:
    return TermDictionary([make_term("导数", code=r"\frac{d}{dx}")])


def assert_no_overlap(occurrences):
    for first, second in zip(occurrences, occurrences[1:]):
        assert first.end <= second.start


class TestScan:
    """Test term matching."""

    def test_single_term_in_sentence(self, scanner, derivative_only):
        """One occurrence at the right span with base confidence."""
        text = "函数的导数是什么"
        occurrences = scanner.scan(text, derivative_only)

        assert len(occurrences) == 1
        occurrence = occurrences[0]
        assert (occurrence.start, occurrence.end) == (3, 5)
        assert text[occurrence.start:occurrence.end] == "导数"
        assert occurrence.category == MathCategory.CALCULUS
        assert occurrence.suggested_code == r"\frac{d}{dx}"
        assert occurrence.term_id == "term_导数"
        assert occurrence.confidence >= 0.6

    def test_longer_term_wins(self, scanner, make_term):
        dictionary = TermDictionary([make_term("导数"), make_term("二阶导数")])
        occurrences = scanner.scan("二阶导数的定义", dictionary)

        assert [o.text for o in occurrences] == ["二阶导数"]
        assert (occurrences[0].start, occurrences[0].end) == (0, 4)

    def test_builtin_sentence_has_no_overlaps(self, scanner, builtin_dictionary):
        text = "微分方程的微分和导数"
        occurrences = scanner.scan(text, builtin_dictionary)

        assert [o.text for o in occurrences] == ["微分方程", "微分", "导数"]
        assert [o.start for o in occurrences] == sorted(o.start for o in occurrences)
        assert_no_overlap(occurrences)

    def test_repeated_term_found_everywhere(self, scanner, derivative_only):
        occurrences = scanner.scan("导数，导数，导数", derivative_only)
        assert [o.start for o in occurrences] == [0, 3, 6]

    def test_self_overlapping_matches_are_not_double_counted(self, scanner, make_term):
        dictionary = TermDictionary([make_term("圆圆", MathCategory.GEOMETRY)])
        occurrences = scanner.scan("圆圆圆", dictionary)
        assert len(occurrences) == 1
        assert occurrences[0].start == 0

    def test_same_length_tie_break_is_lexicographic(self, scanner, make_term):
        """Same-length candidates are tried in name order regardless of insertion order."""
        forward = TermDictionary([make_term("数列"), make_term("列表")])
        backward = TermDictionary([make_term("列表"), make_term("数列")])

        for dictionary in (forward, backward):
            occurrences = scanner.scan("数列表", dictionary)
            assert [(o.text, o.start) for o in occurrences] == [("列表", 1)]

    def test_fragment_of_unlisted_compound_rejected(self, scanner, derivative_only):
        """导数 inside 导数定理 surrounded by text is part of a longer term."""
        assert scanner.scan("使用导数定理证明", derivative_only) == []

    def test_keyword_inside_term_does_not_reject(self, scanner, make_term):
        dictionary = TermDictionary([make_term("勾股定理", MathCategory.GEOMETRY)])
        occurrences = scanner.scan("利用勾股定理求边长", dictionary)
        assert [o.text for o in occurrences] == ["勾股定理"]

    def test_alias_match(self, scanner, builtin_dictionary):
        occurrences = scanner.scan("素数", builtin_dictionary)
        assert len(occurrences) == 1
        assert occurrences[0].is_alias is True
        assert occurrences[0].term_id == "term_质数"

    def test_alias_confidence_not_above_canonical(self, scanner, builtin_dictionary):
        canonical = scanner.scan("质数", builtin_dictionary)[0]
        alias = scanner.scan("素数", builtin_dictionary)[0]
        assert alias.confidence == pytest.approx(canonical.confidence * 0.9)
        assert alias.confidence <= canonical.confidence

    def test_empty_text(self, scanner, builtin_dictionary):
        assert scanner.scan("", builtin_dictionary) == []

    def test_confidence_always_in_range(self, scanner, builtin_dictionary):
        text = "# **矩阵**与$向量$的积分公式 = \\int f(x) dx\n- 导数\n1. 最大公约数"
        occurrences = scanner.scan(text, builtin_dictionary)
        assert occurrences
        assert all(0.1 <= o.confidence <= 1.0 for o in occurrences)
        assert_no_overlap(occurrences)


class TestConfidence:
    """Test confidence heuristics."""

    def test_math_context(self, scanner, derivative_only):
        occurrence = scanner.scan("求 f(x) 的导数", derivative_only)[0]
        assert occurrence.confidence == pytest.approx(0.8)

    def test_math_markup(self, scanner, derivative_only):
        occurrence = scanner.scan("$导数 f$", derivative_only)[0]
        assert occurrence.confidence == pytest.approx(0.75)

    def test_heading(self, scanner, derivative_only):
        occurrence = scanner.scan("# 导数", derivative_only)[0]
        assert occurrence.confidence == pytest.approx(0.7)

    def test_numbered_list_item(self, scanner, derivative_only):
        occurrence = scanner.scan("1. 导数", derivative_only)[0]
        assert occurrence.confidence == pytest.approx(0.65)

    def test_long_term(self, scanner, builtin_dictionary):
        occurrence = scanner.scan("三角形", builtin_dictionary)[0]
        assert occurrence.confidence == pytest.approx(0.65)

    def test_clamped_to_one(self, make_term):
        from math_vocab.config import RecognitionConfig

        scanner = TextScanner(RecognitionConfig(base_confidence=0.95))
        dictionary = TermDictionary([make_term("导数")])
        occurrence = scanner.scan("求 f(x) 的导数", dictionary)[0]
        assert occurrence.confidence == 1.0


class TestHelpers:
    """Test context detection helpers."""

    def test_has_math_context(self):
        assert has_math_context("x + y")
        assert has_math_context("由定理可知")
        assert not has_math_context("今天天气很好")

    def test_in_math_markup(self):
        assert in_math_markup("$a 导数", 3)
        assert not in_math_markup("$a$ 导数", 5)
        assert in_math_markup("\\begin{x}导数", 9)

    def test_in_emphasis(self):
        assert in_emphasis("**导数**", 2, 4)
        assert in_emphasis("## 导数", 3, 5)
        assert not in_emphasis("导数", 0, 2)

    def test_in_list_item(self):
        assert in_list_item("- 导数", 2)
        assert in_list_item("intro\n  12. 导数", 12)
        assert not in_list_item("导数", 0)


class TestFailures:
    """Test error handling."""

    def test_non_text_input(self, scanner, builtin_dictionary):
        with pytest.raises(InvalidInput):
            scanner.scan(b"\xe5\xaf\xbc", builtin_dictionary)

    def test_unreachable_store(self, scanner):
        class DownStore:
            def all_terms(self):
                raise ConnectionError("database offline")

        with pytest.raises(ServiceUnavailable, match="database offline"):
            scanner.scan("导数", DownStore())

    def test_service_unavailable_propagates(self, scanner):
        class DownStore:
            def all_terms(self):
                raise ServiceUnavailable("maintenance")

        with pytest.raises(ServiceUnavailable):
            scanner.scan("导数", DownStore())

    def test_internal_fault_degrades_to_empty(self, scanner):
        class BrokenStore:
            def all_terms(self):
                return [object()]

        assert scanner.scan("导数", BrokenStore()) == []
