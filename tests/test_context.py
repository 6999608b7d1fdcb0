"""Tests for building a ranking context from surrounding text."""

from math_vocab.dictionary import MathCategory
from math_vocab.ranking import build_context, detect_category, extract_recent_terms


class TestDetectCategory:
    """Test keyword-based category detection."""

    def test_calculus(self):
        assert detect_category("先求极限，再求导数和积分") == MathCategory.CALCULUS

    def test_linear_algebra(self):
        assert detect_category("计算矩阵的特征值") == MathCategory.LINEAR_ALGEBRA

    def test_english_keywords_case_insensitive(self):
        assert detect_category("The Eigenvalue of a Matrix") == MathCategory.LINEAR_ALGEBRA

    def test_most_hits_win(self):
        text = "矩阵 导数 导数 积分"
        assert detect_category(text) == MathCategory.CALCULUS

    def test_source_name_counts_double(self):
        assert detect_category("矩阵", source_name="notes/导数.md") == MathCategory.CALCULUS

    def test_tie_goes_to_first_listed(self):
        # 期望 and 方差 are keywords of both STATISTICS and PROBABILITY
        assert detect_category("期望与方差") == MathCategory.STATISTICS

    def test_no_keywords(self):
        assert detect_category("今天天气很好") is None
        assert detect_category("") is None


class TestExtractRecentTerms:
    """Test recent term extraction."""

    def test_closest_to_end_first(self, builtin_dictionary):
        recent = extract_recent_terms("矩阵，然后是积分，最后是导数", builtin_dictionary)
        assert recent == ("导数", "积分", "矩阵")

    def test_no_repeats(self, builtin_dictionary):
        assert extract_recent_terms("导数，积分，导数", builtin_dictionary) == ("导数", "积分")

    def test_limit(self, builtin_dictionary):
        recent = extract_recent_terms("矩阵，积分，导数", builtin_dictionary, limit=2)
        assert recent == ("导数", "积分")


class TestBuildContext:
    """Test context assembly."""

    def test_detects_category_and_terms(self, builtin_dictionary):
        context = build_context("求极限，再求导数", builtin_dictionary)
        assert context.detected_category == MathCategory.CALCULUS
        assert context.recent_terms == ("导数", "极限")
        assert context.surrounding_text == "求极限，再求导数"

    def test_explicit_category_wins(self, builtin_dictionary):
        context = build_context("矩阵与向量", builtin_dictionary, category=MathCategory.CALCULUS)
        assert context.detected_category == MathCategory.CALCULUS

    def test_given_recent_terms_come_first(self, builtin_dictionary):
        context = build_context("求导数", builtin_dictionary, recent_terms=("积分", "导数"))
        assert context.recent_terms == ("积分", "导数")

    def test_without_term_store(self):
        context = build_context("求导数")
        assert context.detected_category == MathCategory.CALCULUS
        assert context.recent_terms == ()
