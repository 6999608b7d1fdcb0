"""Derive an InputContext from the text around the cursor."""

from typing import Optional

import structlog

from math_vocab.dictionary.models import MathCategory
from math_vocab.dictionary.store import TermStore
from math_vocab.ranking.models import InputContext
from math_vocab.recognition.scanner import TextScanner

logger = structlog.get_logger()

# Single-character keywords (点, 线, 角, ...) are left out; they hit inside most terms
CATEGORY_KEYWORDS: dict[MathCategory, tuple[str, ...]] = {
    MathCategory.CALCULUS: (
        "导数", "积分", "极限", "微分", "偏导", "梯度", "散度", "旋度",
        "derivative", "integral", "limit", "differential",
    ),
    MathCategory.LINEAR_ALGEBRA: (
        "矩阵", "向量", "行列式", "特征值", "特征向量", "线性变换",
        "matrix", "vector", "determinant", "eigenvalue", "eigenvector",
    ),
    MathCategory.STATISTICS: (
        "概率", "统计", "期望", "方差", "标准差", "分布", "假设检验",
        "probability", "statistics", "expectation", "variance", "distribution",
    ),
    MathCategory.ALGEBRA: (
        "多项式", "方程", "不等式", "函数", "集合",
        "polynomial", "equation", "inequality", "function",
    ),
    MathCategory.GEOMETRY: (
        "几何", "三角形", "圆形", "椭圆", "抛物线",
        "geometry", "point", "line", "plane", "angle", "triangle", "circle",
    ),
    MathCategory.DISCRETE_MATH: (
        "图论", "组合", "递推", "生成函数", "离散", "算法",
        "graph", "combinatorics", "recursion", "discrete", "algorithm",
    ),
    MathCategory.NUMBER_THEORY: (
        "数论", "质数", "因数", "同余", "欧拉函数", "费马定理",
        "number theory", "prime", "factor", "congruence", "euler",
    ),
    MathCategory.TOPOLOGY: (
        "拓扑", "连续", "紧致", "连通", "同胚",
        "topology", "continuous", "compact", "connected", "homeomorphism",
    ),
    MathCategory.ANALYSIS: (
        "分析", "实分析", "复分析", "泛函", "测度",
        "analysis", "real analysis", "complex analysis", "functional", "measure",
    ),
    MathCategory.PROBABILITY: (
        "概率论", "随机", "期望", "方差", "分布",
        "probability", "random", "expectation", "variance", "distribution",
    ),
    MathCategory.SET_THEORY: (
        "集合论", "集合", "子集", "并集", "交集", "补集",
        "set theory", "subset", "union", "intersection", "complement",
    ),
    MathCategory.LOGIC: (
        "逻辑", "命题", "谓词", "量词", "推理", "证明",
        "logic", "proposition", "predicate", "quantifier", "inference", "proof",
    ),
}

SOURCE_NAME_WEIGHT = 2
DEFAULT_RECENT_LIMIT = 5


def detect_category(text: str, source_name: str = "") -> Optional[MathCategory]:
    """Guess the branch of mathematics ``text`` is about.

    Every keyword hit in ``text`` scores 1 and every keyword found in
    ``source_name`` (a file name or path) scores 2. The highest score wins;
    ties go to the category listed first in :data:`CATEGORY_KEYWORDS`.

    Returns:
        The detected category, or None when no keyword matches
    """
    lowered = text.lower()
    source = source_name.lower()

    best: Optional[MathCategory] = None
    best_score = 0
    for category, keywords in CATEGORY_KEYWORDS.items():
        score = sum(lowered.count(keyword) for keyword in keywords)
        if source:
            score += sum(SOURCE_NAME_WEIGHT for keyword in keywords if keyword in source)
        if score > best_score:
            best, best_score = category, score
    return best


def extract_recent_terms(
    text: str,
    term_store: TermStore,
    limit: int = DEFAULT_RECENT_LIMIT,
    scanner: Optional[TextScanner] = None,
) -> tuple[str, ...]:
    """Dictionary terms in ``text``, closest to its end first, without repeats."""
    scanner = scanner or TextScanner()
    recent: list[str] = []
    for occurrence in reversed(scanner.scan(text, term_store)):
        if occurrence.text not in recent:
            recent.append(occurrence.text)
        if len(recent) >= limit:
            break
    return tuple(recent)


def build_context(
    surrounding_text: str,
    term_store: Optional[TermStore] = None,
    source_name: str = "",
    category: Optional[MathCategory] = None,
    recent_terms: tuple[str, ...] = (),
) -> InputContext:
    """Build the ranking context for text typed around the cursor.

    Args:
        surrounding_text: Text before (and around) the cursor
        term_store: Dictionary used to pick out recent terms; none are extracted without it
        source_name: File name or path of the note being edited
        category: Known category; skips detection when given
        recent_terms: Terms the caller already knows were used, placed first
    """
    detected = category or detect_category(surrounding_text, source_name)

    recent = list(recent_terms)
    if term_store is not None:
        for term in extract_recent_terms(surrounding_text, term_store):
            if term not in recent:
                recent.append(term)

    logger.debug(
        "context_built",
        category=detected.name if detected else None,
        recent=len(recent),
    )
    return InputContext(
        detected_category=detected,
        recent_terms=tuple(recent),
        surrounding_text=surrounding_text,
    )
