"""Term store protocol and an in-memory dictionary implementation.

The recognition core only depends on the :class:`TermStore` protocol. The
:class:`TermDictionary` shipped here is the reference store used by the CLI
and the tests; a host application may plug in its own database-backed store.
"""

import csv
from difflib import SequenceMatcher
from pathlib import Path
from typing import Optional, Protocol

import structlog

from math_vocab.dictionary.models import MathCategory, TermDescriptor, ValidationResult

logger = structlog.get_logger()

SIMILARITY_THRESHOLD = 0.3
MAX_TERM_LENGTH = 50

CSV_FIELDS = ["id", "name", "category", "code", "aliases", "english_name", "definition"]


class TermStore(Protocol):
    """Read-only vocabulary lookup consumed by the recognition core."""

    def lookup_by_name(self, name: str) -> Optional[TermDescriptor]:
        """Return the term whose canonical name is ``name``."""
        ...

    def lookup_by_alias(self, alias: str) -> Optional[TermDescriptor]:
        """Return the term that lists ``alias`` among its aliases."""
        ...

    def all_terms(self) -> list[TermDescriptor]:
        """Enumerate every term."""
        ...

    def find_similar(self, query: str, k: int = 5) -> list[TermDescriptor]:
        """Return up to ``k`` terms ranked by name similarity to ``query``."""
        ...


def _term(
    name: str,
    english: str,
    category: MathCategory,
    code: str,
    aliases: tuple[str, ...] = (),
) -> TermDescriptor:
    return TermDescriptor(
        id=make_term_id(name),
        name=name,
        english_name=english,
        category=category,
        code=code,
        aliases=aliases,
    )


def make_term_id(name: str) -> str:
    """Build the deterministic identifier used for a term name."""
    return f"term_{name}"


BUILTIN_TERMS: list[TermDescriptor] = [
    # 代数
    _term("函数", "function", MathCategory.ALGEBRA, "f(x)", ("映射",)),
    _term("方程", "equation", MathCategory.ALGEBRA, "ax + b = 0", ("等式",)),
    _term("不等式", "inequality", MathCategory.ALGEBRA, "a > b"),
    _term("多项式", "polynomial", MathCategory.ALGEBRA, "a_n x^n + ... + a_1 x + a_0"),
    _term("因式分解", "factorization", MathCategory.ALGEBRA, "ab = c", ("分解因式",)),
    # 微积分
    _term("导数", "derivative", MathCategory.CALCULUS, r"\frac{d}{dx}", ("微商",)),
    _term("二阶导数", "second derivative", MathCategory.CALCULUS, r"\frac{d^2}{dx^2}"),
    _term("积分", "integral", MathCategory.CALCULUS, r"\int f(x) \, dx"),
    _term("极限", "limit", MathCategory.CALCULUS, r"\lim_{x \to a} f(x)"),
    _term("连续", "continuous", MathCategory.CALCULUS, r"\lim_{x \to a} f(x) = f(a)", ("连续性",)),
    _term("微分", "differential", MathCategory.CALCULUS, "dy"),
    _term("微分方程", "differential equation", MathCategory.CALCULUS, "y' = f(x, y)"),
    # 几何
    _term("三角形", "triangle", MathCategory.GEOMETRY, r"\triangle ABC"),
    _term("圆", "circle", MathCategory.GEOMETRY, "x^2 + y^2 = r^2", ("圆形",)),
    _term("直线", "line", MathCategory.GEOMETRY, "y = kx + b"),
    _term("角度", "angle", MathCategory.GEOMETRY, r"\angle ABC"),
    _term("面积", "area", MathCategory.GEOMETRY, "S"),
    # 线性代数
    _term(
        "矩阵",
        "matrix",
        MathCategory.LINEAR_ALGEBRA,
        r"\begin{pmatrix} a & b \\ c & d \end{pmatrix}",
    ),
    _term("向量", "vector", MathCategory.LINEAR_ALGEBRA, r"\vec{v}", ("矢量",)),
    _term("行列式", "determinant", MathCategory.LINEAR_ALGEBRA, r"\det(A)"),
    _term("特征值", "eigenvalue", MathCategory.LINEAR_ALGEBRA, r"\lambda"),
    _term("特征向量", "eigenvector", MathCategory.LINEAR_ALGEBRA, r"\vec{v}"),
    # 统计
    _term("平均数", "mean", MathCategory.STATISTICS, r"\bar{x}", ("均值", "算术平均数")),
    _term("方差", "variance", MathCategory.STATISTICS, r"\sigma^2"),
    _term("标准差", "standard deviation", MathCategory.STATISTICS, r"\sigma"),
    # 概率论
    _term("概率", "probability", MathCategory.PROBABILITY, "P(A)"),
    _term("期望", "expectation", MathCategory.PROBABILITY, "E[X]", ("数学期望",)),
    # 数论
    _term("质数", "prime number", MathCategory.NUMBER_THEORY, "p", ("素数",)),
    _term("合数", "composite number", MathCategory.NUMBER_THEORY, "n"),
    _term(
        "最大公约数",
        "greatest common divisor",
        MathCategory.NUMBER_THEORY,
        r"\gcd(a, b)",
        ("最大公因数",),
    ),
    _term("最小公倍数", "least common multiple", MathCategory.NUMBER_THEORY, r"\text{lcm}(a, b)"),
    # 数学分析
    _term("实数", "real number", MathCategory.ANALYSIS, r"\mathbb{R}"),
    _term("复数", "complex number", MathCategory.ANALYSIS, r"\mathbb{C}"),
    _term("序列", "sequence", MathCategory.ANALYSIS, r"\{a_n\}", ("数列",)),
    _term("级数", "series", MathCategory.ANALYSIS, r"\sum_{n=1}^{\infty} a_n"),
]


def name_similarity(a: str, b: str) -> float:
    """Similarity in [0, 1] between two term names."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return SequenceMatcher(None, a, b).ratio()


class TermDictionary:
    """In-memory Chinese mathematics dictionary implementing :class:`TermStore`."""

    def __init__(self, terms: Optional[list[TermDescriptor]] = None):
        """Initialize the dictionary.

        Args:
            terms: Initial terms (later entries replace earlier ones with the same name)
        """
        self._terms: dict[str, TermDescriptor] = {}
        self._aliases: dict[str, str] = {}
        for term in terms or []:
            self.add(term)

    @classmethod
    def builtin(cls) -> "TermDictionary":
        """Dictionary preloaded with the built-in vocabulary."""
        dictionary = cls(list(BUILTIN_TERMS))
        logger.debug("dictionary_loaded", terms=len(dictionary), source="builtin")
        return dictionary

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, term: TermDescriptor) -> None:
        """Add a term, replacing any existing term with the same name."""
        existing = self._terms.get(term.name)
        if existing is not None:
            self._drop_aliases(existing)
        self._terms[term.name] = term
        for alias in term.aliases:
            self._aliases[alias] = term.name

    def remove(self, name: str) -> bool:
        """Remove a term by canonical name.

        Returns:
            True if a term was removed
        """
        term = self._terms.pop(name, None)
        if term is None:
            return False
        self._drop_aliases(term)
        return True

    def _drop_aliases(self, term: TermDescriptor) -> None:
        for alias in term.aliases:
            if self._aliases.get(alias) == term.name:
                del self._aliases[alias]

    # ------------------------------------------------------------------
    # TermStore protocol
    # ------------------------------------------------------------------

    def lookup_by_name(self, name: str) -> Optional[TermDescriptor]:
        return self._terms.get(name)

    def lookup_by_alias(self, alias: str) -> Optional[TermDescriptor]:
        name = self._aliases.get(alias)
        return self._terms.get(name) if name else None

    def all_terms(self) -> list[TermDescriptor]:
        return list(self._terms.values())

    def find_similar(self, query: str, k: int = 5) -> list[TermDescriptor]:
        """Rank terms by name similarity to ``query``.

        Terms scoring at or below the similarity threshold are dropped; ties keep
        dictionary order.
        """
        scored = [
            (term, name_similarity(query, name))
            for name, term in self._terms.items()
        ]
        scored = [item for item in scored if item[1] > SIMILARITY_THRESHOLD]
        scored.sort(key=lambda item: -item[1])
        return [term for term, _ in scored[:k]]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find(self, name: str) -> Optional[TermDescriptor]:
        """Look a term up by canonical name, then by alias."""
        return self.lookup_by_name(name) or self.lookup_by_alias(name)

    def get_by_category(self, category: MathCategory) -> list[TermDescriptor]:
        return [t for t in self._terms.values() if t.category == category]

    def search(self, query: str) -> list[TermDescriptor]:
        """Terms whose name, English name, definition or aliases contain ``query``."""
        query_lower = query.lower()
        results = []
        for name, term in self._terms.items():
            if query in name:
                results.append(term)
            elif term.english_name and query_lower in term.english_name.lower():
                results.append(term)
            elif term.definition and query in term.definition:
                results.append(term)
            elif any(query in alias for alias in term.aliases):
                results.append(term)
        return results

    def statistics(self) -> dict:
        """Total term count and per-category counts."""
        counts: dict[MathCategory, int] = {}
        for term in self._terms.values():
            counts[term.category] = counts.get(term.category, 0) + 1
        return {"total_terms": len(self._terms), "category_counts": counts}

    def validate_term(self, name: str) -> ValidationResult:
        """Check a prospective term name before it is added.

        Args:
            name: Candidate canonical name

        Returns:
            ValidationResult with errors, warnings and suggestions
        """
        errors: list[str] = []
        warnings: list[str] = []
        suggestions: list[str] = []

        if not name or not name.strip():
            errors.append("术语不能为空")
        elif len(name) > MAX_TERM_LENGTH:
            warnings.append("术语长度过长，建议简化")

        existing = self.find(name) if name else None
        if existing:
            warnings.append("术语已存在于词典中")
            suggestions.append(f"现有术语: {existing.name} ({existing.category.value})")

        if name and name.strip():
            similar = [t.name for t in self.find_similar(name) if t.name != name]
            if similar:
                suggestions.append(f"相似术语: {', '.join(similar)}")

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            suggestions=suggestions,
        )

    # ------------------------------------------------------------------
    # CSV import / export
    # ------------------------------------------------------------------

    def to_csv(self, path: Path) -> None:
        """Export the dictionary to a CSV file (aliases joined with ``|``)."""
        path = Path(path)
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for term in self._terms.values():
                writer.writerow(
                    {
                        "id": term.id,
                        "name": term.name,
                        "category": term.category.name,
                        "code": term.code,
                        "aliases": "|".join(term.aliases),
                        "english_name": term.english_name or "",
                        "definition": term.definition or "",
                    }
                )
        logger.info("dictionary_exported", terms=len(self), path=str(path))

    @classmethod
    def from_csv(cls, path: Path) -> "TermDictionary":
        """Import a dictionary from a CSV file.

        Only ``name`` and ``category`` are required; ``category`` accepts either
        the enum name or the Chinese label.
        """
        path = Path(path)
        terms = []

        with open(path, "r", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            for row in reader:
                name = row["name"].strip()
                aliases = tuple(a.strip() for a in (row.get("aliases") or "").split("|") if a.strip())
                terms.append(
                    TermDescriptor(
                        id=row.get("id") or make_term_id(name),
                        name=name,
                        category=MathCategory.parse(row["category"]),
                        code=row.get("code") or "",
                        aliases=aliases,
                        english_name=row.get("english_name") or None,
                        definition=row.get("definition") or None,
                    )
                )

        logger.info("dictionary_imported", terms=len(terms), path=str(path))
        return cls(terms)

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, name: str) -> bool:
        return name in self._terms or name in self._aliases
