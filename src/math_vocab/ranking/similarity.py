"""Text and code heuristics used by the suggestion ranker.

Every function returns a value in [0, 1] and is pure, so the ranker can
combine them freely.
"""

import re

COMMAND = re.compile(r"\\[a-zA-Z]+")

COMMON_SYMBOLS = ("frac", "sqrt", "sum", "int", "lim", "alpha", "beta", "gamma")
INFORMATIVE_KEYWORDS = ("术语", "公式", "模板")
PLACEHOLDER_TOKENS = ("undefined", "null")


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def text_similarity(a: str, b: str) -> float:
    """1.0 for an exact match, 0.8 for containment, else character-set Jaccard.

    Comparison is case-insensitive. Empty input scores 0.
    """
    if not a or not b:
        return 0.0
    a, b = a.lower(), b.lower()
    if a == b:
        return 1.0
    if a in b or b in a:
        return 0.8
    chars_a, chars_b = set(a), set(b)
    return len(chars_a & chars_b) / len(chars_a | chars_b)


def code_relevance(code: str, query: str) -> float:
    """How well the commands in ``code`` match what the user typed.

    0.8 when a command name and the query contain one another, 0.6 when both
    mention a common symbol, 0.2 otherwise.
    """
    if not code or not query:
        return 0.0
    query_lower = query.lower()
    for command in COMMAND.findall(code):
        name = command[1:].lower()
        if name in query_lower or query_lower in name:
            return 0.8
    for symbol in COMMON_SYMBOLS:
        if symbol in code and symbol in query_lower:
            return 0.6
    return 0.2


def max_brace_depth(code: str) -> int:
    depth = 0
    deepest = 0
    for char in code:
        if char == "{":
            depth += 1
            deepest = max(deepest, depth)
        elif char == "}":
            depth -= 1
    return deepest


def code_complexity(code: str) -> float:
    """Structural complexity of a code snippet, used as its difficulty estimate."""
    if not code:
        return 0.0
    complexity = min(0.5, len(COMMAND.findall(code)) * 0.1)
    complexity += min(0.3, max_brace_depth(code) * 0.1)
    complexity += min(0.2, len(code) * 0.01)
    return clamp(complexity)


def code_quality(code: str) -> float:
    """Well-formedness: balanced braces and escaped commands, penalised when long."""
    if not code:
        return 0.0
    quality = 0.5
    if code.count("{") == code.count("}"):
        quality += 0.2
    if "\\" in code:
        quality += 0.2
    if len(code) > 100:
        quality -= 0.1
    return clamp(quality)


def description_quality(description: str) -> float:
    if not description:
        return 0.3
    quality = 0.5
    if 10 <= len(description) <= 100:
        quality += 0.2
    if any(keyword in description for keyword in INFORMATIVE_KEYWORDS):
        quality += 0.2
    if not any(token in description for token in PLACEHOLDER_TOKENS):
        quality += 0.1
    return clamp(quality)


def type_consistency(suggestion_type: str, code: str) -> float:
    """Whether the code looks like what its type tag promises."""
    if suggestion_type == "term" and "\\text" in code:
        return 0.8
    if suggestion_type == "formula" and "=" in code:
        return 0.8
    if suggestion_type == "template" and "${" in code:
        return 0.8
    return 0.6
