"""Term store protocol and the built-in Chinese mathematics dictionary."""

from math_vocab.dictionary.models import MathCategory, TermDescriptor, ValidationResult
from math_vocab.dictionary.store import TermDictionary, TermStore

__all__ = [
    "MathCategory",
    "TermDescriptor",
    "TermDictionary",
    "TermStore",
    "ValidationResult",
]
