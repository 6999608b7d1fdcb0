"""Term recognition: scanning text and adjusting confidence by usage."""

from math_vocab.recognition.engine import RecognitionCoordinator
from math_vocab.recognition.scanner import RecognizedOccurrence, TextScanner
from math_vocab.recognition.usage import UsageProvider, UsageTracker

__all__ = [
    "RecognitionCoordinator",
    "RecognizedOccurrence",
    "TextScanner",
    "UsageProvider",
    "UsageTracker",
]
