"""Error taxonomy shared by recognition and ranking."""


class MathVocabError(Exception):
    """Base class for all errors raised by math_vocab."""


class InvalidInput(MathVocabError, ValueError):
    """Input is not text, or a required query is empty."""


class ServiceUnavailable(MathVocabError):
    """A collaborator (term store, preference provider) could not be reached."""


class InternalScanFailure(MathVocabError):
    """Unexpected fault while scanning. Logged and degraded to an empty result."""


class RankingDegraded(MathVocabError):
    """A scoring component could not be computed and was replaced by a neutral value.

    Args:
        component: Name of the scoring component that was substituted
    """

    def __init__(self, component: str, reason: str = ""):
        self.component = component
        self.reason = reason
        super().__init__(f"{component}: {reason}" if reason else component)
