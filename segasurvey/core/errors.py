"""
SegaSurvey Mixer Errors
Exceptions raised by the lyric mixing pipeline
"""


class LyricMixError(Exception):
    """Base class for mixer failures"""


class EmptyCorpusError(LyricMixError):
    """The human lyric corpus has no rows at all"""


class InvalidSelectionSizeError(LyricMixError):
    """A selection record does not hold the expected number of ids"""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} selected ids, got {actual}")


class PoolFetchAnomaly(LyricMixError):
    """
    AI pool for a session has an unexpected row count.

    Recoverable: the fetcher logs it and truncates instead of raising.
    """

    def __init__(self, session_id: str, row_count: int, expected: int = 5):
        self.session_id = session_id
        self.row_count = row_count
        self.expected = expected
        super().__init__(
            f"Expected {expected}-{expected + 1} AI lyrics for session {session_id}, "
            f"got {row_count}"
        )
