"""Typed domain exceptions for the prize draw.

Every error the lottery core raises derives from LotteryError. None of them
is fatal: the requested operation is rejected (state unchanged) or a
non-essential feature degrades. The HTTP layer converts them to 4xx bodies
using the `code` class attribute.
"""


class LotteryError(Exception):
    """Base exception for rejected lottery operations."""

    code = "lottery_error"


class EmptyPoolError(LotteryError):
    """No eligible participant is left to draw from."""

    code = "empty_pool"

    def __init__(self, message: str = "prize pool is empty") -> None:
        super().__init__(message)


class InvalidRangeError(LotteryError):
    """Numeric roster range is reversed or has a non-integer bound."""

    code = "invalid_range"


class RoundInProgressError(LotteryError):
    """A round is already rolling; the operation must wait for stop()."""

    code = "round_in_progress"


class InvalidRoundNumberError(LotteryError):
    """Manual round number is not a positive integer."""

    code = "invalid_round_number"


class PersistenceWriteError(LotteryError):
    """Snapshot could not be written. In-memory state stays authoritative."""

    code = "persistence_write_failed"


class PersistenceReadError(LotteryError):
    """Stored snapshot could not be read or parsed. Startup falls back to defaults."""

    code = "persistence_read_failed"


class AnnotationServiceError(LotteryError):
    """Celebratory caption request failed. Always suppressed by the controller."""

    code = "annotation_failed"
