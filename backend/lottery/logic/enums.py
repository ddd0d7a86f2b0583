"""
String enum definitions for prize draw concepts.
"""

from enum import StrEnum


class RoundPhase(StrEnum):
    """Phase of the round controller state machine."""

    IDLE = "idle"
    ROLLING = "rolling"
    RESULT_SHOWN = "result_shown"
