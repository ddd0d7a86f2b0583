"""Building rosters from free text and numeric ranges."""

from __future__ import annotations

import math
import secrets
from numbers import Integral, Real
from typing import TYPE_CHECKING

from lottery.logic.exceptions import InvalidRangeError
from lottery.logic.models import Participant

if TYPE_CHECKING:
    from collections.abc import Iterable

PARTICIPANT_ID_BYTES = 6


def generate_participant_id() -> str:
    """Return a short random opaque id (12 hex chars)."""
    return secrets.token_hex(PARTICIPANT_ID_BYTES)


def parse_roster_text(text: str) -> list[str]:
    """Split bulk-import text into names: one per line, trimmed, blanks dropped."""
    return clean_names(text.splitlines())


def clean_names(names: Iterable[str]) -> list[str]:
    return [stripped for name in names if (stripped := name.strip())]


def build_roster(names: Iterable[str]) -> tuple[Participant, ...]:
    """
    Create a fresh roster from names.

    Names are trimmed and blank entries dropped. Every participant gets a new
    id, unique within the returned roster.
    """
    seen: set[str] = set()
    roster: list[Participant] = []
    for name in clean_names(names):
        participant_id = generate_participant_id()
        while participant_id in seen:
            participant_id = generate_participant_id()
        seen.add(participant_id)
        roster.append(Participant(id=participant_id, name=name))
    return tuple(roster)


def _as_integer(value: object, label: str) -> int:
    # bool is an Integral subclass but never a meaningful bound
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidRangeError(f"{label} must be an integer, got {value!r}")
    if isinstance(value, Integral):
        return int(value)
    as_float = float(value)
    if not math.isfinite(as_float) or not as_float.is_integer():
        raise InvalidRangeError(f"{label} must be a finite integer, got {value!r}")
    return int(as_float)


def range_names(start: object, end: object) -> list[str]:
    """
    Return participant names for every integer in [start, end], ascending.

    Raises InvalidRangeError when a bound is not a finite integer or when
    start > end.
    """
    first = _as_integer(start, "start")
    last = _as_integer(end, "end")
    if first > last:
        raise InvalidRangeError(f"range start {first} is greater than end {last}")
    return [str(i) for i in range(first, last + 1)]


def default_names(size: int) -> list[str]:
    """Names for the seeded roster: "1" through str(size)."""
    return [str(i) for i in range(1, size + 1)]
