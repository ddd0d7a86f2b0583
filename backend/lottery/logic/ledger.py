"""
Immutable state updates for the round ledger and roster.

These helpers never mutate their input; each returns a new LotteryState
built with model_copy.
"""

from __future__ import annotations

import secrets
import time
from typing import TYPE_CHECKING

from lottery.logic.models import LotteryState, WinnerRecord

if TYPE_CHECKING:
    from collections.abc import Sequence

    from lottery.logic.models import Participant

RECORD_ID_BYTES = 6


def now_millis() -> int:
    return int(time.time() * 1000)


def record_round(
    state: LotteryState,
    prize_name: str,
    winners: Sequence[Participant],
    *,
    timestamp: int | None = None,
) -> tuple[LotteryState, WinnerRecord]:
    """
    Prepend a record for a completed round and advance the round counter.

    Args:
        state: Current state
        prize_name: Prize label shown for the round
        winners: Participants drawn this round, in draw order
        timestamp: Epoch millis; defaults to now

    Returns:
        (new state, the appended record)

    """
    existing_ids = {r.id for r in state.ledger}
    record_id = secrets.token_hex(RECORD_ID_BYTES)
    while record_id in existing_ids:
        record_id = secrets.token_hex(RECORD_ID_BYTES)

    record = WinnerRecord(
        id=record_id,
        round_id=state.round_counter,
        prize_name=prize_name,
        winners=tuple(winners),
        timestamp=timestamp if timestamp is not None else now_millis(),
    )
    new_state = state.model_copy(
        update={
            "ledger": (record, *state.ledger),
            "round_counter": state.round_counter + 1,
        },
    )
    return new_state, record


def attach_comment(state: LotteryState, record_id: str, comment: str) -> LotteryState | None:
    """
    Return new state with comment set on the record matching record_id.

    Returns None when no such record exists (the ledger was cleared since
    the round finished), so a late annotation never resurrects a record.
    """
    for index, record in enumerate(state.ledger):
        if record.id == record_id:
            ledger = list(state.ledger)
            ledger[index] = record.model_copy(update={"ai_comment": comment})
            return state.model_copy(update={"ledger": tuple(ledger)})
    return None


def clear_ledger(state: LotteryState) -> LotteryState:
    """Empty the ledger and restart round numbering at 1. Roster is kept."""
    return state.model_copy(update={"ledger": (), "round_counter": 1})


def replace_roster(state: LotteryState, roster: Sequence[Participant]) -> LotteryState:
    """Swap in a new roster. The ledger is a snapshot and stays untouched."""
    # Validate through the model so duplicate ids are rejected.
    return LotteryState.model_validate(
        {**dict(state), "roster": tuple(roster)},
    )
