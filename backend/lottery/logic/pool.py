"""
Eligible pool derivation.

The pool is recomputed from the roster and the ledger on every read. There is
no separately maintained exclusion set that could drift out of sync with the
ledger.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from lottery.logic.models import Participant, WinnerRecord


def winner_ids(ledger: Iterable[WinnerRecord]) -> set[str]:
    """Union of participant ids across every winner list in the ledger."""
    return {winner.id for record in ledger for winner in record.winners}


def eligible_pool(roster: Iterable[Participant], ledger: Iterable[WinnerRecord]) -> list[Participant]:
    """Roster minus all-time winners, in roster order."""
    excluded = winner_ids(ledger)
    return [p for p in roster if p.id not in excluded]
