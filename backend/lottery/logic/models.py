"""
Lottery state models.

All models are frozen; changes produce new values via model_copy. Field
aliases are camelCase so the same models serialize straight into the
persisted snapshot and the HTTP payloads.
"""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from lottery.logic.settings import DEFAULT_BACKGROUND

_MODEL_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Participant(BaseModel):
    """One roster entry. Identity is `id`; names may repeat."""

    model_config = _MODEL_CONFIG

    id: str = Field(min_length=1)
    name: str


class WinnerRecord(BaseModel):
    """
    Result of one completed round.

    `winners` is a snapshot of the participants at draw time, not a reference
    into the roster. `ai_comment` is the only field ever filled in later.
    """

    model_config = _MODEL_CONFIG

    id: str = Field(min_length=1)
    round_id: int = Field(ge=1)
    prize_name: str
    winners: tuple[Participant, ...]
    timestamp: int  # epoch millis
    ai_comment: str | None = None

    @property
    def winner_names(self) -> list[str]:
        return [w.name for w in self.winners]


class DisplaySettings(BaseModel):
    model_config = _MODEL_CONFIG

    background: str = DEFAULT_BACKGROUND
    is_muted: bool = False


class LotteryState(BaseModel):
    """
    Complete application state owned by the round controller.

    ledger is ordered newest first. round_counter is the number the next
    completed round will carry.
    """

    model_config = _MODEL_CONFIG

    roster: tuple[Participant, ...] = ()
    ledger: tuple[WinnerRecord, ...] = ()
    round_counter: int = Field(default=1, ge=1)
    display: DisplaySettings = Field(default_factory=DisplaySettings)

    @model_validator(mode="after")
    def _validate_unique_roster_ids(self) -> Self:
        ids = [p.id for p in self.roster]
        if len(ids) != len(set(ids)):
            raise ValueError("roster participant ids must be unique")
        return self
