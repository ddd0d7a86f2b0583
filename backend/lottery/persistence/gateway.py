"""Snapshot persistence for the lottery state.

The whole state is stored as one JSON document under a fixed, versioned
storage key:

    {"allParticipants": [{"id", "name"}],
     "history": [{"id", "roundId", "prizeName", "winners", "timestamp", "aiComment"?}],
     "bgImage"?: str, "isMuted"?: bool, "roundNumber"?: int}

Both directions are best-effort. A failed save is logged and the in-memory
state keeps going; a missing or unreadable snapshot loads as None so the
caller seeds defaults.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from lottery.logic.exceptions import PersistenceReadError, PersistenceWriteError
from lottery.logic.models import DisplaySettings, LotteryState, Participant, WinnerRecord

if TYPE_CHECKING:
    from shared.storage import SnapshotStorage

logger = structlog.get_logger()

STORAGE_KEY = "lottery_app_v3"


class LotterySnapshot(BaseModel):
    """On-disk layout of the persisted state."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    all_participants: list[Participant] | None = Field(default=None, alias="allParticipants")
    history: list[WinnerRecord] | None = None
    bg_image: str | None = Field(default=None, alias="bgImage")
    is_muted: bool | None = Field(default=None, alias="isMuted")
    round_number: int | None = Field(default=None, alias="roundNumber")

    @classmethod
    def from_state(cls, state: LotteryState) -> LotterySnapshot:
        return cls(
            all_participants=list(state.roster),
            history=list(state.ledger),
            bg_image=state.display.background,
            is_muted=state.display.is_muted,
            round_number=state.round_counter,
        )

    def to_state(self) -> LotteryState:
        """Build the application state, filling absent optional fields with defaults.

        Missing lists restore as empty; a missing or zero roundNumber restores as 1.
        """
        display = DisplaySettings()
        if self.bg_image:
            display = display.model_copy(update={"background": self.bg_image})
        if self.is_muted is not None:
            display = display.model_copy(update={"is_muted": self.is_muted})
        return LotteryState(
            roster=tuple(self.all_participants or ()),
            ledger=tuple(self.history or ()),
            round_counter=self.round_number or 1,
            display=display,
        )


class PersistenceGateway:
    """Save and restore the lottery state through a SnapshotStorage."""

    def __init__(self, storage: SnapshotStorage, key: str = STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def save(self, state: LotteryState) -> bool:
        """Persist state. Returns False (after logging a warning) when the write fails."""
        try:
            self._write(state)
        except PersistenceWriteError as exc:
            logger.warning("snapshot not saved, keeping in-memory state", key=self._key, error=str(exc.__cause__))
            return False
        return True

    def load(self) -> LotteryState | None:
        """Return the stored state, or None when absent or unreadable."""
        try:
            return self._read()
        except PersistenceReadError as exc:
            logger.warning("ignoring unreadable snapshot, falling back to defaults", key=self._key, error=str(exc))
            return None

    def _write(self, state: LotteryState) -> None:
        snapshot = LotterySnapshot.from_state(state)
        content = json.dumps(snapshot.model_dump(mode="json", by_alias=True, exclude_none=True), ensure_ascii=False)
        try:
            self._storage.write(self._key, content)
        except OSError as exc:
            raise PersistenceWriteError(f"failed to write snapshot {self._key!r}") from exc

    def _read(self) -> LotteryState | None:
        try:
            raw = self._storage.read(self._key)
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceReadError(f"failed to read snapshot {self._key!r}: {exc}") from exc
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceReadError(f"snapshot {self._key!r} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceReadError(f"expected JSON object at root of snapshot {self._key!r}")
        try:
            return LotterySnapshot.model_validate(data).to_state()
        except ValidationError as exc:
            raise PersistenceReadError(f"snapshot {self._key!r} failed validation: {exc}") from exc
