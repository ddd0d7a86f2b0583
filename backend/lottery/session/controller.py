from __future__ import annotations

import asyncio
import random
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

import structlog

from lottery.logic.draw import draw
from lottery.logic.enums import RoundPhase
from lottery.logic.exceptions import (
    AnnotationServiceError,
    EmptyPoolError,
    InvalidRoundNumberError,
    RoundInProgressError,
)
from lottery.logic.ledger import attach_comment, clear_ledger, now_millis, record_round, replace_roster
from lottery.logic.models import DisplaySettings, LotteryState
from lottery.logic.pool import eligible_pool
from lottery.logic.roster import build_roster, default_names, parse_roster_text, range_names
from lottery.logic.settings import LotterySettings
from lottery.session.rolling import RollingTicker

if TYPE_CHECKING:
    from lottery.logic.models import Participant, WinnerRecord
    from lottery.persistence.gateway import PersistenceGateway
    from lottery.session.annotation import AnnotationService

logger = structlog.get_logger()


def seed_state(settings: LotterySettings) -> LotteryState:
    """Fresh state with the default numbered roster and no history."""
    return LotteryState(
        roster=build_roster(default_names(settings.default_roster_size)),
        display=DisplaySettings(background=settings.default_background),
    )


class RoundController:
    """Own the lottery state and drive the idle -> rolling -> result cycle.

    Every mutation goes through a named method here and is followed by a
    best-effort snapshot save. All methods run on the event loop thread;
    start() and stop() need a running loop for the ticker and annotation
    tasks.
    """

    def __init__(  # noqa: PLR0913
        self,
        state: LotteryState | None = None,
        *,
        settings: LotterySettings | None = None,
        gateway: PersistenceGateway | None = None,
        annotation_service: AnnotationService | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self._settings = settings or LotterySettings()
        self._state = state if state is not None else seed_state(self._settings)
        self._gateway = gateway
        self._annotation_service = annotation_service
        self._rng = rng or random.Random()  # noqa: S311
        self._clock = clock
        self._ticker = RollingTicker(self._settings.rolling_interval_seconds, rng=self._rng)
        self._annotation_tasks: set[asyncio.Task[None]] = set()

        self._phase = RoundPhase.IDLE
        self._current_result: WinnerRecord | None = None
        self._rolling_name: str | None = None
        self._prize_name = self._settings.default_prize_name
        self._draw_count = self._settings.default_draw_count

    @classmethod
    def restore(
        cls,
        gateway: PersistenceGateway,
        *,
        settings: LotterySettings | None = None,
        annotation_service: AnnotationService | None = None,
        rng: random.Random | None = None,
    ) -> RoundController:
        """Build a controller from the persisted snapshot, seeding defaults when there is none."""
        settings = settings or LotterySettings()
        state = gateway.load()
        seeded = state is None
        if state is None:
            state = seed_state(settings)
        controller = cls(
            state,
            settings=settings,
            gateway=gateway,
            annotation_service=annotation_service,
            rng=rng,
        )
        if seeded:
            controller._persist()
        logger.info(
            "lottery state ready",
            seeded=seeded,
            roster_size=len(state.roster),
            rounds=len(state.ledger),
            round_counter=state.round_counter,
        )
        return controller

    # --- read side ---

    @property
    def state(self) -> LotteryState:
        return self._state

    @property
    def phase(self) -> RoundPhase:
        return self._phase

    @property
    def settings(self) -> LotterySettings:
        return self._settings

    @property
    def eligible_pool(self) -> list[Participant]:
        return eligible_pool(self._state.roster, self._state.ledger)

    @property
    def current_result(self) -> WinnerRecord | None:
        return self._current_result

    @property
    def rolling_name(self) -> str | None:
        """Name currently cycling on screen, or None outside a rolling round."""
        return self._rolling_name

    @property
    def prize_name(self) -> str:
        return self._prize_name

    @property
    def draw_count(self) -> int:
        return self._draw_count

    @property
    def pending_annotations(self) -> frozenset[asyncio.Task[None]]:
        return frozenset(self._annotation_tasks)

    def roster_text(self) -> str:
        """Roster names one per line, the format accepted by import_roster_text."""
        return "\n".join(p.name for p in self._state.roster)

    # --- roster ---

    def replace_roster(self, names: Iterable[str]) -> tuple[Participant, ...]:
        """Replace the whole roster with fresh participants. History is kept."""
        roster = build_roster(names)
        self._state = replace_roster(self._state, roster)
        self._persist()
        logger.info("roster replaced", roster_size=len(roster), eligible=len(self.eligible_pool))
        return roster

    def import_roster_text(self, text: str) -> tuple[Participant, ...]:
        return self.replace_roster(parse_roster_text(text))

    def generate_range(self, start: object, end: object) -> tuple[Participant, ...]:
        """Replace the roster with participants named start..end. InvalidRangeError leaves state untouched."""
        return self.replace_roster(range_names(start, end))

    # --- rounds ---

    def start(self, prize_name: str | None = None, draw_count: int | None = None) -> None:
        """Begin rolling a round.

        Raises RoundInProgressError while already rolling, and EmptyPoolError
        (phase unchanged) when nobody is eligible. Starting while a result is
        shown dismisses that result.
        """
        if self._phase is RoundPhase.ROLLING:
            raise RoundInProgressError("a round is already rolling")
        pool = self.eligible_pool
        if not pool:
            raise EmptyPoolError

        if prize_name is not None and prize_name.strip():
            self._prize_name = prize_name.strip()
        if draw_count is not None:
            self._draw_count = draw_count

        self._ticker.start(self._eligible_names, self._on_tick)
        self._current_result = None
        self._rolling_name = None
        self._phase = RoundPhase.ROLLING
        logger.info(
            "round started",
            round_id=self._state.round_counter,
            prize_name=self._prize_name,
            draw_count=self._draw_count,
            pool_size=len(pool),
        )

    def stop(self) -> WinnerRecord | None:
        """Finish the rolling round and record its winners.

        Returns None (no-op) unless rolling. If the pool emptied while
        rolling, returns to idle and raises EmptyPoolError.
        """
        if self._phase is not RoundPhase.ROLLING:
            return None
        self._ticker.cancel()
        self._rolling_name = None

        pool = self.eligible_pool
        if not pool:
            self._phase = RoundPhase.IDLE
            logger.warning("round aborted, pool emptied while rolling", round_id=self._state.round_counter)
            raise EmptyPoolError

        winners = draw(pool, self._draw_count, self._rng)
        self._state, record = record_round(self._state, self._prize_name, winners, timestamp=self._clock())
        self._current_result = record
        self._phase = RoundPhase.RESULT_SHOWN
        self._persist()
        logger.info(
            "round completed",
            round_id=record.round_id,
            prize_name=record.prize_name,
            requested=self._draw_count,
            drawn=len(winners),
            remaining=len(pool) - len(winners),
        )
        self._schedule_annotation(record)
        return record

    def acknowledge(self) -> None:
        """Dismiss the shown result. The ledger is not touched."""
        if self._phase is RoundPhase.RESULT_SHOWN:
            self._phase = RoundPhase.IDLE
            self._current_result = None

    def clear_history(self) -> None:
        """Empty the ledger, restart numbering at 1 and return to idle from any phase."""
        self._ticker.cancel()
        self._state = clear_ledger(self._state)
        self._phase = RoundPhase.IDLE
        self._current_result = None
        self._rolling_name = None
        self._persist()
        logger.info("history cleared", eligible=len(self.eligible_pool))

    def set_round_number(self, round_number: int) -> None:
        """Override the number the next round will carry."""
        if self._phase is RoundPhase.ROLLING:
            raise RoundInProgressError("cannot change the round number while rolling")
        if isinstance(round_number, bool) or not isinstance(round_number, int) or round_number < 1:
            raise InvalidRoundNumberError(f"round number must be a positive integer, got {round_number!r}")
        self._state = self._state.model_copy(update={"round_counter": round_number})
        self._persist()

    # --- display settings ---

    def set_background(self, background: str) -> None:
        self._update_display(background=background)

    def set_muted(self, is_muted: bool) -> None:  # noqa: FBT001
        self._update_display(is_muted=is_muted)

    def update_display(self, *, background: str | None = None, is_muted: bool | None = None) -> None:
        """Apply the given display fields together as one saved change. None leaves a field as is."""
        updates: dict[str, object] = {}
        if background is not None:
            updates["background"] = background
        if is_muted is not None:
            updates["is_muted"] = is_muted
        if updates:
            self._update_display(**updates)

    def toggle_mute(self) -> bool:
        muted = not self._state.display.is_muted
        self._update_display(is_muted=muted)
        return muted

    def _update_display(self, **updates: object) -> None:
        display = self._state.display.model_copy(update=updates)
        self._state = self._state.model_copy(update={"display": display})
        self._persist()

    # --- annotation ---

    def apply_annotation(self, record_id: str, comment: str) -> bool:
        """Attach comment to the matching ledger record.

        Returns False and changes nothing when the record is gone.
        """
        updated = attach_comment(self._state, record_id, comment)
        if updated is None:
            logger.debug("discarding caption for cleared round", record_id=record_id)
            return False
        self._state = updated
        if self._current_result is not None and self._current_result.id == record_id:
            self._current_result = self._current_result.model_copy(update={"ai_comment": comment})
        self._persist()
        return True

    def _schedule_annotation(self, record: WinnerRecord) -> None:
        if self._annotation_service is None:
            return
        task = asyncio.create_task(self._annotate(record))
        self._annotation_tasks.add(task)
        task.add_done_callback(self._annotation_tasks.discard)

    async def _annotate(self, record: WinnerRecord) -> None:
        if self._annotation_service is None:
            return
        try:
            caption = await self._annotation_service.annotate(record.prize_name, record.winner_names)
        except AnnotationServiceError as exc:
            logger.warning("caption unavailable", round_id=record.round_id, error=str(exc))
            return
        except (RuntimeError, OSError, ValueError, KeyError, TypeError, AttributeError):  # fmt: skip
            logger.exception("caption request crashed", round_id=record.round_id)
            return
        if caption:
            self.apply_annotation(record.id, caption)

    # --- lifecycle ---

    async def aclose(self) -> None:
        """Cancel the ticker and any caption requests still in flight."""
        self._ticker.cancel()
        tasks = list(self._annotation_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._annotation_tasks.clear()

    def _eligible_names(self) -> list[str]:
        return [p.name for p in self.eligible_pool]

    def _on_tick(self, name: str) -> None:
        self._rolling_name = name

    def _persist(self) -> None:
        if self._gateway is not None:
            self._gateway.save(self._state)
