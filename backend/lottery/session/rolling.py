"""
Cosmetic name cycling while a round is rolling.

A repeating asyncio task picks a random eligible name every interval and
hands it to a callback. It carries no draw semantics: the winners are chosen
independently when the round stops.
"""

from __future__ import annotations

import asyncio
import random
from typing import TYPE_CHECKING

import structlog

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


class RollingTicker:
    """Manage the repeating task that cycles displayed names."""

    def __init__(self, interval_seconds: float, rng: random.Random | None = None) -> None:
        self._interval = interval_seconds
        self._rng = rng or random.Random()  # noqa: S311
        self._active_task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._active_task is not None and not self._active_task.done()

    def start(self, names: Callable[[], Sequence[str]], on_tick: Callable[[str], None]) -> None:
        """Start cycling. `names` is re-read on every tick so roster edits show up."""
        self.cancel()
        self._active_task = asyncio.create_task(self._run(names, on_tick))

    def cancel(self) -> None:
        """Cancel the active task. Safe to call when nothing is running."""
        if self._active_task is not None and not self._active_task.done():
            self._active_task.cancel()
        self._active_task = None

    async def _run(self, names: Callable[[], Sequence[str]], on_tick: Callable[[str], None]) -> None:
        try:
            while True:
                current = names()
                if current:
                    on_tick(current[self._rng.randrange(len(current))])
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            pass
        except (RuntimeError, ValueError, TypeError):
            logger.exception("rolling ticker callback failed")
