"""Periodic sweep that resolves giveaways whose entry window has elapsed."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional, Tuple

from discord.ext import tasks

from .lifecycle import GiveawayLifecycle
from .models import NotFound
from .timeparse import localize

log = logging.getLogger(__name__)


class ExpiryScanner:
    """Resolves expired giveaways on a fixed cadence.

    Ticks never overlap: a tick requested while another is still running is
    skipped, and the next scheduled tick picks up anything left open.
    """

    def __init__(
        self,
        lifecycle: GiveawayLifecycle,
        *,
        interval_seconds: float = 60,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.lifecycle = lifecycle
        self.interval_seconds = interval_seconds
        self.clock = clock or lifecycle.clock
        self._in_flight = False
        self._loop = tasks.loop(seconds=interval_seconds)(self._scheduled_tick)

    @property
    def running(self) -> bool:
        return self._loop.is_running()

    def start(self) -> None:
        if not self._loop.is_running():
            self._loop.start()

    def stop(self) -> None:
        self._loop.cancel()

    async def _scheduled_tick(self) -> None:
        await self.tick()

    async def tick(self, now: Optional[datetime] = None) -> List[Tuple[str, Any]]:
        if self._in_flight:
            log.debug("Expiry scan still in progress; skipping tick.")
            return []
        self._in_flight = True
        try:
            return await self._sweep(
                localize(now or self.clock(), self.lifecycle.timezone)
            )
        finally:
            self._in_flight = False

    async def _sweep(self, now: datetime) -> List[Tuple[str, Any]]:
        resolved: List[Tuple[str, Any]] = []
        for giveaway_id in await self.lifecycle.expired_ids(now):
            try:
                result = await self.lifecycle.resolve(giveaway_id)
            except Exception:
                log.exception("Failed to resolve expired giveaway %s", giveaway_id)
                continue
            if isinstance(result, NotFound):
                continue
            resolved.append((giveaway_id, result))
        if resolved:
            log.info("Expiry scan resolved %d giveaway(s).", len(resolved))
        return resolved
