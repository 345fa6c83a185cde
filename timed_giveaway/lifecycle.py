from __future__ import annotations

import asyncio
import itertools
import logging
import random
from datetime import UTC, datetime
from typing import Any, Callable, Hashable, Optional, Protocol, Sequence, Union
from zoneinfo import ZoneInfo

from .config import Config
from .models import (
    AlreadyEntered,
    AnnouncementState,
    Cancelled,
    EntryPointBusy,
    Giveaway,
    GiveawayState,
    InvalidDescription,
    InvalidExpiry,
    InvalidPrize,
    InvalidWinnerCount,
    Joined,
    NoParticipants,
    NotFound,
    Winners,
)
from .registry import GiveawayRegistry
from .selection import select_winners
from .timeparse import TimeParseError, format_expiry, localize, parse_expiry

log = logging.getLogger(__name__)

EntryResult = Union[Joined, AlreadyEntered, NotFound]
ResolutionResult = Union[Winners, NoParticipants]

_id_counter = itertools.count(1)


class Renderer(Protocol):
    async def render(
        self, giveaway: Giveaway, announcement: AnnouncementState
    ) -> Any:
        """Draw or redraw an announcement; may return a new message handle."""


class NullRenderer:
    async def render(
        self, giveaway: Giveaway, announcement: AnnouncementState
    ) -> Any:
        return None


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _coerce_winner_count(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidWinnerCount("Number of winners must be a positive number.")
    if isinstance(value, int):
        count = value
    elif isinstance(value, str):
        try:
            count = int(value.strip())
        except ValueError as exc:
            raise InvalidWinnerCount(
                "Number of winners must be a positive number."
            ) from exc
    else:
        raise InvalidWinnerCount("Number of winners must be a positive number.")
    if count < 1:
        raise InvalidWinnerCount("Number of winners must be a positive number.")
    return count


class GiveawayLifecycle:
    """Creates, fills and resolves giveaways held in a registry."""

    def __init__(
        self,
        *,
        timezone: ZoneInfo,
        registry: Optional[GiveawayRegistry] = None,
        renderer: Optional[Renderer] = None,
        clock: Callable[[], datetime] = _utcnow,
        rng: Optional[random.Random] = None,
        prize_max_length: int = 100,
        description_max_length: int = 500,
    ) -> None:
        self.timezone = timezone
        self.registry = registry if registry is not None else GiveawayRegistry()
        self.renderer: Renderer = renderer or NullRenderer()
        self.clock = clock
        self._rng = rng
        self.prize_max_length = prize_max_length
        self.description_max_length = description_max_length
        self._state_lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls, config: Config, *, renderer: Optional[Renderer] = None
    ) -> "GiveawayLifecycle":
        return cls(
            timezone=ZoneInfo(config.timezone),
            renderer=renderer,
            prize_max_length=config.limits.prize_max_length,
            description_max_length=config.limits.description_max_length,
        )

    # --- Operations -------------------------------------------------------

    async def create(
        self,
        prize: str,
        description: Optional[str],
        winner_count: Any,
        expiry_text: str,
        entry_point: Hashable,
        *,
        now: Optional[datetime] = None,
    ) -> Giveaway:
        prize = (prize or "").strip()
        if not prize:
            raise InvalidPrize("Prize must not be empty.")
        if len(prize) > self.prize_max_length:
            raise InvalidPrize(
                f"Prize must be at most {self.prize_max_length} characters."
            )
        description = (description or "").strip() or None
        if description and len(description) > self.description_max_length:
            raise InvalidDescription(
                f"Description must be at most {self.description_max_length} characters."
            )
        count = _coerce_winner_count(winner_count)

        now = localize(now or self.clock(), self.timezone)
        try:
            expires_at = parse_expiry(expiry_text or "", now, self.timezone)
        except TimeParseError as exc:
            raise InvalidExpiry(str(exc)) from exc

        async with self._state_lock:
            if self.registry.find_by_entry_point(entry_point) is not None:
                raise EntryPointBusy(
                    "A giveaway is already running in this channel. End it first."
                )
            giveaway = Giveaway(
                id=self._generate_giveaway_id(now),
                prize=prize,
                description=description,
                winner_count=count,
                expires_at=expires_at,
                entry_point=entry_point,
                created_at=now,
            )
            self.registry.add(giveaway)

        log.info(
            "Giveaway %s created for %r (%d winner(s), ends %s).",
            giveaway.id,
            giveaway.prize,
            giveaway.winner_count,
            format_expiry(giveaway.expires_at, self.timezone),
        )
        await self._render(giveaway, self.announcement(giveaway))
        return giveaway

    async def enter(self, giveaway_id: str, participant_id: Hashable) -> EntryResult:
        async with self._state_lock:
            giveaway = self.registry.get(giveaway_id)
            if giveaway is None:
                log.debug("Entry by %s for unknown giveaway %s.", participant_id, giveaway_id)
                return NotFound(giveaway_id)
            if not giveaway.add_participant(participant_id):
                return AlreadyEntered(giveaway.participant_count)
            result = Joined(giveaway.participant_count)
            announcement = self.announcement(giveaway)

        log.debug("%s joined giveaway %s (%d).", participant_id, giveaway_id, result.count)
        await self._render(giveaway, announcement)
        return result

    async def resolve(
        self, giveaway_id: str
    ) -> Union[Winners, NoParticipants, NotFound]:
        async with self._state_lock:
            giveaway = self.registry.remove(giveaway_id)
            if giveaway is None:
                log.debug("Giveaway %s already resolved or unknown.", giveaway_id)
                return NotFound(giveaway_id)
            giveaway.state = GiveawayState.RESOLVED

        participants = frozenset(giveaway.participants)
        if not participants:
            result: ResolutionResult = NoParticipants(giveaway.prize)
            log.info("Giveaway %s ended without participants.", giveaway.id)
        else:
            winners = select_winners(
                participants,
                min(giveaway.winner_count, len(participants)),
                rng=self._rng,
            )
            result = Winners(winners, len(participants), giveaway.prize)
            log.info(
                "Giveaway %s finished with %d winner(s) out of %d participant(s).",
                giveaway.id,
                len(winners),
                len(participants),
            )

        await self._render(giveaway, self.announcement(giveaway, result=result))
        return result

    async def close_by_id(
        self, giveaway_id: str
    ) -> Union[Winners, NoParticipants, NotFound]:
        return await self.resolve(giveaway_id)

    async def close_for_entry_point(
        self, entry_point: Hashable
    ) -> Union[Winners, NoParticipants, NotFound]:
        async with self._state_lock:
            giveaway = self.registry.find_by_entry_point(entry_point)
        if giveaway is None:
            return NotFound()
        return await self.resolve(giveaway.id)

    async def cancel(self, giveaway_id: str) -> Union[Cancelled, NotFound]:
        """End a giveaway without drawing winners."""
        async with self._state_lock:
            giveaway = self.registry.remove(giveaway_id)
            if giveaway is None:
                return NotFound(giveaway_id)
            giveaway.state = GiveawayState.RESOLVED

        result = Cancelled(giveaway.prize, giveaway.participant_count)
        log.info("Giveaway %s cancelled by an administrator.", giveaway.id)
        await self._render(giveaway, self.announcement(giveaway, result=result))
        return result

    async def get(self, giveaway_id: str) -> Optional[Giveaway]:
        async with self._state_lock:
            return self.registry.get(giveaway_id)

    async def list_open(self) -> Sequence[Giveaway]:
        async with self._state_lock:
            return self.registry.list_open()

    async def expired_ids(self, now: datetime) -> list[str]:
        async with self._state_lock:
            return self.registry.expired_ids(now)

    # --- Rendering --------------------------------------------------------

    def announcement(
        self, giveaway: Giveaway, *, result: Any = None
    ) -> AnnouncementState:
        winners: tuple = ()
        if isinstance(result, Winners):
            winners = tuple(result.winners)
        return AnnouncementState(
            giveaway_id=giveaway.id,
            prize=giveaway.prize,
            description=giveaway.description,
            winner_count=giveaway.winner_count,
            participant_count=giveaway.participant_count,
            expires_at=format_expiry(giveaway.expires_at, self.timezone),
            timezone=str(self.timezone),
            resolved=result is not None,
            winners=winners,
            no_participants=isinstance(result, NoParticipants),
            cancelled=isinstance(result, Cancelled),
        )

    async def _render(self, giveaway: Giveaway, announcement: AnnouncementState) -> None:
        try:
            message_ref = await self.renderer.render(giveaway, announcement)
        except Exception:
            log.exception("Failed to render announcement for giveaway %s", giveaway.id)
            return
        if message_ref is not None and giveaway.message_ref is None:
            giveaway.message_ref = message_ref

    def _generate_giveaway_id(self, now: datetime) -> str:
        return f"{now.astimezone(UTC):%Y%m%d%H%M%S}{next(_id_counter):04d}"
