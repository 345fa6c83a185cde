"""Data models and result types for the giveaway lifecycle."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Hashable, List, Optional, Set


class GiveawayState(enum.Enum):
    OPEN = "open"
    RESOLVED = "resolved"


class GiveawayValidationError(ValueError):
    """Raised when operator input for a new giveaway is rejected."""


class InvalidWinnerCount(GiveawayValidationError):
    pass


class InvalidExpiry(GiveawayValidationError):
    pass


class InvalidPrize(GiveawayValidationError):
    pass


class InvalidDescription(GiveawayValidationError):
    pass


class EntryPointBusy(GiveawayValidationError):
    """Raised when an entry point already hosts an open giveaway."""


@dataclass(slots=True)
class Giveaway:
    """An open giveaway together with its participants and display handles."""
    id: str
    prize: str
    description: Optional[str]
    winner_count: int
    expires_at: datetime
    entry_point: Hashable
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    message_ref: Any = None
    participants: Set[Hashable] = field(default_factory=set)
    state: GiveawayState = GiveawayState.OPEN

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    def add_participant(self, participant_id: Hashable) -> bool:
        """Add a participant if they are not already entered."""
        if participant_id in self.participants:
            return False
        self.participants.add(participant_id)
        return True

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(slots=True, frozen=True)
class AnnouncementState:
    """Everything the front-end needs to draw or redraw an announcement."""
    giveaway_id: str
    prize: str
    description: Optional[str]
    winner_count: int
    participant_count: int
    expires_at: str
    timezone: str
    resolved: bool = False
    winners: tuple = ()
    no_participants: bool = False
    cancelled: bool = False


# --- Operation results --------------------------------------------------


@dataclass(slots=True, frozen=True)
class NotFound:
    giveaway_id: Optional[str] = None
    kind: str = "not_found"


@dataclass(slots=True, frozen=True)
class Joined:
    count: int
    kind: str = "joined"


@dataclass(slots=True, frozen=True)
class AlreadyEntered:
    count: int
    kind: str = "already_entered"


@dataclass(slots=True, frozen=True)
class NoParticipants:
    prize: str
    kind: str = "no_participants"


@dataclass(slots=True, frozen=True)
class Winners:
    winners: List[Hashable]
    total_participants: int
    prize: str
    kind: str = "winners"


@dataclass(slots=True, frozen=True)
class Cancelled:
    prize: str
    total_participants: int = 0
    kind: str = "cancelled"
