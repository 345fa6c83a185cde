"""In-memory store of open giveaways."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Hashable, Iterator, List, Optional, Sequence

from .models import Giveaway


class GiveawayRegistry:
    """Holds open giveaways keyed by id, in creation order.

    The registry does no locking of its own; its owner serialises access.
    """

    def __init__(self) -> None:
        self._giveaways: Dict[str, Giveaway] = {}

    def __len__(self) -> int:
        return len(self._giveaways)

    def __contains__(self, giveaway_id: object) -> bool:
        return giveaway_id in self._giveaways

    def __iter__(self) -> Iterator[Giveaway]:
        return iter(tuple(self._giveaways.values()))

    def add(self, giveaway: Giveaway) -> None:
        """Insert a new giveaway; ids are never replaced."""
        if giveaway.id in self._giveaways:
            raise KeyError(f"Giveaway {giveaway.id} is already registered")
        self._giveaways[giveaway.id] = giveaway

    def get(self, giveaway_id: str) -> Optional[Giveaway]:
        """Retrieve a giveaway by ID."""
        return self._giveaways.get(giveaway_id)

    def remove(self, giveaway_id: str) -> Optional[Giveaway]:
        """Remove and return a giveaway if it exists."""
        return self._giveaways.pop(giveaway_id, None)

    def find_by_entry_point(self, entry_point: Hashable) -> Optional[Giveaway]:
        """Return the open giveaway announced at ``entry_point``, if any."""
        for giveaway in self._giveaways.values():
            if giveaway.entry_point == entry_point:
                return giveaway
        return None

    def list_open(self) -> Sequence[Giveaway]:
        return tuple(self._giveaways.values())

    def expired_ids(self, now: datetime) -> List[str]:
        """Return ids of giveaways whose window has elapsed at ``now``."""
        return [
            giveaway.id
            for giveaway in self._giveaways.values()
            if giveaway.is_expired(now)
        ]
