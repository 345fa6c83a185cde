"""Pytest configuration and fixtures."""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from timed_giveaway.lifecycle import GiveawayLifecycle

BERLIN = ZoneInfo("Europe/Berlin")


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingRenderer:
    """Collects every announcement; optionally fails or hands out message ids."""

    def __init__(self, *, fail: bool = False, message_ref=None) -> None:
        self.calls = []
        self.fail = fail
        self.message_ref = message_ref

    async def render(self, giveaway, announcement):
        self.calls.append(announcement)
        if self.fail:
            raise RuntimeError("render failed")
        return self.message_ref

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 1, 1, 10, 0, tzinfo=BERLIN))


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def make_clock():
    return FixedClock


@pytest.fixture
def make_lifecycle(clock):
    default_clock = clock

    def factory(renderer=None, clock=None, **kwargs):
        return GiveawayLifecycle(
            timezone=BERLIN,
            renderer=renderer,
            clock=clock or default_clock,
            rng=random.Random(42),
            **kwargs,
        )

    return factory


@pytest.fixture
def lifecycle(make_lifecycle, renderer):
    return make_lifecycle(renderer)
