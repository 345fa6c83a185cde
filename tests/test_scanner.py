"""Tests for the periodic expiry sweep."""

import asyncio
from datetime import UTC, datetime

from timed_giveaway.models import NoParticipants, NotFound, Winners
from timed_giveaway.scanner import ExpiryScanner


async def test_tick_resolves_only_expired(lifecycle, clock):
    early = await lifecycle.create("Early", None, 1, "11:00AM", 1)
    late = await lifecycle.create("Late", None, 1, "5:30PM", 2)
    await lifecycle.enter(early.id, "alice")
    scanner = ExpiryScanner(lifecycle)

    assert await scanner.tick() == []

    clock.advance(hours=1)
    resolved = await scanner.tick()

    assert [giveaway_id for giveaway_id, _ in resolved] == [early.id]
    assert isinstance(resolved[0][1], Winners)
    assert early.id not in lifecycle.registry
    assert late.id in lifecycle.registry


async def test_tick_with_explicit_now(lifecycle, clock):
    giveaway = await lifecycle.create("Nitro", None, 1, "5:30PM", 1)
    scanner = ExpiryScanner(lifecycle)

    resolved = await scanner.tick(giveaway.expires_at)

    assert resolved == [(giveaway.id, NoParticipants("Nitro"))]


async def test_manual_close_before_tick_is_benign(lifecycle, clock):
    giveaway = await lifecycle.create("Nitro", None, 1, "11:00AM", 1)
    scanner = ExpiryScanner(lifecycle)
    clock.advance(hours=2)

    assert isinstance(await lifecycle.close_by_id(giveaway.id), NoParticipants)
    assert await scanner.tick() == []


async def test_overlapping_tick_is_skipped(make_lifecycle, clock):
    started = asyncio.Event()
    release = asyncio.Event()

    class SlowRenderer:
        async def render(self, giveaway, announcement):
            if announcement.resolved:
                started.set()
                await release.wait()

    lifecycle = make_lifecycle(SlowRenderer())
    await lifecycle.create("Nitro", None, 1, "11:00AM", 1)
    scanner = ExpiryScanner(lifecycle)
    clock.advance(hours=2)

    first = asyncio.create_task(scanner.tick())
    await started.wait()
    assert await scanner.tick() == []

    release.set()
    assert len(await first) == 1
    assert len(lifecycle.registry) == 0


async def test_failure_does_not_abort_sweep(lifecycle, clock, monkeypatch):
    broken = await lifecycle.create("Broken", None, 1, "11:00AM", 1)
    healthy = await lifecycle.create("Healthy", None, 1, "11:00AM", 2)
    scanner = ExpiryScanner(lifecycle)
    clock.advance(hours=2)

    real_resolve = lifecycle.resolve

    async def resolve(giveaway_id):
        if giveaway_id == broken.id:
            raise RuntimeError("boom")
        return await real_resolve(giveaway_id)

    monkeypatch.setattr(lifecycle, "resolve", resolve)
    resolved = await scanner.tick()

    assert [giveaway_id for giveaway_id, _ in resolved] == [healthy.id]
    assert broken.id in lifecycle.registry

    monkeypatch.setattr(lifecycle, "resolve", real_resolve)
    assert [giveaway_id for giveaway_id, _ in await scanner.tick()] == [broken.id]
    assert isinstance(await lifecycle.resolve(broken.id), NotFound)


async def test_scanner_uses_configured_interval(lifecycle):
    scanner = ExpiryScanner(lifecycle, interval_seconds=5)
    assert scanner.interval_seconds == 5
    assert not scanner.running


async def test_naive_clock_is_read_in_configured_zone(make_lifecycle, make_clock):
    wall_clock = make_clock(datetime(2024, 1, 1, 10, 0))
    lifecycle = make_lifecycle(clock=wall_clock)
    giveaway = await lifecycle.create("Nitro", None, 1, "11:00AM", 1)
    scanner = ExpiryScanner(lifecycle)

    assert giveaway.expires_at == datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
    assert await scanner.tick() == []

    wall_clock.advance(hours=1)
    assert await scanner.tick() == [(giveaway.id, NoParticipants("Nitro"))]
