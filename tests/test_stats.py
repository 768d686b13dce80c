"""Tests for aggregate stats bookkeeping."""

import asyncio

from contentguard.pipeline import StatsTracker, smooth_latency
from contentguard.storage import MemoryStore


class _BrokenStatsStore(MemoryStore):
    async def update_stats(self, stats_id, patch):
        raise OSError("disk full")


def test_smooth_latency():
    assert smooth_latency(230, 30) == 130
    assert smooth_latency(100, 101) == 100  # round half to even
    assert smooth_latency(0, 0) == 0


def test_ensure_row_creates_initial_stats_once():
    async def scenario():
        tracker = StatsTracker(MemoryStore())
        first = await tracker.ensure_row()
        second = await tracker.ensure_row()
        return first, second

    first, second = asyncio.run(scenario())
    assert first.id == second.id
    assert first.response_time == 230


def test_record_content_counts_items():
    async def scenario():
        tracker = StatsTracker(MemoryStore())
        for _ in range(3):
            await tracker.record_content()
        return await tracker.current()

    stats = asyncio.run(scenario())
    assert stats.total_content == 3
    assert stats.flagged_content == 0


def test_average_confidence_stays_within_observed_bounds():
    confidences = [90, 0, 75, 70, 85, 0, 90]

    async def scenario():
        tracker = StatsTracker(MemoryStore())
        averages = []
        for c in confidences:
            stats = await tracker.record_analysis(c, c >= 75, latency_ms=10)
            averages.append(stats.ai_confidence)
        return averages, await tracker.current()

    averages, final = asyncio.run(scenario())
    for i, avg in enumerate(averages):
        seen = confidences[: i + 1]
        assert min(seen) <= avg <= max(seen)
    assert final.ai_confidence == round(sum(confidences) / len(confidences))
    assert final.analyzed_content == len(confidences)
    assert final.flagged_content == 4


def test_latency_follows_recent_values():
    async def scenario():
        tracker = StatsTracker(MemoryStore())
        values = []
        for _ in range(10):
            stats = await tracker.record_analysis(0, False, latency_ms=20)
            values.append(stats.response_time)
        return values

    values = asyncio.run(scenario())
    assert values == sorted(values, reverse=True)
    assert abs(values[-1] - 20) <= 1


def test_concurrent_updates_do_not_lose_increments():
    async def scenario():
        tracker = StatsTracker(MemoryStore())
        await asyncio.gather(*(tracker.record_content() for _ in range(25)))
        await asyncio.gather(*(tracker.record_analysis(50, True, 5) for _ in range(25)))
        return await tracker.current()

    stats = asyncio.run(scenario())
    assert stats.total_content == 25
    assert stats.flagged_content == 25
    assert stats.analyzed_content == 25
    assert stats.ai_confidence == 50


def test_failed_update_is_logged_and_returns_none(caplog):
    async def scenario():
        tracker = StatsTracker(_BrokenStatsStore())
        return await tracker.record_content()

    assert asyncio.run(scenario()) is None
    assert "Stats update failed" in caplog.text
