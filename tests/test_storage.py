"""Tests for the in-memory and JSON file record stores."""

import asyncio
import json
import tempfile
from pathlib import Path

import pytest

from contentguard.errors import StorageError
from contentguard.models import (
    AggregateStats,
    AnalysisResult,
    ContentCategory,
    ContentStatus,
    ContentSubmission,
    ContentType,
    ModerationRule,
)
from contentguard.storage import JsonFileStore, MemoryStore, enrich_analysis, pending_page


def _submission(content="hello", content_id="c-1", **kw):
    return ContentSubmission(type=kw.pop("type", "text"), content=content, content_id=content_id, **kw)


def test_content_round_trip():
    async def scenario():
        store = MemoryStore()
        item = await store.create_content(
            _submission("Body", metadata={"title": "Title"}, source="Wire", user_id="u1")
        )
        return item, await store.get_content(item.id)

    item, fetched = asyncio.run(scenario())
    assert item.id == 1
    assert fetched == item
    assert fetched.type == ContentType.text
    assert fetched.content == "Body"
    assert fetched.user_id == "u1"
    assert fetched.metadata == {"title": "Title", "source": "Wire"}


def test_list_contents_newest_first_with_pagination():
    async def scenario():
        store = MemoryStore()
        for i in range(5):
            await store.create_content(_submission(f"item {i}", f"c-{i}"))
        return (
            [c.content for c in await store.list_contents(2, 0)],
            [c.content for c in await store.list_contents(2, 2)],
            await store.get_content(99),
        )

    first, second, missing = asyncio.run(scenario())
    assert first == ["item 4", "item 3"]
    assert second == ["item 2", "item 1"]
    assert missing is None


def test_search_is_case_insensitive():
    async def scenario():
        store = MemoryStore()
        await store.create_content(_submission("Limited Time offer", "a"))
        await store.create_content(_submission("nothing to see", "b"))
        return await store.search_contents("limited time")

    results = asyncio.run(scenario())
    assert [r.content_id for r in results] == ["a"]


def test_analysis_status_update_and_filter():
    async def scenario():
        store = MemoryStore()
        item = await store.create_content(_submission())
        pending = await store.create_analysis(AnalysisResult(
            content_id=item.id, category=ContentCategory.spam, confidence=80,
            flagged=True, status=ContentStatus.pending,
        ))
        await store.create_analysis(AnalysisResult(
            content_id=item.id, category=ContentCategory.safe, confidence=0,
            status=ContentStatus.approved,
        ))
        before = await store.list_analyses(status=ContentStatus.pending)
        updated = await store.update_analysis_status(pending.id, ContentStatus.reviewed)
        after = await store.list_analyses(status=ContentStatus.pending)
        missing = await store.update_analysis_status(999, ContentStatus.reviewed)
        return before, updated, after, missing, await store.get_analysis(pending.id)

    before, updated, after, missing, fetched = asyncio.run(scenario())
    assert len(before) == 1
    assert updated.status == ContentStatus.reviewed
    assert after == []
    assert missing is None
    assert fetched.status == ContentStatus.reviewed
    assert fetched.category == ContentCategory.spam


def test_returned_records_are_copies():
    async def scenario():
        store = MemoryStore()
        rule = await store.create_rule(ModerationRule(name="Spam", category="spam", sensitivity=50))
        rule.sensitivity = 1
        return await store.get_rule(rule.id)

    assert asyncio.run(scenario()).sensitivity == 50


def test_rule_update():
    async def scenario():
        store = MemoryStore()
        rule = await store.create_rule(ModerationRule(name="Spam", category="spam", sensitivity=50))
        updated = await store.update_rule(rule.id, {"sensitivity": 70, "active": False})
        missing = await store.update_rule(42, {"active": True})
        return updated, missing, await store.list_rules()

    updated, missing, rules = asyncio.run(scenario())
    assert updated.sensitivity == 70
    assert updated.active is False
    assert missing is None
    assert len(rules) == 1


def test_stats_rows():
    async def scenario():
        store = MemoryStore()
        empty = await store.get_latest_stats()
        row = await store.create_stats(AggregateStats(response_time=230))
        await store.update_stats(row.id, {"total_content": 3})
        return empty, await store.get_latest_stats()

    empty, latest = asyncio.run(scenario())
    assert empty is None
    assert latest.total_content == 3
    assert latest.response_time == 230


def test_enrich_and_pending_page():
    async def scenario():
        store = MemoryStore()
        item = await store.create_content(_submission("spam text"))
        for _ in range(7):
            await store.create_analysis(AnalysisResult(
                content_id=item.id, category="spam", confidence=80,
                flagged=True, status="pending",
            ))
        analysis = await store.create_analysis(AnalysisResult(content_id=404, status="approved"))
        return await pending_page(store, 5), await enrich_analysis(store, analysis)

    page, orphan = asyncio.run(scenario())
    assert len(page) == 5
    assert page[0]["content"]["content"] == "spam text"
    assert page[0]["status"] == "pending"
    assert orphan["content"] is None


def test_json_store_persists_across_instances():
    with tempfile.TemporaryDirectory() as tmpdir:
        async def write():
            store = JsonFileStore(tmpdir)
            item = await store.create_content(_submission("persist me", type="news"))
            await store.create_analysis(AnalysisResult(
                content_id=item.id, category="spam", confidence=95, flagged=True, status="removed",
            ))
            await store.create_rule(ModerationRule(name="Spam", category="spam", sensitivity=90))
            await store.create_stats(AggregateStats(total_content=1))

        async def read():
            store = JsonFileStore(tmpdir)
            item = await store.create_content(_submission("second", "c-2"))
            return (
                await store.list_contents(),
                await store.list_analyses(),
                await store.list_rules(),
                await store.get_latest_stats(),
                item,
            )

        asyncio.run(write())
        files = sorted(p.name for p in Path(tmpdir).glob("*.json"))
        raw_contents = json.loads((Path(tmpdir) / "contents.json").read_text())
        contents, analyses, rules, stats, second = asyncio.run(read())

    assert files == ["analyses.json", "contents.json", "rules.json", "stats.json"]
    assert raw_contents[0]["type"] == "news"
    assert second.id == 2
    assert [c.content for c in contents] == ["second", "persist me"]
    assert contents[1].type == ContentType.news
    assert analyses[0].status == ContentStatus.removed
    assert rules[0].category == ContentCategory.spam
    assert stats.total_content == 1


def test_json_store_ignores_corrupt_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "rules.json").write_text("{not json")
        store = JsonFileStore(tmpdir)
        assert asyncio.run(store.list_rules()) == []


class _DiskFullStore(JsonFileStore):
    full = False

    def _write_json(self, path, data):
        if self.full:
            raise StorageError("disk full")
        super()._write_json(path, data)


def test_json_store_failed_write_leaves_no_trace():
    with tempfile.TemporaryDirectory() as tmpdir:
        async def scenario():
            store = _DiskFullStore(tmpdir)
            rule = await store.create_rule(ModerationRule(name="Spam", category="spam", sensitivity=90))
            store.full = True
            with pytest.raises(StorageError):
                await store.create_content(_submission("lost", "c-1"))
            with pytest.raises(StorageError):
                await store.update_rule(rule.id, {"sensitivity": 10})
            before_retry = (
                await store.list_contents(),
                await store.search_contents("lost"),
                await store.get_rule(rule.id),
            )
            store.full = False
            item = await store.create_content(_submission("kept", "c-2"))
            return before_retry, item

        (contents, matches, rule), item = asyncio.run(scenario())
        reloaded = asyncio.run(JsonFileStore(tmpdir).list_contents())

    assert contents == []
    assert matches == []
    assert rule.sensitivity == 90
    assert item.id == 1
    assert [c.content for c in reloaded] == ["kept"]
