"""End-to-end tests of ingestion and classification through the bus."""

import asyncio

import pytest

from contentguard.bus import CONTENT_INGESTION_TOPIC, NOTIFICATIONS_TOPIC
from contentguard.config import Settings
from contentguard.errors import StorageError, ValidationError
from contentguard.models import ContentCategory, ContentItem, ContentStatus, ContentSubmission
from contentguard.pipeline import build_text
from contentguard.service import ModerationService
from contentguard.storage import MemoryStore


class _ContentWriteFails(MemoryStore):
    async def create_content(self, submission):
        raise OSError("read-only filesystem")


class _AnalysisWriteFails(MemoryStore):
    async def create_analysis(self, analysis):
        raise OSError("read-only filesystem")


def _service(storage=None, **settings):
    settings.setdefault("NEWS_DELAY", 0)
    return ModerationService(storage or MemoryStore(), settings=Settings(**settings))


def _text(content, content_id="c-1", **kw):
    return ContentSubmission(type=kw.pop("type", "text"), content=content, content_id=content_id, **kw)


def _run(service, scenario):
    """Start *service*, run *scenario(service)*, drain the bus, and stop."""

    async def main():
        await service.start()
        try:
            result = await scenario(service)
            await service.drain()
            analyses = await service.storage.list_analyses(limit=100)
            stats = await service.stats.current()
            return result, analyses, stats
        finally:
            await service.stop()

    return asyncio.run(main())


def test_spam_is_removed():
    service = _service()
    item, analyses, stats = _run(
        service, lambda s: s.submit(_text("Buy now! Click here for free money"))
    )

    assert item.id == 1
    assert len(analyses) == 1
    a = analyses[0]
    assert a.content_id == item.id
    assert a.category == ContentCategory.spam
    assert a.confidence == 90
    assert a.status == ContentStatus.removed
    assert a.flagged is True
    assert a.ai_data["source"] == "fallback"
    assert a.ai_data["decision"] == "auto_remove"
    assert stats.total_content == 1
    assert stats.flagged_content == 1
    assert stats.ai_confidence == 90

    notifications = [m["type"] for m in service.bus.history(NOTIFICATIONS_TOPIC)]
    assert notifications == ["stats_update", "flagged_content_update"]


def test_safe_text_is_approved():
    service = _service()
    _, analyses, stats = _run(service, lambda s: s.submit(_text("hello world")))

    assert analyses[0].category == ContentCategory.safe
    assert analyses[0].status == ContentStatus.approved
    assert analyses[0].flagged is False
    assert stats.flagged_content == 0
    assert [m["type"] for m in service.bus.history(NOTIFICATIONS_TOPIC)] == ["stats_update"]


def test_harassment_goes_to_review_queue():
    service = _service()
    _, analyses, _ = _run(service, lambda s: s.submit(_text("stop stalking me")))

    assert analyses[0].category == ContentCategory.harassment
    assert analyses[0].status == ContentStatus.pending
    assert analyses[0].flagged is True


def test_disabled_rule_lets_content_through():
    async def scenario(s):
        hate = next(r for r in await s.list_rules() if r.category == ContentCategory.hate_speech)
        await s.update_rule(hate.id, {"active": False})
        return await s.submit(_text("I hate Mondays"))

    _, analyses, _ = _run(_service(), scenario)

    assert analyses[0].category == ContentCategory.hate_speech
    assert analyses[0].confidence == 75
    assert analyses[0].status == ContentStatus.approved
    assert analyses[0].flagged is False


def test_title_is_classified_with_body():
    item = ContentItem(id=1, content_id="n", type="news", content="Details inside", metadata={"title": "Free money"})
    assert build_text(item) == "Free money\nDetails inside"

    _, analyses, _ = _run(
        _service(),
        lambda s: s.submit(_text("Details inside", type="news", metadata={"title": "Free money"})),
    )
    assert analyses[0].category == ContentCategory.spam


def test_unsupported_type_is_stored_but_not_classified():
    _, analyses, stats = _run(_service(), lambda s: s.submit(_text("buy now", type="image")))

    assert analyses == []
    assert stats.total_content == 1
    assert stats.analyzed_content == 0


def test_invalid_submission_is_rejected():
    async def scenario(s):
        with pytest.raises(ValidationError):
            await s.submit(_text("   "))
        with pytest.raises(ValidationError):
            await s.submit(_text("x", type="podcast"))
        return await s.list_contents()

    contents, analyses, stats = _run(_service(), scenario)
    assert contents == []
    assert analyses == []
    assert stats.total_content == 0


def test_storage_failure_raises_and_publishes_nothing():
    async def scenario(s):
        with pytest.raises(StorageError):
            await s.submit(_text("hello"))
        return s.bus.history("content-analysis")

    published, _, _ = _run(_service(_ContentWriteFails()), scenario)
    assert published == []


def test_analysis_write_failure_leaves_item_unclassified():
    _, analyses, stats = _run(
        _service(_AnalysisWriteFails()), lambda s: s.submit(_text("buy now"))
    )
    assert analyses == []
    assert stats.total_content == 1
    assert stats.analyzed_content == 0


def test_failed_publish_can_be_retried():
    async def scenario(s):
        async def broken_publish(topic, message):
            raise RuntimeError("broker unavailable")

        s.bus.publish = broken_publish
        item = await s.submit(_text("buy now"))
        pending = s.ingestion.undelivered
        del s.bus.publish

        await s.drain()
        before = await s.storage.list_analyses()
        sent = await s.retry_undelivered()
        return item, pending, before, sent, s.ingestion.undelivered

    (item, pending, before, sent, remaining), analyses, _ = _run(_service(), scenario)
    assert pending == [item.id]
    assert before == []
    assert sent == 1
    assert remaining == []
    assert [a.content_id for a in analyses] == [item.id]


def test_retry_list_keeps_only_the_newest_ids(caplog):
    async def scenario(s):
        async def broken_publish(topic, message):
            raise RuntimeError("broker unavailable")

        s.bus.publish = broken_publish
        items = [await s.submit(_text(f"item {i}", f"c-{i}")) for i in range(4)]
        pending = s.ingestion.undelivered
        del s.bus.publish
        return items, pending

    (items, pending), _, _ = _run(_service(UNDELIVERED_LIMIT=2), scenario)
    assert pending == [items[2].id, items[3].id]
    assert any("Retry list full" in r.getMessage() for r in caplog.records)


def test_raw_messages_on_ingestion_topic_are_processed():
    async def scenario(s):
        await s.bus.publish(CONTENT_INGESTION_TOPIC, {
            "type": "text", "content": "limited time discount", "content_id": "raw-1",
        })
        await s.bus.publish(CONTENT_INGESTION_TOPIC, {"type": "text", "content": "no id"})
        await s.drain()
        return await s.list_contents()

    contents, analyses, _ = _run(_service(), scenario)
    assert [c.content_id for c in contents] == ["raw-1"]
    assert analyses[0].category == ContentCategory.spam


def test_items_are_classified_in_submission_order():
    texts = ["hello world", "buy now", "stop stalking me", "nude beach", "I hate Mondays"]

    async def scenario(s):
        for i, text in enumerate(texts):
            await s.submit(_text(text, f"c-{i}"))

    _, analyses, stats = _run(_service(), scenario)
    by_content = sorted(analyses, key=lambda a: a.id)
    assert [a.content_id for a in by_content] == [1, 2, 3, 4, 5]
    assert stats.total_content == 5
    assert stats.analyzed_content == 5
    assert stats.flagged_content == 4
