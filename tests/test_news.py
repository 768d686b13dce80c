"""Tests for the headline news fetcher."""

import asyncio

import httpx
import pytest

from contentguard.bus import CONTENT_INGESTION_TOPIC, MessageBus
from contentguard.models import ContentType
from contentguard.news import NewsArticle, NewsFetcher

FEED_URL = "https://news.test/top-headlines.json"

ARTICLES = [
    {
        "source": {"id": None, "name": "Tech Wire"},
        "author": "A. Writer",
        "title": "New chip announced",
        "url": "https://news.test/chip",
        "urlToImage": "https://news.test/chip.png",
        "publishedAt": "2024-05-01T10:00:00Z",
        "content": "The chip is faster.",
    },
    {"source": {"name": "Blog"}, "title": "", "content": "No title here"},
    {"source": {"name": "Blog"}, "title": "No body", "content": None},
    {"source": None, "title": "Second story", "content": "More text."},
]


def _fetcher(bus, payload, status_code=200):
    def handler(request):
        assert str(request.url) == FEED_URL
        return httpx.Response(status_code, json=payload)

    return NewsFetcher(bus, feed_url=FEED_URL, delay=0, transport=httpx.MockTransport(handler))


def test_article_to_submission():
    article = NewsArticle.from_api(ARTICLES[0])
    sub = article.to_submission()
    sub.validate()
    assert sub.type == ContentType.news
    assert sub.content == "The chip is faster."
    assert sub.source == "Tech Wire"
    assert sub.metadata == {
        "title": "New chip announced",
        "author": "A. Writer",
        "publishedAt": "2024-05-01T10:00:00Z",
        "url": "https://news.test/chip",
        "imageUrl": "https://news.test/chip.png",
    }
    assert sub.content_id != article.to_submission().content_id


def test_ingest_publishes_usable_articles():
    async def scenario():
        bus = MessageBus()
        received = []
        bus.subscribe(CONTENT_INGESTION_TOPIC, received.append)
        count = await _fetcher(bus, {"status": "ok", "articles": ARTICLES}).ingest()
        await bus.join()
        await bus.close()
        return count, received

    count, received = asyncio.run(scenario())
    assert count == 2
    assert [s.metadata["title"] for s in received] == ["New chip announced", "Second story"]
    assert received[1].source == ""


def test_feed_error_status_raises():
    async def scenario():
        bus = MessageBus()
        fetcher = _fetcher(bus, {"status": "error", "message": "rate limited"})
        try:
            await fetcher.ingest()
        finally:
            await bus.close()

    with pytest.raises(RuntimeError, match="error"):
        asyncio.run(scenario())


def test_http_failure_raises():
    async def scenario():
        bus = MessageBus()
        try:
            await _fetcher(bus, {}, status_code=503).fetch_articles()
        finally:
            await bus.close()

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(scenario())
