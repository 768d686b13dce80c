"""Fetch headline articles and feed them into the ingestion topic.

The default feed is a public NewsAPI mirror that needs no key.  Articles
without a title or body are skipped.  Each remaining article becomes a
``news`` submission with a fresh content id.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from contentguard.bus.broker import MessageBus
from contentguard.bus.topics import CONTENT_INGESTION_TOPIC
from contentguard.config import DEFAULT_NEWS_FEED_URL
from contentguard.models import ContentSubmission, ContentType

log = logging.getLogger(__name__)


@dataclass
class NewsArticle:
    """The subset of a NewsAPI article we ingest."""

    title: str
    content: str
    source: str = ""
    author: Optional[str] = None
    published_at: str = ""
    url: str = ""
    image_url: Optional[str] = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> NewsArticle:
        return cls(
            title=raw.get("title") or "",
            content=raw.get("content") or "",
            source=(raw.get("source") or {}).get("name") or "",
            author=raw.get("author"),
            published_at=raw.get("publishedAt") or "",
            url=raw.get("url") or "",
            image_url=raw.get("urlToImage"),
        )

    def to_submission(self) -> ContentSubmission:
        return ContentSubmission(
            type=ContentType.news,
            content=self.content,
            content_id=str(uuid.uuid4()),
            source=self.source,
            metadata={
                "title": self.title,
                "author": self.author,
                "publishedAt": self.published_at,
                "url": self.url,
                "imageUrl": self.image_url,
            },
        )


class NewsFetcher:
    """Pulls a headline feed and publishes each article for ingestion."""

    def __init__(
        self,
        bus: MessageBus,
        feed_url: str = DEFAULT_NEWS_FEED_URL,
        delay: float = 1.0,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._bus = bus
        self._feed_url = feed_url
        self._delay = delay
        self._timeout = timeout
        self._transport = transport

    async def fetch_articles(self) -> list[NewsArticle]:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.get(self._feed_url)
            response.raise_for_status()
            payload = response.json()
        if payload.get("status") != "ok":
            raise RuntimeError(f"News feed returned status {payload.get('status')!r}")
        return [NewsArticle.from_api(a) for a in payload.get("articles") or []]

    async def ingest(self) -> int:
        """Publish every usable article. Returns the number published."""
        articles = await self.fetch_articles()
        log.info("Fetched %d news articles", len(articles))

        published = 0
        for article in articles:
            if not article.title or not article.content:
                continue
            await self._bus.publish(CONTENT_INGESTION_TOPIC, article.to_submission())
            published += 1
            log.info("Queued article: %s", article.title)
            if self._delay:
                await asyncio.sleep(self._delay)
        return published
