"""News feed ingestion."""

from contentguard.news.fetcher import NewsArticle, NewsFetcher

__all__ = ["NewsArticle", "NewsFetcher"]
