from datetime import datetime
from typing import Any, Dict, List, Optional

from news_aggregator.services.providers.base import NormalizedArticle


FROZEN_NOW = datetime(2024, 3, 13, 12, 0, 0)  # a Wednesday


class FakeTimer:
    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class StubAdapter:
    """Adapter double returning canned articles, or raising on fetch."""

    def __init__(
        self,
        name: str = "Stub",
        provider_id: str = "newsapi",
        articles: Optional[List[NormalizedArticle]] = None,
        available: bool = True,
        error: Optional[Exception] = None,
    ):
        self.name = name
        self.provider_id = provider_id
        self.articles = articles or []
        self.available = available
        self.error = error
        self.last_error = None
        self.received_options: Optional[Dict[str, Any]] = None
        self.closed = False

    def is_available(self) -> bool:
        return self.available

    def prepare_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        prepared = dict(options)
        prepared["prepared"] = True
        return prepared

    def close(self) -> None:
        self.closed = True

    def fetch_articles(self, options: Optional[Dict[str, Any]] = None) -> List[NormalizedArticle]:
        self.received_options = options
        if self.error is not None:
            raise self.error
        return list(self.articles)


def make_article(url: str, title: str = "Headline", **overrides) -> NormalizedArticle:
    data = {
        "title": title,
        "url": url,
        "description": "Description",
        "content": "Body text",
        "author": "Jane Doe",
        "published_at": "2024-03-12T08:00:00Z",
        "category": "Technology",
        "metadata": {"source_name": "Stub"},
    }
    data.update(overrides)
    return NormalizedArticle(**data)
