import random
from typing import Any, Dict, List, Optional

import httpx

from ...config import ProviderConfig
from ...models.news_source import NewsSource
from .base import NormalizedArticle, ProviderHttpClient, as_dict, join_list, map_category, transform_items

SOURCE_CATEGORIES = {
    "BBC News": "General",
    "CNN": "General",
    "Reuters": "General",
    "Associated Press": "General",
    "The Guardian": "General",
    "The New York Times": "General",
    "TechCrunch": "Technology",
    "Wired": "Technology",
    "Ars Technica": "Technology",
    "ESPN": "Sports",
    "BBC Sport": "Sports",
    "Bloomberg": "Business",
    "Financial Times": "Business",
    "Forbes": "Business",
}

# The everything endpoint rejects requests without a query
DEFAULT_TOPICS = ["technology", "business", "sports", "health", "science", "politics"]


class NewsApiAdapter:
    name = "NewsAPI"
    provider_id = "newsapi"

    def __init__(self, source: NewsSource, config: ProviderConfig, http_client: Optional[httpx.Client] = None):
        self.source = source
        self.config = config
        self.http = ProviderHttpClient(self.name, config, http_client)

    @property
    def last_error(self):
        return self.http.last_error

    def close(self) -> None:
        self.http.close()

    def is_available(self) -> bool:
        return bool(self.config.api_key) and bool(self.config.base_url)

    def prepare_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        prepared = dict(options)
        if not prepared.get("q"):
            prepared["q"] = random.choice(DEFAULT_TOPICS)
        prepared["pageSize"] = prepared.get("limit") or 50
        return prepared

    def fetch_articles(self, options: Optional[Dict[str, Any]] = None) -> List[NormalizedArticle]:
        options = options or {}
        params = {
            "apiKey": self.config.api_key,
            "q": options.get("q") or "news",
            "pageSize": options.get("pageSize", 100),
            "sortBy": options.get("sortBy", "publishedAt"),
            "language": options.get("language", "en"),
        }
        for key in ("category", "country", "sources", "domains"):
            if options.get(key) is not None:
                params[key] = join_list(options[key])

        payload = self.http.get_json("everything", params)
        return transform_items(self.name, payload.get("articles"), self.transform)

    def transform(self, item: Dict[str, Any]) -> NormalizedArticle:
        source = as_dict(item.get("source"))
        return NormalizedArticle(
            external_id=item.get("url"),
            title=item.get("title") or "",
            description=item.get("description"),
            content=item.get("content"),
            url=item.get("url") or "",
            image_url=item.get("urlToImage"),
            author=item.get("author"),
            published_at=item.get("publishedAt"),
            category=map_category(source.get("name"), SOURCE_CATEGORIES),
            metadata={
                "source_name": source.get("name"),
                "source_id": source.get("id"),
            },
        )
