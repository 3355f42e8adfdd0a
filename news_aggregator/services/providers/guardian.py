from typing import Any, Dict, List, Optional

import httpx

from ...config import ProviderConfig
from ...models.news_source import NewsSource
from .base import (
    DEFAULT_CATEGORY,
    NormalizedArticle,
    ProviderHttpClient,
    as_dict,
    as_text,
    in_vocabulary,
    map_category,
    transform_items,
)

SECTION_CATEGORIES = {
    "sport": "Sports",
    "technology": "Technology",
    "business": "Business",
    "politics": "Politics",
    "world": "World",
    "uk-news": "UK News",
    "us-news": "US News",
    "science": "Science",
    "environment": "Environment",
    "culture": "Culture",
    "lifeandstyle": "Lifestyle",
    "fashion": "Fashion",
    "food": "Food",
    "travel": "Travel",
    "money": "Finance",
    "media": "Media",
    "education": "Education",
    "health": "Health",
}

PILLAR_CATEGORIES = {
    "news": "General",
    "opinion": "Opinion",
    "sport": "Sports",
    "arts": "Culture",
    "lifestyle": "Lifestyle",
}

CATEGORY_TAGS = {
    "Technology", "Sports", "Business", "Politics", "World",
    "Science", "Environment", "Culture", "Lifestyle", "Health",
    "Education", "Finance", "Media", "Food", "Travel", "Fashion",
}

SHOW_FIELDS = "headline,trailText,body,thumbnail,byline,publication"


class GuardianAdapter:
    name = "The Guardian"
    provider_id = "guardian"

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
        prepared["pageSize"] = prepared.get("limit") or 50
        return prepared

    def fetch_articles(self, options: Optional[Dict[str, Any]] = None) -> List[NormalizedArticle]:
        options = options or {}
        params = {
            "api-key": self.config.api_key,
            "page-size": options.get("pageSize", 50),
            "order-by": options.get("orderBy", "newest"),
            "show-fields": SHOW_FIELDS,
            "show-tags": "all",
        }
        optional = {"section": "section", "q": "q", "fromDate": "from-date", "toDate": "to-date"}
        for option_key, param_key in optional.items():
            if options.get(option_key) is not None:
                params[param_key] = options[option_key]

        payload = self.http.get_json("search", params)
        results = as_dict(payload.get("response")).get("results")
        return transform_items(self.name, results, self.transform)

    def transform(self, item: Dict[str, Any]) -> NormalizedArticle:
        fields = as_dict(item.get("fields"))
        raw_tags = item.get("tags")
        tags = [tag for tag in raw_tags if isinstance(tag, dict)] if isinstance(raw_tags, list) else []
        return NormalizedArticle(
            external_id=item.get("id"),
            title=fields.get("headline") or item.get("webTitle") or "",
            description=fields.get("trailText"),
            content=fields.get("body"),
            url=item.get("webUrl") or "",
            image_url=fields.get("thumbnail"),
            author=fields.get("byline") or self._author_from_tags(tags),
            published_at=item.get("webPublicationDate"),
            category=self.extract_category(item, tags),
            metadata={
                "section_id": item.get("sectionId"),
                "section_name": item.get("sectionName"),
                "pillar_id": item.get("pillarId"),
                "pillar_name": item.get("pillarName"),
                "tags": tags,
            },
        )

    def extract_category(self, item: Dict[str, Any], tags: List[Dict[str, Any]]) -> str:
        # Section table is keyed by section id ("uk-news"); sectionName is the display form
        section = as_text(item.get("sectionName"))
        if section:
            section_key = as_text(item.get("sectionId")) or section.lower().replace(" ", "-")
            return map_category(section_key, SECTION_CATEGORIES)

        pillar = as_text(item.get("pillarName"))
        if pillar:
            return map_category(pillar.lower(), PILLAR_CATEGORIES)

        for tag in tags:
            if tag.get("type") == "keyword" and in_vocabulary(tag.get("webTitle"), CATEGORY_TAGS):
                return tag["webTitle"]

        return DEFAULT_CATEGORY

    @staticmethod
    def _author_from_tags(tags: List[Dict[str, Any]]) -> Optional[str]:
        for tag in tags:
            if tag.get("type") == "contributor":
                return tag.get("webTitle")
        return None
