from typing import Any, Dict, List, Optional

import httpx

from ...config import ProviderConfig
from ...models.news_source import NewsSource
from .base import (
    DEFAULT_CATEGORY,
    NormalizedArticle,
    ProviderHttpClient,
    as_dict,
    in_vocabulary,
    map_category,
    transform_items,
)

SECTION_CATEGORIES = {
    "Sports": "Sports",
    "Technology": "Technology",
    "Business": "Business",
    "Politics": "Politics",
    "World": "World",
    "Science": "Science",
    "Health": "Health",
    "Arts": "Culture",
    "Style": "Lifestyle",
    "Food": "Food",
    "Travel": "Travel",
    "Real Estate": "Real Estate",
    "Education": "Education",
    "Opinion": "Opinion",
    "U.S.": "US News",
    "New York": "Local News",
}

CATEGORY_KEYWORDS = {
    "Technology", "Sports", "Business", "Politics", "World",
    "Science", "Health", "Culture", "Lifestyle", "Food",
    "Travel", "Education", "Opinion", "US News", "Local News",
}

IMAGE_HOST = "https://www.nytimes.com/"


class NyTimesAdapter:
    name = "New York Times"
    provider_id = "nytimes"

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
        prepared["page"] = 0
        return prepared

    def fetch_articles(self, options: Optional[Dict[str, Any]] = None) -> List[NormalizedArticle]:
        options = options or {}
        params = {"api-key": self.config.api_key}
        optional = {"q": "q", "beginDate": "begin_date", "endDate": "end_date", "sort": "sort", "page": "page"}
        for option_key, param_key in optional.items():
            if options.get(option_key) is not None:
                params[param_key] = options[option_key]

        payload = self.http.get_json("search/v2/articlesearch.json", params)
        docs = as_dict(payload.get("response")).get("docs")
        return transform_items(self.name, docs, self.transform)

    def transform(self, item: Dict[str, Any]) -> NormalizedArticle:
        headline = as_dict(item.get("headline"))
        multimedia = item.get("multimedia") or []
        byline = as_dict(item.get("byline"))
        raw_keywords = item.get("keywords")
        keywords = [k for k in raw_keywords if isinstance(k, dict)] if isinstance(raw_keywords, list) else []
        return NormalizedArticle(
            external_id=item.get("_id"),
            title=headline.get("main") or headline.get("print_headline") or "",
            description=item.get("abstract"),
            content=item.get("lead_paragraph"),
            url=item.get("web_url") or "",
            image_url=self.image_url(multimedia),
            author=byline.get("original"),
            published_at=item.get("pub_date"),
            category=self.extract_category(item, keywords),
            metadata={
                "section": item.get("section_name"),
                "subsection": item.get("subsection_name"),
                "document_type": item.get("document_type"),
                "type_of_material": item.get("type_of_material"),
                "word_count": item.get("word_count"),
                "keywords": keywords,
                "multimedia": multimedia,
            },
        )

    @staticmethod
    def image_url(multimedia: Any) -> Optional[str]:
        """Widest image wins; relative paths are served from nytimes.com."""
        if not isinstance(multimedia, list):
            return None

        widest = None
        max_width = 0
        for media in multimedia:
            if not isinstance(media, dict):
                continue
            try:
                width = int(media.get("width") or 0)
            except (TypeError, ValueError):
                continue
            if width > max_width:
                max_width = width
                widest = media

        if not widest or not isinstance(widest.get("url"), str) or not widest["url"]:
            return None
        url = widest["url"]
        if url.startswith("http://") or url.startswith("https://"):
            return url
        return IMAGE_HOST + url.lstrip("/")

    def extract_category(self, item: Dict[str, Any], keywords: List[Dict[str, Any]]) -> str:
        section = item.get("section_name")
        if section:
            return map_category(section, SECTION_CATEGORIES)

        for keyword in keywords:
            if keyword.get("name") == "subject" and in_vocabulary(keyword.get("value"), CATEGORY_KEYWORDS):
                return keyword["value"]

        return DEFAULT_CATEGORY
