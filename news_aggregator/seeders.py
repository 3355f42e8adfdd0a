"""Default news sources and category palette. Safe to run repeatedly."""

from typing import Dict, List

import structlog
from sqlalchemy.orm import Session

from .models.news_source import ApiProvider
from .repositories.category_repository import CategoryRepository
from .repositories.news_source_repository import NewsSourceRepository

logger = structlog.get_logger(__name__)

DEFAULT_SOURCES: List[Dict] = [
    {
        "name": "NewsAPI",
        "slug": "newsapi",
        "api_provider": ApiProvider.NEWSAPI.value,
        "api_endpoint": "everything",
        "api_config": {
            "categories": ["business", "entertainment", "general", "health", "science", "sports", "technology"],
            "countries": ["us", "gb", "ca", "au"],
            "languages": ["en"],
        },
        "is_active": True,
        "priority": 100,
        "description": "Comprehensive news API with access to over 70,000 news sources",
        "logo_url": "https://newsapi.org/images/logo.png",
        "website_url": "https://newsapi.org",
    },
    {
        "name": "The Guardian",
        "slug": "guardian",
        "api_provider": ApiProvider.GUARDIAN.value,
        "api_endpoint": "search",
        "api_config": {
            "sections": ["world", "uk-news", "us-news", "sport", "technology", "business", "science", "culture"],
            "order_by": "newest",
        },
        "is_active": True,
        "priority": 90,
        "description": "The Guardian newspaper API providing high-quality journalism",
        "logo_url": "https://assets.guim.co.uk/images/guardian-logo-rss.png",
        "website_url": "https://www.theguardian.com",
    },
    {
        "name": "New York Times",
        "slug": "nytimes",
        "api_provider": ApiProvider.NYTIMES.value,
        "api_endpoint": "search/v2/articlesearch.json",
        "api_config": {
            "sections": ["World", "U.S.", "Politics", "Business", "Technology", "Science", "Health", "Sports", "Arts"],
            "sort": "newest",
        },
        "is_active": True,
        "priority": 80,
        "description": "The New York Times API for premium news content",
        "logo_url": "https://static01.nyt.com/images/misc/nytlogo379x64.gif",
        "website_url": "https://www.nytimes.com",
    },
]

DEFAULT_CATEGORIES: List[Dict] = [
    {"name": "General", "slug": "general", "description": "General news and current events", "color": "#3B82F6"},
    {"name": "Technology", "slug": "technology", "description": "Technology news, gadgets, and innovation", "color": "#10B981"},
    {"name": "Business", "slug": "business", "description": "Business news, finance, and economy", "color": "#F59E0B"},
    {"name": "Sports", "slug": "sports", "description": "Sports news, scores, and updates", "color": "#EF4444"},
    {"name": "Health", "slug": "health", "description": "Health news, medical research, and wellness", "color": "#8B5CF6"},
    {"name": "Science", "slug": "science", "description": "Scientific discoveries and research", "color": "#06B6D4"},
    {"name": "Politics", "slug": "politics", "description": "Political news and government updates", "color": "#84CC16"},
    {"name": "World", "slug": "world", "description": "International news and global events", "color": "#F97316"},
    {"name": "Culture", "slug": "culture", "description": "Arts, entertainment, and cultural news", "color": "#EC4899"},
    {"name": "Lifestyle", "slug": "lifestyle", "description": "Lifestyle, fashion, and personal interest stories", "color": "#14B8A6"},
]


def seed_sources(db: Session) -> int:
    repo = NewsSourceRepository(db)
    for source in DEFAULT_SOURCES:
        fields = {key: value for key, value in source.items() if key != "slug"}
        repo.upsert_by_slug(source["slug"], **fields)
    logger.info("Seeded news sources", count=len(DEFAULT_SOURCES))
    return len(DEFAULT_SOURCES)


def seed_categories(db: Session) -> int:
    repo = CategoryRepository(db)
    for category in DEFAULT_CATEGORIES:
        fields = {key: value for key, value in category.items() if key != "slug"}
        repo.upsert_by_slug(category["slug"], is_active=True, **fields)
    logger.info("Seeded categories", count=len(DEFAULT_CATEGORIES))
    return len(DEFAULT_CATEGORIES)


def seed_all(db: Session) -> Dict[str, int]:
    return {"sources": seed_sources(db), "categories": seed_categories(db)}
