from .base import NewsProviderAdapter, NormalizedArticle, ProviderHttpClient
from .guardian import GuardianAdapter
from .newsapi import NewsApiAdapter
from .nytimes import NyTimesAdapter
from .registry import ProviderRegistry

__all__ = [
    "NewsProviderAdapter",
    "NormalizedArticle",
    "ProviderHttpClient",
    "GuardianAdapter",
    "NewsApiAdapter",
    "NyTimesAdapter",
    "ProviderRegistry",
]
