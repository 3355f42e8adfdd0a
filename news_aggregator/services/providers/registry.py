from typing import Callable, Dict, List, Optional

import httpx
import structlog

from ...config import Settings, get_settings
from ...exceptions import UnknownProviderError
from ...models.news_source import ApiProvider, NewsSource
from .base import NewsProviderAdapter
from .guardian import GuardianAdapter
from .newsapi import NewsApiAdapter
from .nytimes import NyTimesAdapter

logger = structlog.get_logger(__name__)

AdapterFactory = Callable[[NewsSource], NewsProviderAdapter]


class ProviderRegistry:
    """Maps a source's api_provider id to the adapter that talks to it."""

    def __init__(self, settings: Optional[Settings] = None, http_client: Optional[httpx.Client] = None):
        self.settings = settings or get_settings()
        self.http_client = http_client
        self._factories: Dict[str, AdapterFactory] = {
            ApiProvider.NEWSAPI.value: self._builder(NewsApiAdapter),
            ApiProvider.GUARDIAN.value: self._builder(GuardianAdapter),
            ApiProvider.NYTIMES.value: self._builder(NyTimesAdapter),
        }

    def _builder(self, adapter_class) -> AdapterFactory:
        def build(source: NewsSource) -> NewsProviderAdapter:
            config = self.settings.provider_config(adapter_class.provider_id)
            return adapter_class(source, config, http_client=self.http_client)
        return build

    def register(self, provider_id: str, factory: AdapterFactory) -> None:
        self._factories[provider_id] = factory

    def factory_for(self, provider_id: str) -> AdapterFactory:
        factory = self._factories.get(provider_id)
        if factory is None:
            raise UnknownProviderError(provider_id)
        return factory

    def create(self, source: NewsSource) -> Optional[NewsProviderAdapter]:
        provider = source.api_provider
        try:
            factory = self.factory_for(provider)
        except UnknownProviderError as e:
            logger.error(e.message, news_source_id=source.id, provider=provider)
            return None

        try:
            return factory(source)
        except Exception as e:
            logger.error(
                "Failed to create news service for provider",
                provider=provider,
                news_source_id=source.id,
                error=str(e),
            )
            return None

    def available_providers(self) -> List[str]:
        return list(self._factories.keys())

    def is_supported(self, provider_id: str) -> bool:
        return provider_id in self._factories

    def log_missing_credentials(self) -> None:
        for provider in self.available_providers():
            config = self.settings.provider_config(provider)
            if config is not None and not config.api_key:
                logger.warning("News provider has no API key configured", provider=provider)
