from typing import Optional, Dict, Any


class NewsAggregatorError(Exception):
    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class ProviderError(NewsAggregatorError):
    pass


class UnknownProviderError(ProviderError):
    def __init__(self, provider: str):
        super().__init__(
            message=f"Unknown news service provider: {provider}",
            error_code="UNKNOWN_PROVIDER",
            details={"provider": provider}
        )


class ProviderUnavailableError(ProviderError):
    def __init__(self, provider: str):
        super().__init__(
            message=f"News provider {provider} is missing its credential or base URL",
            error_code="PROVIDER_UNAVAILABLE",
            details={"provider": provider}
        )


class FetchError(ProviderError):
    pass


class SourceAggregationError(NewsAggregatorError):
    pass


class ArticleDataError(NewsAggregatorError):
    pass


class InvalidArticleDataError(ArticleDataError):
    pass


class DuplicateArticleError(ArticleDataError):
    def __init__(self, url: str):
        super().__init__(
            message=f"Article already exists: {url}",
            error_code="DUPLICATE_ARTICLE",
            details={"url": url}
        )


class DateParseError(ArticleDataError):
    pass


class CacheBackendError(NewsAggregatorError):
    pass


class NotFoundError(NewsAggregatorError):
    resource = "Resource"

    def __init__(self, resource_id: Any):
        super().__init__(
            message=f"{self.resource} not found",
            error_code=f"{self.resource.upper().replace(' ', '_')}_NOT_FOUND",
            details={"id": resource_id}
        )


class ArticleNotFoundError(NotFoundError):
    resource = "Article"


class CategoryNotFoundError(NotFoundError):
    resource = "Category"


class NewsSourceNotFoundError(NotFoundError):
    resource = "News source"


class PreferenceValidationError(NewsAggregatorError):
    pass
