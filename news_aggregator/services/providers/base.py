"""
Shared pieces for the upstream news provider adapters.

Adapters are independent classes that compose these helpers:
ProviderHttpClient for fetching, map_category / in_vocabulary for
category lookup tables, and NormalizedArticle as the common output shape.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, runtime_checkable

import httpx
import structlog
from dateutil import parser as date_parser

from ...config import ProviderConfig
from ...exceptions import DateParseError, FetchError

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORY = "General"


@dataclass
class NormalizedArticle:
    """Provider-independent article record handed to storage."""
    title: str
    url: str
    external_id: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    author: Optional[str] = None
    published_at: Optional[str] = None
    category: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class NewsProviderAdapter(Protocol):
    name: str
    provider_id: str

    def fetch_articles(self, options: Optional[Dict[str, Any]] = None) -> List[NormalizedArticle]:
        ...

    def prepare_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def is_available(self) -> bool:
        ...


class ProviderHttpClient:
    """
    GET-with-params against one provider base URL.

    Transport failures and non-2xx responses are logged and turned into an
    empty payload; the failure stays readable on ``last_error`` so callers
    can report it without aborting a run.
    """

    def __init__(self, service_name: str, config: ProviderConfig, client: Optional[httpx.Client] = None):
        self.service_name = service_name
        self.base_url = config.base_url
        # Injected clients belong to the caller
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=config.timeout)
        self.last_error: Optional[FetchError] = None

    def get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self.last_error = None
        url = self.base_url + endpoint
        try:
            response = self.client.get(url, params=params or {})
        except httpx.HTTPError as e:
            logger.error(
                "API request exception",
                service=self.service_name,
                endpoint=endpoint,
                error=str(e),
            )
            self.last_error = FetchError(
                f"Request to {self.service_name} failed: {e}",
                error_code="FETCH_FAILED",
                details={"endpoint": endpoint},
            )
            return {}

        if not response.is_success:
            logger.error(
                "API request failed",
                service=self.service_name,
                status=response.status_code,
                endpoint=endpoint,
                body=response.text[:500],
            )
            self.last_error = FetchError(
                f"{self.service_name} responded with HTTP {response.status_code}",
                error_code="FETCH_FAILED",
                details={"endpoint": endpoint, "status": response.status_code},
            )
            return {}

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("API response was not JSON", service=self.service_name, endpoint=endpoint, error=str(e))
            self.last_error = FetchError(
                f"{self.service_name} returned an unreadable body",
                error_code="FETCH_FAILED",
                details={"endpoint": endpoint},
            )
            return {}

        return payload if isinstance(payload, dict) else {}

    def close(self) -> None:
        if self._owns_client:
            self.client.close()


def map_category(value: Optional[str], table: Mapping[str, str], default: str = DEFAULT_CATEGORY) -> str:
    if not value or not isinstance(value, str):
        return default
    return table.get(value, default)


def in_vocabulary(value: Optional[str], vocabulary: Iterable[str]) -> bool:
    return isinstance(value, str) and bool(value) and value in vocabulary


def as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def transform_items(
    service_name: str,
    items: Any,
    transform: Callable[[Dict[str, Any]], NormalizedArticle],
) -> List[NormalizedArticle]:
    """Normalize a raw result list, logging and skipping items that do not fit."""
    if not isinstance(items, list):
        return []

    articles = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object item in API response", service=service_name)
            continue
        try:
            articles.append(transform(item))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed item in API response", service=service_name, error=str(e))
    return articles


def join_list(value: Any) -> Any:
    if isinstance(value, (list, tuple, set)):
        return ",".join(str(item) for item in value)
    return value


def parse_published_at(value: Optional[str]) -> datetime:
    """
    Parse a provider timestamp into naive UTC.

    Raises DateParseError when the value is present but unreadable; absent
    values are the caller's business.
    """
    if not value:
        raise DateParseError("Missing publication date", error_code="DATE_MISSING")
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError, TypeError) as e:
        raise DateParseError(
            f"Failed to parse date: {value}",
            error_code="DATE_PARSE_FAILED",
            details={"value": value},
        ) from e

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
