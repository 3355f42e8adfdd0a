from typing import Iterable, List

import structlog
from sqlalchemy.orm import Session

from ..exceptions import CategoryNotFoundError, NewsSourceNotFoundError, PreferenceValidationError
from ..models.user_preference import UserPreference
from ..repositories.category_repository import CategoryRepository
from ..repositories.news_source_repository import NewsSourceRepository
from ..repositories.user_preference_repository import UserPreferenceRepository
from ..schemas.requests import UserPreferenceUpdate

logger = structlog.get_logger(__name__)


def _union(current: Iterable, additions: Iterable) -> List:
    merged = list(current or [])
    for item in additions:
        if item not in merged:
            merged.append(item)
    return merged


def _difference(current: Iterable, removals: Iterable) -> List:
    removals = set(removals)
    return [item for item in (current or []) if item not in removals]


class PreferenceService:
    """
    Per-user preferences. The record is created with defaults on first
    access; list preferences behave as sets, so adds and removes are idempotent.
    """

    def __init__(self, db: Session):
        self.db = db
        self.preferences = UserPreferenceRepository(db)
        self.sources = NewsSourceRepository(db)
        self.categories = CategoryRepository(db)

    def get(self, user_id: str) -> UserPreference:
        return self.preferences.get_or_create(user_id)

    def update(self, user_id: str, update: UserPreferenceUpdate) -> UserPreference:
        preference = self.get(user_id)
        changes = update.model_dump(exclude_unset=True)

        if changes.get("articles_per_page") is not None:
            self._check_range(
                "articles_per_page",
                changes["articles_per_page"],
                UserPreference.MIN_ARTICLES_PER_PAGE,
                UserPreference.MAX_ARTICLES_PER_PAGE,
            )
        if changes.get("refresh_interval") is not None:
            self._check_range(
                "refresh_interval",
                changes["refresh_interval"],
                UserPreference.MIN_REFRESH_INTERVAL,
                UserPreference.MAX_REFRESH_INTERVAL,
            )
        if changes.get("preferred_sources") is not None:
            self._require_sources(changes["preferred_sources"])
            changes["preferred_sources"] = _union([], changes["preferred_sources"])
        if changes.get("preferred_categories") is not None:
            self._require_categories(changes["preferred_categories"])
            changes["preferred_categories"] = _union([], changes["preferred_categories"])
        if changes.get("preferred_authors") is not None:
            authors = [a.strip() for a in changes["preferred_authors"] if a and a.strip()]
            if any(len(a) > 255 for a in authors):
                raise PreferenceValidationError(
                    "Author names are limited to 255 characters",
                    error_code="INVALID_PREFERENCE",
                    details={"field": "preferred_authors"},
                )
            changes["preferred_authors"] = _union([], authors)

        for field, value in changes.items():
            # Explicit nulls leave the stored value alone
            if value is not None:
                setattr(preference, field, value)

        logger.info("Updated user preferences", user_id=user_id, fields=sorted(changes))
        return self.preferences.save(preference)

    def add_sources(self, user_id: str, source_ids: Iterable[int]) -> UserPreference:
        source_ids = list(source_ids)
        self._require_sources(source_ids)
        preference = self.get(user_id)
        preference.preferred_sources = _union(preference.preferred_sources, source_ids)
        return self.preferences.save(preference)

    def remove_sources(self, user_id: str, source_ids: Iterable[int]) -> UserPreference:
        preference = self.get(user_id)
        preference.preferred_sources = _difference(preference.preferred_sources, source_ids)
        return self.preferences.save(preference)

    def add_categories(self, user_id: str, category_ids: Iterable[int]) -> UserPreference:
        category_ids = list(category_ids)
        self._require_categories(category_ids)
        preference = self.get(user_id)
        preference.preferred_categories = _union(preference.preferred_categories, category_ids)
        return self.preferences.save(preference)

    def remove_categories(self, user_id: str, category_ids: Iterable[int]) -> UserPreference:
        preference = self.get(user_id)
        preference.preferred_categories = _difference(preference.preferred_categories, category_ids)
        return self.preferences.save(preference)

    def add_authors(self, user_id: str, authors: Iterable[str]) -> UserPreference:
        preference = self.get(user_id)
        preference.preferred_authors = _union(preference.preferred_authors, authors)
        return self.preferences.save(preference)

    def remove_authors(self, user_id: str, authors: Iterable[str]) -> UserPreference:
        preference = self.get(user_id)
        preference.preferred_authors = _difference(preference.preferred_authors, authors)
        return self.preferences.save(preference)

    def _require_sources(self, source_ids: Iterable[int]) -> None:
        for source_id in source_ids:
            if not self.sources.exists(source_id):
                raise NewsSourceNotFoundError(source_id)

    def _require_categories(self, category_ids: Iterable[int]) -> None:
        for category_id in category_ids:
            if not self.categories.exists(category_id):
                raise CategoryNotFoundError(category_id)

    @staticmethod
    def _check_range(field: str, value: int, minimum: int, maximum: int) -> None:
        if not minimum <= value <= maximum:
            raise PreferenceValidationError(
                f"{field} must be between {minimum} and {maximum}",
                error_code="INVALID_PREFERENCE",
                details={"field": field, "value": value, "min": minimum, "max": maximum},
            )
