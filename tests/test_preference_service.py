import pytest

from news_aggregator.exceptions import CategoryNotFoundError, NewsSourceNotFoundError, PreferenceValidationError
from news_aggregator.models.user_preference import UserPreference
from news_aggregator.schemas.requests import UserPreferenceUpdate
from news_aggregator.services.preference_service import PreferenceService


@pytest.fixture
def service(test_db):
    return PreferenceService(test_db)


def test_first_read_creates_defaults(service, test_db):
    preference = service.get("user-1")

    assert preference.id is not None
    assert preference.preferred_sources == []
    assert preference.preferred_categories == []
    assert preference.preferred_authors == []
    assert preference.language == UserPreference.DEFAULT_LANGUAGE
    assert preference.country == UserPreference.DEFAULT_COUNTRY
    assert preference.articles_per_page == 20
    assert preference.refresh_interval == 300
    assert preference.show_images is True
    assert preference.auto_refresh is False

    service.get("user-1")
    assert test_db.query(UserPreference).count() == 1


def test_update_changes_only_given_fields(service, source_factory):
    source = source_factory()

    updated = service.update("user-1", UserPreferenceUpdate(articles_per_page=50, preferred_sources=[source.id, source.id]))

    assert updated.articles_per_page == 50
    assert updated.preferred_sources == [source.id]
    assert updated.language == "en"
    assert updated.refresh_interval == 300


def test_update_strips_and_dedupes_authors(service):
    updated = service.update("user-1", UserPreferenceUpdate(preferred_authors=[" Jane ", "Jane", "", "Bob"]))

    assert updated.preferred_authors == ["Jane", "Bob"]


@pytest.mark.parametrize("field,value", [
    ("articles_per_page", 0),
    ("articles_per_page", 101),
    ("refresh_interval", 59),
    ("refresh_interval", 3601),
])
def test_update_rejects_out_of_range(service, field, value):
    with pytest.raises(PreferenceValidationError) as exc_info:
        service.update("user-1", UserPreferenceUpdate(**{field: value}))

    assert exc_info.value.details["field"] == field


def test_update_accepts_range_bounds(service):
    updated = service.update("user-1", UserPreferenceUpdate(articles_per_page=100, refresh_interval=60))

    assert updated.articles_per_page == 100
    assert updated.refresh_interval == 60


def test_update_rejects_unknown_ids(service):
    with pytest.raises(NewsSourceNotFoundError):
        service.update("user-1", UserPreferenceUpdate(preferred_sources=[404]))
    with pytest.raises(CategoryNotFoundError):
        service.update("user-1", UserPreferenceUpdate(preferred_categories=[404]))


def test_add_and_remove_sources_are_idempotent(service, source_factory):
    first = source_factory("newsapi", "newsapi")
    second = source_factory("guardian", "guardian")

    service.add_sources("user-1", [first.id])
    service.add_sources("user-1", [first.id, second.id])
    assert service.get("user-1").preferred_sources == [first.id, second.id]

    service.remove_sources("user-1", [first.id])
    service.remove_sources("user-1", [first.id])
    assert service.get("user-1").preferred_sources == [second.id]


def test_add_unknown_source_fails_without_changes(service, source_factory):
    source = source_factory()
    service.add_sources("user-1", [source.id])

    with pytest.raises(NewsSourceNotFoundError):
        service.add_sources("user-1", [source.id, 999])

    assert service.get("user-1").preferred_sources == [source.id]


def test_categories_and_authors(service, category_factory):
    tech = category_factory("Technology")

    service.add_categories("user-1", [tech.id, tech.id])
    service.add_authors("user-1", ["Jane Doe", "Jane Doe"])
    preference = service.get("user-1")
    assert preference.preferred_categories == [tech.id]
    assert preference.preferred_authors == ["Jane Doe"]

    with pytest.raises(CategoryNotFoundError):
        service.add_categories("user-1", [999])

    service.remove_categories("user-1", [tech.id])
    service.remove_authors("user-1", ["Jane Doe", "Nobody"])
    preference = service.get("user-1")
    assert preference.preferred_categories == []
    assert preference.preferred_authors == []


def test_users_are_isolated(service, source_factory):
    source = source_factory()

    service.add_sources("user-1", [source.id])

    assert service.get("user-2").preferred_sources == []
