import pytest
from datetime import datetime
from unittest.mock import MagicMock

from news_aggregator.exceptions import ProviderUnavailableError, UnknownProviderError
from news_aggregator.models.article import Article, external_id_for_url
from news_aggregator.models.category import Category
from news_aggregator.services.aggregator_service import AggregatorService
from news_aggregator.services.article_cache_service import ArticleCacheService

from helpers import FROZEN_NOW, StubAdapter, make_article


@pytest.fixture
def cache_service(test_db, memory_cache, test_settings, frozen_clock):
    return ArticleCacheService(test_db, backend=memory_cache, settings=test_settings, clock=frozen_clock)


@pytest.fixture
def aggregator(test_db, stub_registry, cache_service, frozen_clock, test_settings):
    return AggregatorService(
        test_db,
        registry=stub_registry,
        cache=cache_service,
        clock=frozen_clock,
        settings=test_settings,
    )


def test_aggregate_stores_articles_and_reports(aggregator, stub_registry, source_factory, test_db):
    source = source_factory("newsapi", "newsapi", name="NewsAPI")
    stub_registry.adapters["newsapi"] = StubAdapter(articles=[
        make_article("https://example.com/a"),
        make_article("https://example.com/b", category="Sports"),
    ])

    report = aggregator.aggregate_news()

    assert set(report) == {"NewsAPI"}
    assert report["NewsAPI"].status == "success"
    assert report["NewsAPI"].fetched == 2
    assert report["NewsAPI"].stored == 2

    stored = test_db.query(Article).order_by(Article.url).all()
    assert [a.url for a in stored] == ["https://example.com/a", "https://example.com/b"]
    assert all(a.news_source_id == source.id for a in stored)
    assert stored[0].published_at == datetime(2024, 3, 12, 8, 0, 0)
    assert stored[0].created_at == FROZEN_NOW
    assert stored[0].view_count == 0
    assert stored[0].is_featured is False
    assert {c.slug for c in test_db.query(Category).all()} == {"technology", "sports"}


def test_second_run_is_idempotent(aggregator, stub_registry, source_factory, test_db):
    source_factory("newsapi", "newsapi", name="NewsAPI")
    stub_registry.adapters["newsapi"] = StubAdapter(articles=[make_article("https://example.com/a")])

    first = aggregator.aggregate_news()
    second = aggregator.aggregate_news()

    assert first["NewsAPI"].stored == 1
    assert second["NewsAPI"].fetched == 1
    assert second["NewsAPI"].stored == 0
    assert test_db.query(Article).count() == 1


def test_same_batch_duplicate_stored_once(aggregator, stub_registry, source_factory, test_db):
    source_factory("newsapi", "newsapi", name="NewsAPI")
    stub_registry.adapters["newsapi"] = StubAdapter(articles=[
        make_article("https://example.com/same", title="First"),
        make_article("https://example.com/same", title="Second"),
    ])

    report = aggregator.aggregate_news()

    assert report["NewsAPI"].fetched == 2
    assert report["NewsAPI"].stored == 1
    article = test_db.query(Article).one()
    assert article.title == "First"


def test_failing_source_does_not_stop_others(aggregator, stub_registry, source_factory, test_db):
    source_factory("newsapi", "newsapi", name="NewsAPI", priority=100)
    source_factory("guardian", "guardian", name="The Guardian", priority=90)
    stub_registry.adapters["newsapi"] = StubAdapter(error=RuntimeError("upstream exploded"))
    stub_registry.adapters["guardian"] = StubAdapter(provider_id="guardian", articles=[make_article("https://g.com/1")])

    report = aggregator.aggregate_news()

    assert report["NewsAPI"].status == "error"
    assert report["NewsAPI"].fetched == 0
    assert report["NewsAPI"].stored == 0
    assert "upstream exploded" in report["NewsAPI"].error
    assert report["The Guardian"].status == "success"
    assert report["The Guardian"].stored == 1
    assert test_db.query(Article).count() == 1


def test_unavailable_and_unknown_sources_are_skipped(aggregator, stub_registry, source_factory):
    source_factory("newsapi", "newsapi", name="NewsAPI")
    source_factory("nytimes", "nytimes", name="New York Times")
    stub_registry.adapters["newsapi"] = StubAdapter(available=False)
    # nytimes has no adapter registered in the stub

    assert aggregator.aggregate_news() == {}


def test_inactive_sources_are_ignored(aggregator, stub_registry, source_factory):
    source_factory("newsapi", "newsapi", name="NewsAPI", is_active=False)
    stub_registry.adapters["newsapi"] = StubAdapter(articles=[make_article("https://example.com/a")])

    assert aggregator.aggregate_news() == {}


def test_sources_option_restricts_run_and_is_not_forwarded(aggregator, stub_registry, source_factory):
    source_factory("newsapi", "newsapi", name="NewsAPI")
    source_factory("guardian", "guardian", name="The Guardian")
    newsapi = StubAdapter()
    guardian = StubAdapter(provider_id="guardian")
    stub_registry.adapters.update({"newsapi": newsapi, "guardian": guardian})

    report = aggregator.aggregate_news({"sources": ["guardian"], "limit": 5})

    assert list(report) == ["The Guardian"]
    assert newsapi.received_options is None
    assert guardian.received_options == {"limit": 5, "prepared": True}


def test_fetch_error_is_reported_as_success_with_zero(aggregator, stub_registry, source_factory):
    source_factory("newsapi", "newsapi", name="NewsAPI")
    adapter = StubAdapter()
    adapter.last_error = MagicMock(message="NewsAPI responded with HTTP 429")
    stub_registry.adapters["newsapi"] = adapter

    report = aggregator.aggregate_news()

    assert report["NewsAPI"].status == "success"
    assert report["NewsAPI"].fetched == 0
    assert report["NewsAPI"].fetch_error == "NewsAPI responded with HTTP 429"


def test_store_skips_invalid_and_defaults_fields(aggregator, source_factory, test_db):
    source = source_factory()
    articles = [
        make_article("", title="No url"),
        make_article("https://example.com/untitled", title="   "),
        make_article("https://example.com/ok", published_at="garbage", external_id=None, author="  ", category=None),
    ]

    stored = aggregator.store_articles(articles, source)

    assert stored == 1
    article = test_db.query(Article).one()
    assert article.published_at == FROZEN_NOW
    assert article.external_id == external_id_for_url("https://example.com/ok")
    assert article.author is None
    assert article.category_id is None


def test_missing_date_defaults_to_now(aggregator, source_factory, test_db):
    source = source_factory()

    aggregator.store_articles([make_article("https://example.com/x", published_at=None)], source)

    assert test_db.query(Article).one().published_at == FROZEN_NOW


def test_existing_category_is_reused(aggregator, source_factory, category_factory, test_db):
    source = source_factory()
    existing = category_factory("Technology", color="#123456")

    aggregator.store_articles([make_article("https://example.com/x", category="Technology")], source)

    assert test_db.query(Category).count() == 1
    assert test_db.query(Article).one().category_id == existing.id


def test_storing_invalidates_caches(aggregator, source_factory, memory_cache, cache_service):
    source = source_factory()
    memory_cache.put(cache_service.statistics_key(), {"stale": True}, 300)

    aggregator.store_articles([make_article("https://example.com/new")], source)

    assert memory_cache.get(cache_service.statistics_key()) is None


def test_no_invalidation_when_nothing_stored(test_db, stub_registry, source_factory, frozen_clock, test_settings):
    cache = MagicMock()
    aggregator = AggregatorService(test_db, registry=stub_registry, cache=cache, clock=frozen_clock, settings=test_settings)
    source = source_factory()

    aggregator.store_articles([make_article("", title="")], source)

    cache.clear_article_caches.assert_not_called()


def test_run_summary(aggregator, stub_registry, source_factory):
    source_factory("newsapi", "newsapi", name="NewsAPI")
    stub_registry.adapters["newsapi"] = StubAdapter(articles=[make_article("https://example.com/1"), make_article("https://example.com/1")])

    results = aggregator.aggregate_news()

    assert aggregator.run_summary(results) == {"total_fetched": 2, "total_stored": 1}


def test_adapter_for_explains_missing_adapter(aggregator, stub_registry, source_factory):
    source = source_factory("nytimes", "nytimes")

    with pytest.raises(UnknownProviderError):
        aggregator.adapter_for(source)

    stub_registry.adapters["nytimes"] = StubAdapter(provider_id="nytimes", available=False)
    with pytest.raises(ProviderUnavailableError):
        aggregator.adapter_for(source)


def test_default_limit_comes_from_settings(aggregator, stub_registry, source_factory):
    source_factory("newsapi", "newsapi", name="NewsAPI")
    adapter = StubAdapter()
    stub_registry.adapters["newsapi"] = adapter

    aggregator.aggregate_news()

    assert adapter.received_options == {"limit": 50, "prepared": True}


def test_adapters_are_closed_after_each_source(aggregator, stub_registry, source_factory):
    source_factory("newsapi", "newsapi", name="NewsAPI")
    source_factory("guardian", "guardian", name="The Guardian")
    ok = StubAdapter(articles=[make_article("https://example.com/1")])
    failing = StubAdapter(provider_id="guardian", error=RuntimeError("boom"))
    stub_registry.adapters.update({"newsapi": ok, "guardian": failing})

    aggregator.aggregate_news()

    assert ok.closed
    assert failing.closed


def test_lost_insert_race_counts_as_duplicate(aggregator, stub_registry, source_factory, test_db, monkeypatch):
    source = source_factory("newsapi", "newsapi", name="NewsAPI")
    aggregator.store_articles([make_article("https://example.com/taken")], source)
    # Another run stored the url between our existence check and our insert
    monkeypatch.setattr(aggregator.articles, "exists_by_url", lambda url: False)
    stub_registry.adapters["newsapi"] = StubAdapter(articles=[
        make_article("https://example.com/taken", title="Late writer"),
        make_article("https://example.com/fresh"),
    ])

    report = aggregator.aggregate_news()

    assert report["NewsAPI"].status == "success"
    assert report["NewsAPI"].fetched == 2
    assert report["NewsAPI"].stored == 1
    assert test_db.query(Article).count() == 2
    assert test_db.query(Article).filter(Article.url == "https://example.com/taken").one().title == "Headline"


def test_concurrently_created_category_is_reused(aggregator, source_factory, category_factory, test_db, monkeypatch):
    source = source_factory()
    existing = category_factory("Technology")
    # First lookup misses as if the other writer had not committed yet
    monkeypatch.setattr(aggregator.categories, "get_by_slug", MagicMock(side_effect=[None, existing]))

    stored = aggregator.store_articles([make_article("https://example.com/x", category="Technology")], source)

    assert stored == 1
    assert test_db.query(Category).count() == 1
    assert test_db.query(Article).one().category_id == existing.id


def test_non_string_date_mid_batch_still_stores_and_invalidates(aggregator, stub_registry, source_factory, memory_cache, cache_service, test_db):
    source_factory("newsapi", "newsapi", name="NewsAPI")
    memory_cache.put(cache_service.statistics_key(), {"stale": True}, 300)
    stub_registry.adapters["newsapi"] = StubAdapter(articles=[
        make_article("https://example.com/first"),
        make_article("https://example.com/epoch", published_at=1710000000),
        make_article("https://example.com/last"),
    ])

    report = aggregator.aggregate_news()

    assert report["NewsAPI"].status == "success"
    assert report["NewsAPI"].fetched == 3
    assert report["NewsAPI"].stored == 3
    assert test_db.query(Article).filter(Article.url == "https://example.com/epoch").one().published_at == FROZEN_NOW
    assert memory_cache.get(cache_service.statistics_key()) is None
