import pytest
from unittest.mock import MagicMock
from typer.testing import CliRunner

from news_aggregator import cli
from news_aggregator.models.category import Category
from news_aggregator.models.news_source import NewsSource
from news_aggregator.schemas.responses import SourceRunResult
from news_aggregator.seeders import DEFAULT_CATEGORIES, DEFAULT_SOURCES, seed_all

runner = CliRunner()


@pytest.fixture
def fake_aggregator(monkeypatch):
    aggregator = MagicMock()
    aggregator.aggregate_news.return_value = {
        "NewsAPI": SourceRunResult(fetched=3, stored=2),
        "The Guardian": SourceRunResult(status="error", error="Guardian is down"),
    }
    aggregator.run_summary.return_value = {"total_fetched": 3, "total_stored": 2}
    factory = MagicMock(return_value=aggregator)
    monkeypatch.setattr(cli, "AggregatorService", factory)
    monkeypatch.setattr(cli, "SessionLocal", MagicMock())
    return aggregator


def test_update_prints_per_source_lines_and_totals(fake_aggregator):
    result = runner.invoke(cli.app, ["update", "--source", "newsapi", "-s", "guardian", "--limit", "10"])

    assert result.exit_code == 0
    assert "OK NewsAPI: 3 fetched, 2 stored" in result.output
    assert "FAILED The Guardian: 0 fetched, 0 stored" in result.output
    assert "Guardian is down" in result.output
    assert "Total: 3 articles fetched, 2 articles stored" in result.output
    fake_aggregator.aggregate_news.assert_called_once_with({"limit": 10, "sources": ["newsapi", "guardian"]})


def test_update_defaults_to_all_sources(fake_aggregator):
    result = runner.invoke(cli.app, ["update"])

    assert result.exit_code == 0
    fake_aggregator.aggregate_news.assert_called_once_with({"limit": 50})


def test_update_rejects_limit_out_of_range(fake_aggregator):
    result = runner.invoke(cli.app, ["update", "--limit", "500"])

    assert result.exit_code != 0
    fake_aggregator.aggregate_news.assert_not_called()


def test_update_exits_nonzero_on_failure(fake_aggregator):
    fake_aggregator.aggregate_news.side_effect = RuntimeError("database is gone")

    result = runner.invoke(cli.app, ["update"])

    assert result.exit_code == 1



def test_update_warns_that_memory_cache_is_process_local(fake_aggregator, monkeypatch, test_settings):
    monkeypatch.setattr(cli, "get_settings", lambda: test_settings)

    result = runner.invoke(cli.app, ["update"])

    assert result.exit_code == 0
    assert "CACHE_BACKEND=memory" in result.output


def test_update_has_no_cache_warning_with_shared_backend(fake_aggregator, monkeypatch, test_settings):
    shared = test_settings.model_copy(update={"cache_backend": "redis"})
    monkeypatch.setattr(cli, "get_settings", lambda: shared)

    result = runner.invoke(cli.app, ["update"])

    assert result.exit_code == 0
    assert "CACHE_BACKEND=memory" not in result.output

def test_seed_is_idempotent(test_db):
    first = seed_all(test_db)
    second = seed_all(test_db)

    assert first == {"sources": len(DEFAULT_SOURCES), "categories": len(DEFAULT_CATEGORIES)}
    assert second == first
    assert test_db.query(NewsSource).count() == 3
    assert test_db.query(Category).count() == len(DEFAULT_CATEGORIES)
    assert test_db.query(NewsSource).filter(NewsSource.slug == "guardian").one().priority == 90


def test_seed_command(monkeypatch, test_db):
    monkeypatch.setattr(cli, "SessionLocal", lambda: test_db)

    result = runner.invoke(cli.app, ["seed"])

    assert result.exit_code == 0
    assert "Seeded 3 sources" in result.output
    assert test_db.query(NewsSource).count() == 3
