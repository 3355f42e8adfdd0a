from typing import Optional

import pytest
from unittest.mock import MagicMock

from news_aggregator.core.cache import MemoryCacheBackend
from news_aggregator.core.clock import FrozenClock

from helpers import FROZEN_NOW, FakeTimer


@pytest.fixture
def test_db():
    from sqlalchemy import create_engine, event
    from sqlalchemy.orm import sessionmaker
    from sqlalchemy.pool import StaticPool
    from news_aggregator.core.database import _enable_sqlite_foreign_keys, create_tables, drop_tables

    # One shared in-memory database across threads
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    create_tables(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        drop_tables(bind=engine)
        engine.dispose()


@pytest.fixture
def frozen_clock():
    return FrozenClock(FROZEN_NOW)


@pytest.fixture
def fake_timer():
    return FakeTimer()


@pytest.fixture
def memory_cache(fake_timer):
    return MemoryCacheBackend(timer=fake_timer)


@pytest.fixture
def test_settings():
    from news_aggregator.config import Settings
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        cache_backend="memory",
        newsapi_api_key="newsapi-key",
        guardian_api_key="guardian-key",
        nytimes_api_key="nytimes-key",
    )


@pytest.fixture
def source_factory(test_db):
    from news_aggregator.models.news_source import NewsSource

    def create(slug: str = "newsapi", provider: str = "newsapi", name: Optional[str] = None, **fields):
        source = NewsSource(
            name=name or slug.title(),
            slug=slug,
            api_provider=provider,
            is_active=fields.pop("is_active", True),
            priority=fields.pop("priority", 0),
            **fields,
        )
        test_db.add(source)
        test_db.commit()
        test_db.refresh(source)
        return source

    return create


@pytest.fixture
def category_factory(test_db):
    from news_aggregator.models.category import Category

    def create(name: str = "Technology", **fields):
        from news_aggregator.utils.string_utils import slugify
        category = Category(name=name, slug=fields.pop("slug", slugify(name)), is_active=fields.pop("is_active", True), **fields)
        test_db.add(category)
        test_db.commit()
        test_db.refresh(category)
        return category

    return create


@pytest.fixture
def article_factory(test_db):
    from news_aggregator.models.article import Article

    counter = {"n": 0}

    def create(source, **fields):
        counter["n"] += 1
        n = counter["n"]
        published_at = fields.pop("published_at", FROZEN_NOW)
        article = Article(
            news_source_id=source.id,
            title=fields.pop("title", f"Article {n}"),
            url=fields.pop("url", f"https://example.com/articles/{n}"),
            published_at=published_at,
            created_at=fields.pop("created_at", FROZEN_NOW),
            is_featured=fields.pop("is_featured", False),
            **fields,
        )
        test_db.add(article)
        test_db.commit()
        test_db.refresh(article)
        return article

    return create


@pytest.fixture
def stub_registry():
    """Registry double: maps provider id to a prepared adapter (or None)."""
    registry = MagicMock()
    registry.adapters = {}
    registry.create.side_effect = lambda source: registry.adapters.get(source.api_provider)
    return registry


@pytest.fixture
async def async_client(test_db, memory_cache, frozen_clock, test_settings, stub_registry):
    from httpx import AsyncClient, ASGITransport
    from news_aggregator.main import app
    from news_aggregator.config import get_settings
    from news_aggregator.core.cache import get_cache_backend
    from news_aggregator.core.clock import get_clock
    from news_aggregator.core.database import get_db
    from news_aggregator.api.dependencies import get_provider_registry

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_backend] = lambda: memory_cache
    app.dependency_overrides[get_clock] = lambda: frozen_clock
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_provider_registry] = lambda: stub_registry

    # Use ASGITransport for direct app interaction
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def user_headers():
    return {"X-User-Id": "user-123"}
