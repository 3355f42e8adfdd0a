from .news_source import NewsSource, ApiProvider
from .category import Category
from .article import Article
from .user_preference import UserPreference

__all__ = ["NewsSource", "ApiProvider", "Category", "Article", "UserPreference"]
