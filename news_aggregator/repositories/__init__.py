from .article_repository import ArticleRepository
from .category_repository import CategoryRepository
from .news_source_repository import NewsSourceRepository
from .user_preference_repository import UserPreferenceRepository

__all__ = ["ArticleRepository", "CategoryRepository", "NewsSourceRepository", "UserPreferenceRepository"]
