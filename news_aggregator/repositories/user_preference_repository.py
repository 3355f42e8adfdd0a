from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.user_preference import UserPreference


class UserPreferenceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_user_id(self, user_id: str) -> Optional[UserPreference]:
        return self.db.query(UserPreference).filter(UserPreference.user_id == user_id).first()

    def get_or_create(self, user_id: str) -> UserPreference:
        preference = self.get_by_user_id(user_id)
        if preference:
            return preference

        preference = UserPreference(
            user_id=user_id,
            preferred_sources=[],
            preferred_categories=[],
            preferred_authors=[],
            language=UserPreference.DEFAULT_LANGUAGE,
            country=UserPreference.DEFAULT_COUNTRY,
            articles_per_page=UserPreference.DEFAULT_ARTICLES_PER_PAGE,
            show_images=True,
            auto_refresh=False,
            refresh_interval=UserPreference.DEFAULT_REFRESH_INTERVAL,
        )
        self.db.add(preference)
        try:
            self.db.commit()
        except IntegrityError:
            # Another request created it first
            self.db.rollback()
            return self.get_by_user_id(user_id)
        self.db.refresh(preference)
        return preference

    def save(self, preference: UserPreference) -> UserPreference:
        self.db.add(preference)
        self.db.commit()
        self.db.refresh(preference)
        return preference
