from typing import List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from supplyshop.data.models.profile import ProfileModel


class ProfileRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: str) -> ProfileModel | None:
        return self.db.get(ProfileModel, user_id)

    def list_profiles(self) -> List[ProfileModel]:
        return list(self.db.execute(select(ProfileModel).order_by(ProfileModel.created_at)).scalars())

    def get_profiles(self, user_ids) -> List[ProfileModel]:
        ids = list(set(user_ids))
        if not ids:
            return []
        return list(self.db.execute(select(ProfileModel).where(ProfileModel.id.in_(ids))).scalars())

    def create_profile(self, profile: ProfileModel) -> ProfileModel:
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def save(self, profile: ProfileModel) -> ProfileModel:
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def delete_profile(self, user_id: str) -> int:
        result = self.db.execute(
            delete(ProfileModel).where(ProfileModel.id == user_id).execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    def rollback(self):
        self.db.rollback()
