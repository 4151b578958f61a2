from typing import List

from sqlalchemy.orm import Session

from supplyshop.data.models.profile import ProfileModel, ROLE_ADMIN, ROLE_CUSTOMER
from supplyshop.domain.errors import ExternalServiceError, Forbidden, NotFound, ValidationError
from supplyshop.domain.schemas import ProfileIn, SignupIn
from supplyshop.repos.profile_repo import ProfileRepo
from supplyshop.services.auth_client import AuthClient
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)

PROFILE_FIELDS = (
    "full_name",
    "responsible_name",
    "responsible_phone",
    "institution_name",
    "institution_address",
)


class ProfileService:
    def __init__(self, db: Session, auth_client: AuthClient | None = None):
        self.repo = ProfileRepo(db)
        self.auth_client = auth_client or AuthClient()

    def get_role(self, user_id: str) -> str | None:
        profile = self.repo.get_profile(user_id)
        return profile.role if profile else None

    def require_admin(self, user_id: str):
        if self.get_role(user_id) != ROLE_ADMIN:
            raise Forbidden()

    def signup(self, payload: SignupIn) -> ProfileModel:
        """Provider account first, then the profile row; a failed profile insert is an error."""
        if payload.role == ROLE_ADMIN:
            raise ValidationError("לא ניתן להירשם כמנהל")

        user = self.auth_client.sign_up(payload.email, payload.password)
        user_id = user.get("id")
        if not user_id:
            raise ExternalServiceError("identity provider returned no user id")

        profile = ProfileModel(id=user_id, role=payload.role or ROLE_CUSTOMER)
        for name in PROFILE_FIELDS:
            setattr(profile, name, getattr(payload, name))
        try:
            created = self.repo.create_profile(profile)
        except Exception as e:
            self.repo.rollback()
            logger.error(f"Profile insert failed for user {user_id}: {e}")
            raise
        logger.info(f"Signed up user {user_id} with role {created.role}")
        return created

    def get_profile(self, user_id: str) -> ProfileModel:
        profile = self.repo.get_profile(user_id)
        if not profile:
            raise NotFound("הפרופיל לא נמצא")
        return profile

    def upsert_profile(self, user_id: str, payload: ProfileIn) -> ProfileModel:
        profile = self.repo.get_profile(user_id)
        if profile is None:
            profile = ProfileModel(id=user_id, role=ROLE_CUSTOMER)
            for name in PROFILE_FIELDS:
                setattr(profile, name, getattr(payload, name))
            return self.repo.create_profile(profile)
        # role is never taken from the caller here
        for name in PROFILE_FIELDS:
            setattr(profile, name, getattr(payload, name))
        return self.repo.save(profile)

    # admin
    def list_profiles(self) -> List[ProfileModel]:
        return self.repo.list_profiles()

    def set_role(self, user_id: str, role: str) -> ProfileModel:
        role = role.strip()
        if not role:
            raise ValidationError("נא לבחור תפקיד")
        profile = self.get_profile(user_id)
        profile.role = role
        logger.info(f"Role of {user_id} set to {role}")
        return self.repo.save(profile)

    def delete_profile(self, user_id: str):
        if not self.repo.delete_profile(user_id):
            raise NotFound("המשתמש לא נמצא")
        logger.info(f"Profile {user_id} deleted")
