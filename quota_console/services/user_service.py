"""
User service - users, API-key identity and quota balance.
"""
import logging
import secrets
from typing import Optional
from sqlalchemy.orm import Session

from quota_console.constants import ROLE_COMMON_USER, STATUS_ENABLED
from quota_console.exceptions import ValidationException
from quota_console.models import User
from quota_console.repositories.user_repository import UserRepository
from quota_console.services.option_service import OptionService

logger = logging.getLogger("quota_console.users")


class UserService:
    """Service for user management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()
        self.option_service = OptionService(db)

    def authenticate(self, access_token: Optional[str]) -> Optional[User]:
        """Enabled user owning the token, or None"""
        if not access_token:
            return None
        user = self.repo.get_by_token(self.db, access_token)
        if not user or user.status != STATUS_ENABLED:
            return None
        return user

    def create_user(
        self,
        username: str,
        signup_method: str = "password",
        role: int = ROLE_COMMON_USER,
        quota: int = 0,
        display_name: str = ""
    ) -> User:
        """
        Create a user with a fresh access token.
        The user group comes from the sign-up auto assignment options.
        """
        username = (username or "").strip()
        if not username:
            raise ValidationException("username", "must not be empty")
        if self.repo.get_by_username(self.db, username):
            raise ValidationException("username", f"'{username}' is already taken")

        user = User(
            username=username,
            display_name=display_name or username,
            role=role,
            quota=quota,
            group=self.option_service.resolve_signup_group(signup_method),
            signup_method=signup_method,
            access_token=secrets.token_hex(24),
        )
        user = self.repo.create(self.db, user)
        logger.info(f"User '{username}' created in group '{user.group}'")
        return user

    @staticmethod
    def increase_quota(user: User, amount: int) -> User:
        """Stage a balance increase; the caller commits"""
        user.quota = (user.quota or 0) + amount
        return user
