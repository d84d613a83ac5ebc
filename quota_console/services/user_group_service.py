"""
User group service - CRUD for user groups and their enable-group mapping.

An enable group is a model group name; a user group may use the models of
every enable group mapped to it.
"""
import json
import logging
import time
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quota_console.exceptions import (
    UserGroupNotFoundException, ValidationException, DatabaseException
)
from quota_console.models import UserGroup, UserGroupEnableGroup
from quota_console.repositories.group_repository import (
    UserGroupRepository, EnableGroupRepository, ModelGroupRepository
)
from quota_console.schemas import UserGroupCreate, UserGroupUpdate
from quota_console.services.option_service import OptionService

logger = logging.getLogger("quota_console.user_group")


def _normalize_config(config) -> str:
    """Config JSON text from a dict or JSON string; empty stays empty"""
    if config is None or config == "":
        return ""
    if isinstance(config, str):
        try:
            config = json.loads(config)
        except ValueError:
            raise ValidationException("config", "must be a JSON object")
    if not isinstance(config, dict):
        raise ValidationException("config", "must be a JSON object")
    return json.dumps(config, ensure_ascii=False)


class UserGroupService:
    """Service for user group management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserGroupRepository()
        self.enable_repo = EnableGroupRepository()

    def get(self, user_group_id: int) -> UserGroup:
        group = self.repo.get_by_id(self.db, user_group_id)
        if not group:
            raise UserGroupNotFoundException(user_group_id)
        return group

    def list_groups(self, start_idx: int, page_size: int) -> Tuple[List[UserGroup], int]:
        return self.repo.search(self.db, None, start_idx, page_size)

    def search_groups(self, keyword: Optional[str], start_idx: int, page_size: int) -> Tuple[List[UserGroup], int]:
        return self.repo.search(self.db, (keyword or "").strip(), start_idx, page_size)

    def get_active_groups(self) -> List[UserGroup]:
        return self.repo.get_active(self.db)

    def create_group(self, data: UserGroupCreate) -> UserGroup:
        """
        Create a user group.

        Raises:
            ValidationException: blank name or malformed config
        """
        name = (data.name or "").strip()
        if not name:
            raise ValidationException("name", "must not be empty")

        now = int(time.time())
        group = UserGroup(
            name=name,
            display_name=(data.display_name or "").strip() or name,
            description=data.description or "",
            config=_normalize_config(data.config),
            status=data.status,
            created_time=now,
            updated_time=now,
        )
        group = self.repo.create(self.db, group)
        logger.info(f"User group '{group.name}' created (id={group.id})")
        return group

    def update_group(self, data: UserGroupUpdate) -> UserGroup:
        """Apply the non-null fields of data to an existing group"""
        group = self.get(data.id)

        if data.name is not None:
            name = data.name.strip()
            if not name:
                raise ValidationException("name", "must not be empty")
            group.name = name
        if data.display_name is not None:
            group.display_name = data.display_name.strip()
        if data.description is not None:
            group.description = data.description
        if data.config is not None:
            group.config = _normalize_config(data.config)
        if data.status is not None:
            group.status = data.status

        group.updated_time = int(time.time())
        group = self.repo.update(self.db, group)
        logger.info(f"User group {group.id} updated")
        return group

    def delete_group(self, user_group_id: int) -> None:
        """Soft delete a group; its enable-group mapping is removed"""
        group = self.get(user_group_id)
        group.deleted_at = datetime.now()
        self.enable_repo.delete_for_group(self.db, group.id)
        self.db.commit()
        logger.info(f"User group {user_group_id} deleted")

    # ===== ENABLE GROUPS =====

    def get_enable_groups(self, user_group_id: int) -> List[str]:
        self.get(user_group_id)
        return self.enable_repo.get_names(self.db, user_group_id)

    def set_enable_groups(self, user_group_id: int, enable_groups: List[str]) -> List[str]:
        """
        Replace the whole enable-group mapping of a user group.

        Names are trimmed, blanks dropped and duplicates removed. An empty list
        clears the mapping. Delete and insert happen in one transaction which is
        rolled back if the stored row count does not match.

        Returns:
            The stored names in submission order
        """
        if user_group_id <= 0:
            raise ValidationException("user_group_id", f"invalid id {user_group_id}")
        self.get(user_group_id)

        unique_groups = []
        for name in enable_groups or []:
            trimmed = (name or "").strip()
            if trimmed and trimmed not in unique_groups:
                unique_groups.append(trimmed)

        now = int(time.time())
        try:
            self.enable_repo.delete_for_group(self.db, user_group_id)
            self.enable_repo.add_all(self.db, [
                UserGroupEnableGroup(
                    user_group_id=user_group_id,
                    enable_group=name,
                    created_time=now,
                    updated_time=now,
                )
                for name in unique_groups
            ])
            stored = self.enable_repo.count_for_group(self.db, user_group_id)
            if stored != len(unique_groups):
                raise DatabaseException(
                    "enable group update",
                    f"expected {len(unique_groups)} records, got {stored}"
                )
            self.db.commit()
        except (SQLAlchemyError, DatabaseException):
            self.db.rollback()
            logger.error(f"Enable group update for user group {user_group_id} rolled back")
            raise

        logger.info(f"User group {user_group_id} enable groups set to {unique_groups}")
        return unique_groups

    def list_available_enable_groups(self) -> List[str]:
        """
        Every enable group an admin can map: names of active model groups
        together with the groups configured in the GroupRatio option.
        """
        names = {group.name for group in ModelGroupRepository.get_active(self.db) if group.name}
        names.update(key for key in OptionService(self.db).get_group_ratio() if key)
        return sorted(names)
