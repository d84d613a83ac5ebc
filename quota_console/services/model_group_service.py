"""
Model group service - CRUD for model groups and the user group permission matrix.
"""
import json
import logging
import time
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from quota_console.constants import STATUS_ENABLED
from quota_console.exceptions import ModelGroupNotFoundException, ValidationException
from quota_console.models import ModelGroup, User
from quota_console.repositories.group_repository import (
    ModelGroupRepository, EnableGroupRepository, UserGroupRepository
)
from quota_console.schemas import ModelGroupCreate, ModelGroupUpdate
from quota_console.services.user_group_service import UserGroupService

logger = logging.getLogger("quota_console.model_group")


def parse_model_list(value) -> List[str]:
    """
    Model names from a list or JSON array text.

    Raises:
        ValidationException: value is not an array of strings
    """
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise ValidationException("model_list", "invalid JSON")
    if not isinstance(value, list):
        raise ValidationException("model_list", "must be an array")
    models = []
    for item in value:
        if not isinstance(item, str):
            raise ValidationException("model_list", "must contain only model names")
        item = item.strip()
        if item and item not in models:
            models.append(item)
    return models


class ModelGroupService:
    """Service for model groups and user group permissions"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ModelGroupRepository()
        self.user_group_service = UserGroupService(db)

    def get(self, model_group_id: int) -> ModelGroup:
        group = self.repo.get_by_id(self.db, model_group_id)
        if not group:
            raise ModelGroupNotFoundException(model_group_id)
        return group

    def search_groups(self, keyword: Optional[str], start_idx: int, page_size: int) -> Tuple[List[ModelGroup], int]:
        return self.repo.search(self.db, (keyword or "").strip(), start_idx, page_size)

    def _ensure_unique_name(self, name: str, current_id: Optional[int] = None):
        existing = self.repo.get_by_name(self.db, name)
        if existing and existing.id != current_id:
            raise ValidationException("name", f"model group '{name}' already exists")

    def create_group(self, data: ModelGroupCreate) -> ModelGroup:
        name = (data.name or "").strip()
        if not name:
            raise ValidationException("name", "must not be empty")
        self._ensure_unique_name(name)

        now = int(time.time())
        group = ModelGroup(
            name=name,
            display_name=(data.display_name or "").strip() or name,
            description=data.description or "",
            status=data.status,
            created_time=now,
            updated_time=now,
        )
        group.set_models(parse_model_list(data.model_list))
        group = self.repo.create(self.db, group)
        logger.info(f"Model group '{group.name}' created with {len(group.get_models())} models")
        return group

    def update_group(self, data: ModelGroupUpdate) -> ModelGroup:
        group = self.get(data.id)
        old_name = group.name

        if data.name is not None:
            name = data.name.strip()
            if not name:
                raise ValidationException("name", "must not be empty")
            self._ensure_unique_name(name, group.id)
            group.name = name
        if data.display_name is not None:
            group.display_name = data.display_name.strip()
        if data.description is not None:
            group.description = data.description
        if data.model_list is not None:
            group.set_models(parse_model_list(data.model_list))
        if data.status is not None:
            group.status = data.status

        group.updated_time = int(time.time())
        group = self.repo.update(self.db, group)
        if old_name != group.name:
            logger.warning(
                f"Model group {group.id} renamed '{old_name}' -> '{group.name}'; "
                f"user groups mapped to the old name keep it"
            )
        return group

    def delete_group(self, model_group_id: int) -> None:
        group = self.get(model_group_id)
        self.repo.delete(self.db, group)
        logger.info(f"Model group {model_group_id} deleted")

    # ===== PERMISSION MATRIX =====

    def get_permissions(self, user_group_id: int) -> List[dict]:
        """Model groups a user group may use, as {model_group_id, model_group_name}"""
        names = self.user_group_service.get_enable_groups(user_group_id)
        by_name = {group.name: group for group in self.repo.get_by_names(self.db, names)}
        return [
            {"model_group_id": by_name[name].id, "model_group_name": name}
            for name in names
            if name in by_name
        ]

    def set_permissions(self, user_group_id: int, model_group_ids: List[int]) -> List[dict]:
        """
        Replace a user group's permissions with the given model groups.

        Raises:
            ValidationException: an id does not name a model group
        """
        unique_ids = list(dict.fromkeys(model_group_ids or []))
        groups = {group.id: group for group in self.repo.get_by_ids(self.db, unique_ids)}
        missing = [group_id for group_id in unique_ids if group_id not in groups]
        if missing:
            raise ValidationException("model_group_ids", f"unknown model groups {missing}")

        self.user_group_service.set_enable_groups(
            user_group_id, [groups[group_id].name for group_id in unique_ids]
        )
        return self.get_permissions(user_group_id)

    def can_use_model(self, user: User, model_name: str) -> bool:
        """
        True iff an enabled model group mapped to the user's group lists the model.
        """
        user_group = UserGroupRepository.get_by_name(self.db, user.group)
        if not user_group or user_group.status != STATUS_ENABLED:
            return False
        names = EnableGroupRepository.get_names(self.db, user_group.id)
        for group in self.repo.get_by_names(self.db, names):
            if group.status == STATUS_ENABLED and model_name in group.get_models():
                return True
        return False
