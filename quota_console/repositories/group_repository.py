"""
Group repository - Data access layer for user groups, their enable-group
mapping and model groups.
"""
from typing import List, Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session, Query

from quota_console.models import UserGroup, UserGroupEnableGroup, ModelGroup
from quota_console.constants import STATUS_ENABLED


def _keyword_filter(query: Query, model, keyword: Optional[str]) -> Query:
    if keyword:
        pattern = f"%{keyword}%"
        query = query.filter(or_(
            model.name.like(pattern),
            model.display_name.like(pattern),
            model.description.like(pattern)
        ))
    return query


class UserGroupRepository:
    """Repository for UserGroup data access (soft-deleted rows are invisible)"""

    @staticmethod
    def _live(db: Session) -> Query:
        return db.query(UserGroup).filter(UserGroup.deleted_at.is_(None))

    @staticmethod
    def get_by_id(db: Session, user_group_id: int) -> Optional[UserGroup]:
        return UserGroupRepository._live(db).filter(UserGroup.id == user_group_id).first()

    @staticmethod
    def get_by_name(db: Session, name: str) -> Optional[UserGroup]:
        return UserGroupRepository._live(db).filter(UserGroup.name == name).first()

    @staticmethod
    def get_active(db: Session) -> List[UserGroup]:
        """Get all enabled user groups"""
        return UserGroupRepository._live(db).filter(
            UserGroup.status == STATUS_ENABLED
        ).order_by(UserGroup.id.desc()).all()

    @staticmethod
    def search(
        db: Session, keyword: Optional[str], start_idx: int, page_size: int
    ) -> Tuple[List[UserGroup], int]:
        """Page through user groups matching keyword (all when keyword is empty)"""
        query = _keyword_filter(UserGroupRepository._live(db), UserGroup, keyword)
        total = query.count()
        groups = query.order_by(UserGroup.id.desc()).offset(start_idx).limit(page_size).all()
        return groups, total

    @staticmethod
    def create(db: Session, group: UserGroup) -> UserGroup:
        db.add(group)
        db.commit()
        db.refresh(group)
        return group

    @staticmethod
    def update(db: Session, group: UserGroup) -> UserGroup:
        db.commit()
        db.refresh(group)
        return group


class EnableGroupRepository:
    """Repository for the user group -> model group name mapping"""

    @staticmethod
    def get_names(db: Session, user_group_id: int) -> List[str]:
        rows = db.query(UserGroupEnableGroup.enable_group).filter(
            UserGroupEnableGroup.user_group_id == user_group_id
        ).order_by(UserGroupEnableGroup.id).all()
        return [row[0] for row in rows]

    @staticmethod
    def delete_for_group(db: Session, user_group_id: int) -> int:
        """Stage deletion of a group's mapping; the caller owns the transaction"""
        return db.query(UserGroupEnableGroup).filter(
            UserGroupEnableGroup.user_group_id == user_group_id
        ).delete(synchronize_session=False)

    @staticmethod
    def add_all(db: Session, records: List[UserGroupEnableGroup]) -> None:
        db.add_all(records)
        db.flush()

    @staticmethod
    def count_for_group(db: Session, user_group_id: int) -> int:
        return db.query(UserGroupEnableGroup).filter(
            UserGroupEnableGroup.user_group_id == user_group_id
        ).count()


class ModelGroupRepository:
    """Repository for ModelGroup data access"""

    @staticmethod
    def get_by_id(db: Session, model_group_id: int) -> Optional[ModelGroup]:
        return db.query(ModelGroup).filter(ModelGroup.id == model_group_id).first()

    @staticmethod
    def get_by_ids(db: Session, model_group_ids: List[int]) -> List[ModelGroup]:
        if not model_group_ids:
            return []
        return db.query(ModelGroup).filter(ModelGroup.id.in_(set(model_group_ids))).all()

    @staticmethod
    def get_by_name(db: Session, name: str) -> Optional[ModelGroup]:
        return db.query(ModelGroup).filter(ModelGroup.name == name).first()

    @staticmethod
    def get_by_names(db: Session, names: List[str]) -> List[ModelGroup]:
        if not names:
            return []
        return db.query(ModelGroup).filter(ModelGroup.name.in_(set(names))).all()

    @staticmethod
    def get_active(db: Session) -> List[ModelGroup]:
        return db.query(ModelGroup).filter(
            ModelGroup.status == STATUS_ENABLED
        ).order_by(ModelGroup.id.desc()).all()

    @staticmethod
    def search(
        db: Session, keyword: Optional[str], start_idx: int, page_size: int
    ) -> Tuple[List[ModelGroup], int]:
        query = _keyword_filter(db.query(ModelGroup), ModelGroup, keyword)
        total = query.count()
        groups = query.order_by(ModelGroup.id.desc()).offset(start_idx).limit(page_size).all()
        return groups, total

    @staticmethod
    def create(db: Session, group: ModelGroup) -> ModelGroup:
        db.add(group)
        db.commit()
        db.refresh(group)
        return group

    @staticmethod
    def update(db: Session, group: ModelGroup) -> ModelGroup:
        db.commit()
        db.refresh(group)
        return group

    @staticmethod
    def delete(db: Session, group: ModelGroup) -> None:
        db.delete(group)
        db.commit()
