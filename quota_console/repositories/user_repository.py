"""
User repository - Data access layer for User and Option models.
"""
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from quota_console.models import User, Option


class UserRepository:
    """Repository for User data access"""

    @staticmethod
    def get_by_ids(db: Session, user_ids: List[int]) -> Dict[int, User]:
        """Get users keyed by id; missing ids are simply absent"""
        if not user_ids:
            return {}
        users = db.query(User).filter(User.id.in_(set(user_ids))).all()
        return {user.id: user for user in users}

    @staticmethod
    def get_by_token(db: Session, access_token: str) -> Optional[User]:
        return db.query(User).filter(User.access_token == access_token).first()

    @staticmethod
    def get_by_username(db: Session, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username).first()

    @staticmethod
    def create(db: Session, user: User) -> User:
        db.add(user)
        db.commit()
        db.refresh(user)
        return user


class OptionRepository:
    """Repository for Option key/value data access"""

    @staticmethod
    def get_all(db: Session) -> List[Option]:
        return db.query(Option).order_by(Option.key).all()

    @staticmethod
    def get(db: Session, key: str) -> Optional[Option]:
        return db.query(Option).filter(Option.key == key).first()

    @staticmethod
    def upsert(db: Session, key: str, value: str) -> Option:
        """Create or overwrite one option"""
        option = OptionRepository.get(db, key)
        if option is None:
            option = Option(key=key, value=value)
            db.add(option)
        else:
            option.value = value
        db.commit()
        db.refresh(option)
        return option
