"""
Check-in repository - Data access layer for check-in records and config.
"""
from typing import List, Optional, Set, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from quota_console.models import CheckinRecord, CheckinConfig


class CheckinRecordRepository:
    """Repository for CheckinRecord data access"""

    @staticmethod
    def get_by_date(db: Session, user_id: int, checkin_date: str) -> Optional[CheckinRecord]:
        """Get a user's record for a specific date"""
        return db.query(CheckinRecord).filter(
            CheckinRecord.user_id == user_id,
            CheckinRecord.checkin_date == checkin_date
        ).first()

    @staticmethod
    def get_user_history(
        db: Session, user_id: int, page: int, page_size: int
    ) -> Tuple[List[CheckinRecord], int]:
        """Get one page of a user's records, newest first, with total count"""
        query = db.query(CheckinRecord).filter(CheckinRecord.user_id == user_id)
        total = query.count()
        records = query.order_by(
            CheckinRecord.checkin_date.desc(), CheckinRecord.id.desc()
        ).offset((page - 1) * page_size).limit(page_size).all()
        return records, total

    @staticmethod
    def get_all_history(db: Session, page: int, page_size: int) -> Tuple[List[CheckinRecord], int]:
        """Get one page of every user's records, newest first"""
        query = db.query(CheckinRecord)
        total = query.count()
        records = query.order_by(
            CheckinRecord.created_at.desc(), CheckinRecord.id.desc()
        ).offset((page - 1) * page_size).limit(page_size).all()
        return records, total

    @staticmethod
    def get_user_dates(db: Session, user_id: int) -> Set[str]:
        """Get every date string the user checked in on"""
        rows = db.query(CheckinRecord.checkin_date).filter(
            CheckinRecord.user_id == user_id
        ).all()
        return {row[0] for row in rows}

    @staticmethod
    def get_recent_dates(db: Session, user_id: int, limit: int) -> List[str]:
        """Get the user's most recent check-in dates, newest first"""
        rows = db.query(CheckinRecord.checkin_date).filter(
            CheckinRecord.user_id == user_id
        ).order_by(CheckinRecord.checkin_date.desc()).limit(limit).all()
        return [row[0] for row in rows]

    @staticmethod
    def get_totals(db: Session, user_id: int) -> Tuple[int, int]:
        """Get (check-in count, summed quota) for a user"""
        count, total_quota = db.query(
            func.count(CheckinRecord.id),
            func.coalesce(func.sum(CheckinRecord.quota), 0)
        ).filter(CheckinRecord.user_id == user_id).one()
        return int(count or 0), int(total_quota or 0)

    @staticmethod
    def count_in_month(db: Session, user_id: int, month_prefix: str) -> int:
        """Count records whose date starts with YYYY-MM"""
        return db.query(CheckinRecord).filter(
            CheckinRecord.user_id == user_id,
            CheckinRecord.checkin_date.like(f"{month_prefix}%")
        ).count()

    @staticmethod
    def add(db: Session, record: CheckinRecord) -> CheckinRecord:
        """Stage a new record; the caller owns the transaction"""
        db.add(record)
        db.flush()
        return record


class CheckinConfigRepository:
    """Repository for the single CheckinConfig row"""

    @staticmethod
    def get(db: Session) -> CheckinConfig:
        """
        Get check-in config (creates with defaults if not exists).

        Returns:
            CheckinConfig object
        """
        config = db.query(CheckinConfig).first()
        if not config:
            config = CheckinConfig()
            db.add(config)
            db.commit()
            db.refresh(config)
        return config

    @staticmethod
    def update(db: Session, config: CheckinConfig) -> CheckinConfig:
        db.commit()
        db.refresh(config)
        return config
