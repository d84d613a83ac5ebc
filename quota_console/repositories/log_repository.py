"""
Log repository - Data access layer for usage and system logs.
"""
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from quota_console.models import Log


class LogRepository:
    """Repository for Log data access"""

    @staticmethod
    def add(db: Session, log: Log) -> Log:
        """Stage a log entry; the caller owns the transaction"""
        db.add(log)
        db.flush()
        return log

    @staticmethod
    def search(
        db: Session,
        start_idx: int,
        page_size: int,
        user_id: Optional[int] = None,
        log_type: Optional[int] = None,
        model_name: Optional[str] = None,
        start_timestamp: Optional[int] = None,
        end_timestamp: Optional[int] = None
    ) -> Tuple[List[Log], int]:
        """Page through logs newest first with optional filters"""
        query = db.query(Log)
        if user_id is not None:
            query = query.filter(Log.user_id == user_id)
        if log_type:
            query = query.filter(Log.type == log_type)
        if model_name:
            query = query.filter(Log.model_name.like(f"%{model_name}%"))
        if start_timestamp:
            query = query.filter(Log.created_at >= start_timestamp)
        if end_timestamp:
            query = query.filter(Log.created_at <= end_timestamp)
        total = query.count()
        logs = query.order_by(Log.created_at.desc(), Log.id.desc()).offset(start_idx).limit(page_size).all()
        return logs, total
