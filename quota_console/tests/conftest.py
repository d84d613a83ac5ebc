"""
Shared fixtures: an in-memory database, an API client bound to it, users and
a pinned calendar date.
"""
import os
import tempfile

# Keep the app's own engine and log file away from the working tree
os.environ.setdefault("QUOTA_CONSOLE_DB_URL", "sqlite://")
os.environ.setdefault("QUOTA_CONSOLE_LOG_DIR", os.path.join(tempfile.gettempdir(), "quota-console-tests"))

import pytest
from datetime import date
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quota_console.constants import ROLE_ADMIN_USER
from quota_console.database import Base, get_db
from quota_console.models import CheckinConfig, CheckinRecord
from quota_console.services.date_service import DateService
from quota_console.services.user_service import UserService

# Tuesday; March 2025 starts on a Saturday
FIXED_TODAY = date(2025, 3, 18)


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    from quota_console.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def today():
    """Pin DateService.today() to FIXED_TODAY"""
    with patch.object(DateService, "today", return_value=FIXED_TODAY):
        yield FIXED_TODAY


@pytest.fixture
def user(db_session):
    return UserService(db_session).create_user("alice", quota=1000)


@pytest.fixture
def admin(db_session):
    return UserService(db_session).create_user("root", role=ROLE_ADMIN_USER)


@pytest.fixture
def user_headers(user):
    return {"X-API-Key": user.access_token}


@pytest.fixture
def admin_headers(admin):
    return {"X-API-Key": admin.access_token}


@pytest.fixture
def checkin_config(db_session):
    """Enabled check-in with a fixed reward of 100 and no extras"""
    config = CheckinConfig(
        enabled=True,
        min_quota=100,
        max_quota=100,
        checkin_code_enabled=False,
        checkin_code="",
        consecutive_reward_enabled=False,
        consecutive_reward_quota=50,
    )
    db_session.add(config)
    db_session.commit()
    db_session.refresh(config)
    return config


@pytest.fixture
def add_checkin(db_session):
    """Factory inserting a check-in record for a user and date string"""
    def _add(user_id: int, checkin_date: str, quota: int = 100) -> CheckinRecord:
        record = CheckinRecord(user_id=user_id, checkin_date=checkin_date, quota=quota)
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record
    return _add
