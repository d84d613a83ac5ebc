import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from quota_console.constants import DEFAULT_DATABASE_URL

DATABASE_URL = os.getenv("QUOTA_CONSOLE_DB_URL", DEFAULT_DATABASE_URL)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a database session for one request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
