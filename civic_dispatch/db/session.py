# File: civic_dispatch/db/session.py
# Project: civic-dispatch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from civic_dispatch.core.config import settings

def make_engine(url: str):
    if url.startswith("sqlite"):
        # one engine is shared by every request thread
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,
        pool_timeout=30
    )

engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_db(bind=None):
    from civic_dispatch.db.base import Base
    from civic_dispatch.models import collection  # noqa: F401 (registers the table)
    Base.metadata.create_all(bind=bind or engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
