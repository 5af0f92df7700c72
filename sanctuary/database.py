"""
Sanctuary Database Initialization

Owns the SQLAlchemy engine and session factory for the API service.
`sqlite://` selects a process-wide in-memory database (demo mode and tests).
"""

import os
import logging

from sqlalchemy import create_engine, select, func
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sanctuary.config import DATABASE_URL, SEED_DEMO_DATA
from sanctuary.models import Base, User

logger = logging.getLogger(__name__)


def _build_engine(url: str):
    if url in {"sqlite://", "sqlite:///:memory:"}:
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    if url.startswith("sqlite:///"):
        os.makedirs(os.path.dirname(os.path.abspath(url[len("sqlite:///"):])), exist_ok=True)
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url)


engine = _build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(seed: bool = SEED_DEMO_DATA):
    """
    Create all tables and, on an empty directory, load the demo dataset.
    """
    logger.info("Initializing sanctuary database...")
    Base.metadata.create_all(bind=engine)
    if seed:
        _seed_default_data()
    logger.info("Sanctuary database initialization complete")


def _seed_default_data():
    """Seed the demo directory, sales, operations and classes data if no users exist"""
    from sanctuary.seed import seed_demo_data

    db = SessionLocal()
    try:
        user_count = db.scalar(select(func.count()).select_from(User))
        if user_count:
            logger.info(f"Skipping demo seed: {user_count} users already present")
            return
        seed_demo_data(db)
        db.commit()
        logger.info("Demo data seeding complete")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to seed demo data: {e}")
        raise
    finally:
        db.close()


def get_db():
    """FastAPI dependency for database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def reset_db(seed: bool = True):
    """
    Drop all tables and recreate (DESTRUCTIVE - dev/test only).
    """
    logger.warning("Resetting sanctuary database - all data will be lost!")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    if seed:
        _seed_default_data()
    logger.info("Sanctuary database reset complete")
