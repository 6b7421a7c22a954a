"""
SQLite database configuration and ORM models for the local fallback store.

The local store mirrors browser storage: one row per namespaced key with
a JSON value.
"""

from functools import lru_cache

from sqlalchemy import JSON, Column, DateTime, String
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from harmony.core.config import get_settings
from harmony.utils.datetime_utils import now_utc


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class LocalEntryORM(Base):
    """Key-value entry of the local fallback store."""

    __tablename__ = "local_entries"

    key = Column(String(512), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime, default=now_utc, onupdate=now_utc)


# ===========================================
# Engine / Session
# ===========================================


@lru_cache()
def get_engine():
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(settings.LOCAL_STORE_URL, echo=False)


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine=None):
    """Initialize database tables."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
