"""Database access for the verification session store.

The Discord bot owns the ``user_verifications`` records; this service only
reads them. This module provides:
- UserVerification: ORM mapping of one session record
- make_engine(): engine factory with pool settings per database type
- get_engine(): process-wide engine (connection pool) singleton
- reset_engine(): dispose and forget the singleton (tests)
- init_database(): create the table for local development and tests

Engine lifecycle: created lazily on first use, shared by every request,
never torn down during normal operation. SQLAlchemy engines are safe to
share between threads; each lookup checks a connection out of the pool.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, Column, DateTime, Integer, String, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase

from nomadverify.core.config import DATABASE_URL, SESSION_TABLE

log = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UserVerification(Base):
    """One verification session as written by the Discord bot."""

    __tablename__ = SESSION_TABLE

    id = Column(Integer, primary_key=True, autoincrement=True)
    verify_uuid = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(String(32), nullable=True)  # Discord snowflake
    username = Column(String(255), nullable=True)
    wallet_address = Column(String(66), nullable=True)
    guild_id = Column(String(32), nullable=True)
    verified = Column(Boolean, nullable=True)
    on_chain_verified = Column(Boolean, nullable=True)
    selected_country = Column(String(64), nullable=True)
    gender = Column(String(16), nullable=True)
    is_adult = Column(Boolean, nullable=True)
    ens_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=True)
    verified_at = Column(DateTime, nullable=True)

    def to_record(self) -> Dict[str, Any]:
        """Return the record in the bot's document field naming."""
        return {
            "verifyUuid": self.verify_uuid,
            "userId": self.user_id,
            "username": self.username,
            "walletAddress": self.wallet_address,
            "guildId": self.guild_id,
            "verified": self.verified,
            "onChainVerified": self.on_chain_verified,
            "selectedCountry": self.selected_country,
            "gender": self.gender,
            "isAdult": self.is_adult,
            "ensName": self.ens_name,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "verifiedAt": self.verified_at,
        }

    def __repr__(self) -> str:
        return f"<UserVerification(verify_uuid={self.verify_uuid!r}, username={self.username!r})>"


def make_engine(url: str) -> Engine:
    """Create an engine with pool settings suited to the database type.

    PostgreSQL/MySQL: pooled connections with pre-ping and recycling.
    SQLite: StaticPool (single shared connection) for local development
    and in-memory test databases.
    """
    if url.startswith("sqlite"):
        from sqlalchemy.pool import StaticPool

        engine_kwargs = {
            "echo": False,
            "pool_pre_ping": True,
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
        log.info("Using SQLite session store (local development mode)")
    else:
        engine_kwargs = {
            "echo": False,
            "pool_pre_ping": True,      # Verify connections before use
            "pool_size": 5,
            "max_overflow": 10,
            "pool_recycle": 1800,       # Recycle connections every 30 min
        }
        log.info("Using pooled session store connection")
    return create_engine(url, **engine_kwargs)


_engine: Optional[Engine] = None
_engine_lock = threading.Lock()


def get_engine() -> Engine:
    """Get or create the engine singleton from DATABASE_URL."""
    global _engine

    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = make_engine(DATABASE_URL)

    return _engine


def reset_engine() -> None:
    """Dispose the singleton for testing."""
    global _engine
    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
        _engine = None


def init_database(engine: Optional[Engine] = None) -> None:
    """Create the session table if it does not exist."""
    Base.metadata.create_all(bind=engine or get_engine())
