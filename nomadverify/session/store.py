"""Session store adapters.

A session store answers exactly one question: which record has this
``verifyUuid``? Records are returned as plain dicts in the Discord bot's
document naming (``userId``, ``walletAddress``, ``selectedCountry`` ...)
and are normalized by the resolver, never here.

Uniqueness of ``verifyUuid`` is enforced by the store that writes the
records; adapters do not re-check it.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from nomadverify.logging_config import short_id
from nomadverify.session.db import UserVerification, get_engine

log = logging.getLogger(__name__)

SessionRecord = Dict[str, Any]


# =============================================================================
# SESSION STORE INTERFACE
# =============================================================================


class SessionStore(ABC):
    """Abstract read-only interface to the session records.

    Implementations must tolerate concurrent outstanding lookups.
    """

    @abstractmethod
    async def find_by_verify_uuid(self, verify_uuid: str) -> Optional[SessionRecord]:
        """Look up a record by exact match on ``verifyUuid``.

        Args:
            verify_uuid: The session identifier

        Returns:
            The raw record, or None if no record matches

        Raises:
            Any backend exception; the resolver classifies it.
        """
        ...


# =============================================================================
# SQL SESSION STORE
# =============================================================================


class SqlSessionStore(SessionStore):
    """Session store backed by the shared SQLAlchemy engine.

    The blocking query runs in the event loop's default executor so the
    loop keeps serving other sessions while the database responds.
    """

    def __init__(self, engine: Optional[Engine] = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        # Resolved on first use so importing the app never opens a pool
        if self._engine is None:
            self._engine = get_engine()
        return self._engine

    async def find_by_verify_uuid(self, verify_uuid: str) -> Optional[SessionRecord]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._find, verify_uuid)

    def _find(self, verify_uuid: str) -> Optional[SessionRecord]:
        stmt = select(UserVerification).where(UserVerification.verify_uuid == verify_uuid)
        with Session(self.engine) as db:
            row = db.execute(stmt).scalars().first()
            if row is None:
                log.debug(f"No session row for {short_id(verify_uuid)}")
                return None
            return row.to_record()


# =============================================================================
# IN-MEMORY SESSION STORE
# =============================================================================


class InMemorySessionStore(SessionStore):
    """Dict-backed store for tests and local demos.

    Returned records are copies; callers cannot mutate stored state.
    """

    def __init__(self, records: Optional[Iterable[SessionRecord]] = None) -> None:
        self._records: Dict[str, SessionRecord] = {}
        self._lock = asyncio.Lock()
        for record in records or ():
            self._records[record["verifyUuid"]] = dict(record)

    def add(self, record: SessionRecord) -> None:
        """Insert or replace a record keyed by its ``verifyUuid``."""
        self._records[record["verifyUuid"]] = dict(record)

    async def find_by_verify_uuid(self, verify_uuid: str) -> Optional[SessionRecord]:
        async with self._lock:
            record = self._records.get(verify_uuid)
            return dict(record) if record is not None else None


# =============================================================================
# SINGLETON
# =============================================================================

_session_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    """Get or create the session store singleton (SQL-backed)."""
    global _session_store

    if _session_store is None:
        _session_store = SqlSessionStore()

    return _session_store


def reset_session_store() -> None:
    """Reset the singleton for testing."""
    global _session_store
    _session_store = None
