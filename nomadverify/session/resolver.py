"""Session resolver.

Turns an opaque session UUID into a VerificationSession, classifying
every failure as one of INVALID_INPUT, SESSION_NOT_FOUND or INTERNAL_ERROR.
The resolver only reads; calling it repeatedly is safe.
"""

import logging
from typing import Any, Optional

from nomadverify.exceptions import ResolveError
from nomadverify.logging_config import short_id
from nomadverify.session.models import VerificationSession
from nomadverify.session.store import SessionRecord, SessionStore, get_session_store

log = logging.getLogger(__name__)

# Identity fields every well-formed record carries (bot document naming)
IDENTITY_FIELDS = ("userId", "username", "walletAddress", "guildId")


def _str_or_none(value: Any) -> Optional[str]:
    # Discord snowflakes are sometimes stored as numbers
    if value is None or value == "":
        return None
    return str(value)


def map_record(record: SessionRecord) -> VerificationSession:
    """Map a raw store record onto a VerificationSession.

    Absent optional fields map to None; absent flags map to False.
    Incomplete identity is logged as a data-integrity problem but does not
    fail the lookup; the request builder decides whether it can bind.
    """
    missing = [f for f in IDENTITY_FIELDS if not record.get(f)]
    if missing:
        log.warning(
            f"Session record {short_id(record.get('verifyUuid'))} missing identity fields: "
            f"{', '.join(missing)}"
        )

    return VerificationSession(
        session_id=str(record["verifyUuid"]),
        discord_user_id=_str_or_none(record.get("userId")),
        username=_str_or_none(record.get("username")),
        wallet_address=_str_or_none(record.get("walletAddress")),
        guild_id=_str_or_none(record.get("guildId")),
        verified=bool(record.get("verified") or False),
        on_chain_verified=bool(record.get("onChainVerified") or False),
        country=_str_or_none(record.get("selectedCountry")),
        gender=_str_or_none(record.get("gender")),
        is_adult=record.get("isAdult"),
        ens_name=_str_or_none(record.get("ensName")),
        created_at=record.get("createdAt"),
        updated_at=record.get("updatedAt"),
        verified_at=record.get("verifiedAt"),
    )


class SessionResolver:
    """Resolves session UUIDs against a SessionStore."""

    def __init__(self, store: Optional[SessionStore] = None) -> None:
        self._store = store

    @property
    def store(self) -> SessionStore:
        if self._store is None:
            self._store = get_session_store()
        return self._store

    async def resolve(self, session_id: Optional[str]) -> VerificationSession:
        """Resolve a session UUID.

        Raises:
            ResolveError: invalid_input for a blank id (store not called),
                not_found when no record matches, backend for any store failure
                or a record that cannot be mapped.
        """
        if session_id is None or not session_id.strip():
            raise ResolveError.invalid_input()

        log.info(f"Looking up verification session {short_id(session_id)}")

        try:
            record = await self.store.find_by_verify_uuid(session_id)
        except Exception as e:
            log.exception(
                f"Session store lookup failed for {short_id(session_id)}: {e}",
                extra={"session_id": short_id(session_id), "error_code": "INTERNAL_ERROR"},
            )
            raise ResolveError.backend() from e

        if record is None:
            log.info(f"No verification session found for {short_id(session_id)}")
            raise ResolveError.not_found()

        try:
            session = map_record(record)
        except (KeyError, TypeError, ValueError) as e:
            log.exception(f"Unmappable session record for {short_id(session_id)}: {e}")
            raise ResolveError.backend() from e

        log.info(f"Found session for {session.username} ({session.discord_user_id})")
        return session
