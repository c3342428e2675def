"""
Verification session models.

VerificationSession is the normalized snapshot of one Discord verification
session. Field names on the wire are the camelCase names of the lookup
endpoint contract; Python code uses the snake_case attributes.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode:
    """Error code registry shared by the API, resolver, builder and UI."""
    # Lookup layer
    INVALID_INPUT = "INVALID_INPUT"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Request construction layer
    MISSING_IDENTITY = "MISSING_IDENTITY"
    LINK_DERIVATION_FAILED = "LINK_DERIVATION_FAILED"

    # Client layer
    PROOF_CALLBACK_FAILED = "PROOF_CALLBACK_FAILED"
    CLIPBOARD_FAILED = "CLIPBOARD_FAILED"
    OPEN_EXTERNAL_FAILED = "OPEN_EXTERNAL_FAILED"


# =============================================================================
# Session
# =============================================================================

class SessionStatus(str, Enum):
    """Derived session status. Never stored."""
    PENDING = "pending"
    COMPLETED = "completed"


class VerificationSession(BaseModel):
    """Normalized session snapshot.

    Identity fields may be None when the stored record is incomplete; the
    request builder rejects sessions it cannot bind. ``on_chain_verified``
    is owned by the settlement bot and only read here.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    session_id: str = Field(alias="verifyUuid")
    discord_user_id: Optional[str] = None
    username: Optional[str] = None
    wallet_address: Optional[str] = None
    guild_id: Optional[str] = None

    verified: bool = False
    on_chain_verified: bool = False

    # Disclosure outputs, present only after a successful proof
    country: Optional[str] = None
    gender: Optional[str] = None
    is_adult: Optional[bool] = None
    ens_name: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None

    @computed_field
    @property
    def status(self) -> SessionStatus:
        return SessionStatus.COMPLETED if self.verified else SessionStatus.PENDING


# =============================================================================
# Lookup endpoint responses
# =============================================================================

class SessionLookupResponse(BaseModel):
    """200 body for GET /api/user/{uuid}"""
    success: bool = True
    data: VerificationSession


class LookupErrorResponse(BaseModel):
    """4xx/5xx body for GET /api/user/{uuid}. None fields are omitted."""
    success: bool = False
    error: str
    message: Optional[str] = None
    code: Optional[str] = None


# =============================================================================
# Proof status endpoints
# =============================================================================

class ProofCallbackRequest(BaseModel):
    """Body for POST /api/proof/{request_id}: the relayer's proof outcome."""
    status: Literal["success", "error"]
    reason: Optional[str] = None


class ProofStatusResponse(BaseModel):
    """Body for GET/POST /api/proof/{request_id}, polled by the verification page."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    request_id: str
    state: str
    toast: Optional[str] = None
    toast_seq: int = 0
    redirect: Optional[str] = None
