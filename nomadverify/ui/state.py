"""Verification page states.

The page is always in exactly one of these states. Ready always holds a
session, a request and a link; there is no "ready but not built" value.
"""

from dataclasses import dataclass
from typing import Union

from nomadverify.proof.models import ProofRequest
from nomadverify.session.models import VerificationSession


@dataclass(frozen=True)
class Loading:
    session_id: str


@dataclass(frozen=True)
class SessionError:
    """Blocking error view. The user must restart from Discord.

    Attributes:
        message: Text shown to the user.
        kind: "lookup" for session resolution failures, "init" for proof
            request construction failures.
        code: ErrorCode of the underlying failure.
    """

    message: str
    kind: str
    code: str


@dataclass(frozen=True)
class Ready:
    session: VerificationSession
    request: ProofRequest
    link: str


@dataclass(frozen=True)
class VerifiedRedirect:
    target: str


FlowState = Union[Loading, SessionError, Ready, VerifiedRedirect]

LOOKUP_ERROR = "lookup"
INIT_ERROR = "init"
