"""Verification page flow.

The flow orchestrates session lookup and proof request construction for
one page visit and owns the page's notifications and link actions.
"""

from nomadverify.ui.flow import VerificationFlow
from nomadverify.ui.notify import LinkActions, Notifier
from nomadverify.ui.state import FlowState, Loading, Ready, SessionError, VerifiedRedirect

__all__ = [
    "FlowState",
    "LinkActions",
    "Loading",
    "Notifier",
    "Ready",
    "SessionError",
    "VerificationFlow",
    "VerifiedRedirect",
]
