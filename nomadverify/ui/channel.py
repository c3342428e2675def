"""Live verification flows for rendered pages.

A rendered verification page keeps its VerificationFlow alive in the
FlowRegistry, addressed by the proof request's session id (the id the Self
relayer reports proof status against). Proof callbacks drive the flow; the
page polls the channel for toasts and the redirect target.

The registry is touched from the event loop only.
"""

import logging
import time
from typing import Dict, Optional

from nomadverify.core.config import FLOW_TTL_SECONDS
from nomadverify.logging_config import short_id
from nomadverify.ui.flow import VerificationFlow
from nomadverify.ui.state import Ready, VerifiedRedirect

log = logging.getLogger(__name__)

STATE_PENDING = "pending"
STATE_READY = "ready"
STATE_VERIFIED = "verified"


class ProofChannel:
    """Observable side of one page's flow.

    Passed to VerificationFlow as the Notifier's on_change hook and as its
    navigate callback, so the page sees exactly what the flow emits.
    """

    def __init__(self) -> None:
        self.flow: Optional[VerificationFlow] = None
        self.created = time.monotonic()
        self.toast: Optional[str] = None
        self.toast_seq = 0
        self.redirect: Optional[str] = None

    def on_toast(self, message: Optional[str]) -> None:
        if message is None:
            return
        self.toast = message
        self.toast_seq += 1

    def on_navigate(self, target: str) -> None:
        self.redirect = target

    @property
    def state(self) -> str:
        current = self.flow.state if self.flow is not None else None
        if isinstance(current, VerifiedRedirect) or self.redirect is not None:
            return STATE_VERIFIED
        if isinstance(current, Ready):
            return STATE_READY
        return STATE_PENDING

    def close(self) -> None:
        if self.flow is not None:
            self.flow.close()


class FlowRegistry:
    """Request id -> ProofChannel, with expiry."""

    def __init__(self, ttl_seconds: float = FLOW_TTL_SECONDS) -> None:
        self.ttl_seconds = ttl_seconds
        self._channels: Dict[str, ProofChannel] = {}

    def __len__(self) -> int:
        return len(self._channels)

    def register(self, request_id: str, channel: ProofChannel) -> None:
        self.prune()
        self._channels[request_id] = channel
        log.info(f"Registered proof channel {short_id(request_id)}")

    def get(self, request_id: str) -> Optional[ProofChannel]:
        channel = self._channels.get(request_id)
        if channel is not None and self._expired(channel):
            self.discard(request_id)
            return None
        return channel

    def discard(self, request_id: str) -> None:
        channel = self._channels.pop(request_id, None)
        if channel is not None:
            channel.close()

    def prune(self) -> int:
        """Close and drop expired channels. Returns how many were dropped."""
        expired = [rid for rid, ch in self._channels.items() if self._expired(ch)]
        for rid in expired:
            self.discard(rid)
        if expired:
            log.debug(f"Pruned {len(expired)} expired proof channels")
        return len(expired)

    def close_all(self) -> None:
        for rid in list(self._channels):
            self.discard(rid)

    def _expired(self, channel: ProofChannel) -> bool:
        return time.monotonic() - channel.created > self.ttl_seconds


# =============================================================================
# Singleton
# =============================================================================

_flow_registry: Optional[FlowRegistry] = None


def get_flow_registry() -> FlowRegistry:
    global _flow_registry
    if _flow_registry is None:
        _flow_registry = FlowRegistry()
    return _flow_registry


def reset_flow_registry() -> None:
    """Close every live flow and drop the registry (for testing)."""
    global _flow_registry
    if _flow_registry is not None:
        _flow_registry.close_all()
    _flow_registry = None
