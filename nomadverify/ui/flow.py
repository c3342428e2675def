"""Verification page flow.

Drives one page visit through

    Loading -> SessionError            (lookup or initialization failed)
    Loading -> Ready -> VerifiedRedirect

Resolution and request construction run strictly in sequence. Every
resumption after an await is checked against the flow's generation, so a
closed or restarted flow never applies a transition for a stale session id.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from nomadverify.core.config import REDIRECT_DELAY_SECONDS, VERIFIED_PATH, load_static_config
from nomadverify.exceptions import BuildError, CallbackError, ResolveError
from nomadverify.logging_config import short_id
from nomadverify.proof.builder import build
from nomadverify.proof.models import StaticConfig
from nomadverify.proof.sdk import ProofSdk
from nomadverify.ui.client import SessionSource
from nomadverify.ui.notify import Clipboard, ExternalOpener, LinkActions, Notifier
from nomadverify.ui.state import (
    INIT_ERROR,
    LOOKUP_ERROR,
    FlowState,
    Loading,
    Ready,
    SessionError,
    VerifiedRedirect,
)

log = logging.getLogger(__name__)

MSG_VERIFIED = "🎉 Verification successful! Updating Discord..."
MSG_PROOF_FAILED = "❌ Verification failed. Please try again."


class VerificationFlow:
    """State machine for one verification page.

    Args:
        sessions: Session source (SessionResolver or HttpSessionClient).
        config: Proof request settings; defaults to the process config.
        sdk: Proof SDK capability; defaults to SelfProofSdk.
        notifier: Toast sink; a private Notifier is created if omitted.
        clipboard: Host clipboard used by copy_link().
        opener: Host opener used by open_external().
        navigate: Called with the target path on VerifiedRedirect.
        redirect_delay: Seconds between the success toast and the redirect.
    """

    def __init__(
        self,
        sessions: SessionSource,
        config: Optional[StaticConfig] = None,
        sdk: Optional[ProofSdk] = None,
        notifier: Optional[Notifier] = None,
        clipboard: Optional[Clipboard] = None,
        opener: Optional[ExternalOpener] = None,
        navigate: Optional[Callable[[str], None]] = None,
        redirect_delay: float = REDIRECT_DELAY_SECONDS,
        verified_path: str = VERIFIED_PATH,
    ) -> None:
        self.sessions = sessions
        self.config = config or load_static_config()
        self.sdk = sdk
        self.notifier = notifier or Notifier()
        self.clipboard = clipboard
        self.opener = opener
        self.navigate = navigate
        self.redirect_delay = redirect_delay
        self.verified_path = verified_path

        self.state: Optional[FlowState] = None
        self.actions: Optional[LinkActions] = None
        self._generation = 0
        self._redirect: Optional[asyncio.TimerHandle] = None

    @property
    def copied(self) -> bool:
        return self.actions is not None and self.actions.copied

    async def start(self, session_id: str) -> Optional[FlowState]:
        """Resolve the session and build its proof request.

        Returns:
            The resulting state: SessionError or Ready. If the flow was closed
            or restarted meanwhile, the current state is returned untouched
            (None after close()).
        """
        self._reset()
        generation = self._generation
        self.state = Loading(session_id)

        try:
            session = await self.sessions.resolve(session_id)
        except ResolveError as e:
            if self._is_stale(generation, session_id):
                return self.state
            log.error(
                f"Session lookup failed for {short_id(session_id)}: {e.code}",
                extra={"session_id": short_id(session_id), "error_code": e.code},
            )
            self.state = SessionError(message=e.message, kind=LOOKUP_ERROR, code=e.code)
            return self.state

        if self._is_stale(generation, session_id):
            return self.state

        try:
            result = build(session, self.config, self.sdk)
        except BuildError as e:
            log.error(
                f"Verification app initialization failed for {short_id(session_id)}: {e.reason}",
                extra={"session_id": short_id(session_id), "error_code": e.code},
            )
            self.state = SessionError(message=e.message, kind=INIT_ERROR, code=e.code)
            return self.state

        self.state = Ready(session=session, request=result.request, link=result.link)
        self.actions = LinkActions(
            result.link,
            self.notifier,
            clipboard=self.clipboard,
            opener=self.opener,
        )
        return self.state

    def handle_proof_success(self, payload: Optional[Any] = None) -> None:
        """Proof accepted: toast now, redirect after ``redirect_delay``.

        The bot reconciles Discord and on-chain state on its own; nothing is
        re-fetched here.
        """
        if not isinstance(self.state, Ready):
            log.debug("Ignoring proof success outside Ready state")
            return
        self.notifier.notify(MSG_VERIFIED)
        if self._redirect is None:
            loop = asyncio.get_running_loop()
            self._redirect = loop.call_later(
                self.redirect_delay, self._complete, self._generation
            )

    def handle_proof_error(self, error: Any) -> None:
        """Proof rejected or cancelled: toast, stay Ready so the user can rescan."""
        if not isinstance(self.state, Ready):
            return
        failure = CallbackError(error)
        log.warning(str(failure), extra={"error_code": failure.code})
        self.notifier.notify(MSG_PROOF_FAILED)

    async def copy_link(self) -> bool:
        if self.actions is None:
            return False
        return await self.actions.copy_link()

    def open_external(self) -> None:
        if self.actions is not None:
            self.actions.open_external()

    def close(self) -> None:
        """Tear down: cancel timers and drop any in-flight resumption."""
        self._reset()
        self.state = None

    def _reset(self) -> None:
        self._generation += 1
        if self._redirect is not None:
            self._redirect.cancel()
            self._redirect = None
        if self.actions is not None:
            self.actions.close()
            self.actions = None
        self.notifier.close()

    def _is_stale(self, generation: int, session_id: str) -> bool:
        if generation != self._generation:
            log.debug(f"Dropping stale resumption for {short_id(session_id)}")
            return True
        return False

    def _complete(self, generation: int) -> None:
        self._redirect = None
        if generation != self._generation or not isinstance(self.state, Ready):
            return
        self.state = VerifiedRedirect(target=self.verified_path)
        if self.navigate is not None:
            self.navigate(self.verified_path)
