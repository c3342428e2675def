"""Notifications and link actions for the verification page.

Notifier shows at most one toast at a time; a new toast replaces the
current one and restarts its timer. LinkActions copies or opens the
universal link and reports the outcome through the Notifier.

Timers use the running asyncio loop, so every method that schedules one
must be called from inside the loop.
"""

import asyncio
import logging
import webbrowser
from typing import Callable, Optional, Protocol

from nomadverify.core.config import COPIED_INDICATOR_MS, TOAST_DURATION_MS
from nomadverify.exceptions import UtilityFailure

log = logging.getLogger(__name__)

MSG_COPIED = "📋 Universal link copied to clipboard!"
MSG_COPY_FAILED = "❌ Failed to copy link"
MSG_OPENING = "📱 Opening Self App..."


class Clipboard(Protocol):
    async def write_text(self, text: str) -> None: ...


class ExternalOpener(Protocol):
    def open(self, url: str) -> Optional[bool]: ...


class WebbrowserOpener:
    """Opens links in a new browser tab of the host environment."""

    def open(self, url: str) -> Optional[bool]:
        return webbrowser.open_new_tab(url)


class Notifier:
    """Single-slot toast queue with auto-dismiss.

    Args:
        default_duration_ms: Visibility when notify() gets no duration.
        on_change: Called with the visible message (or None) on every change.
    """

    def __init__(
        self,
        default_duration_ms: int = TOAST_DURATION_MS,
        on_change: Optional[Callable[[Optional[str]], None]] = None,
    ) -> None:
        self.default_duration_ms = default_duration_ms
        self._on_change = on_change
        self._message: Optional[str] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def message(self) -> Optional[str]:
        """Currently visible message, or None."""
        return self._message

    def notify(self, message: str, duration_ms: Optional[int] = None) -> None:
        duration_ms = self.default_duration_ms if duration_ms is None else duration_ms
        loop = asyncio.get_running_loop()
        self._cancel_timer()
        self._set(message)
        self._timer = loop.call_later(duration_ms / 1000, self.dismiss)

    def dismiss(self) -> None:
        self._cancel_timer()
        self._set(None)

    def close(self) -> None:
        """Drop any pending expiry without emitting a change."""
        self._cancel_timer()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _set(self, message: Optional[str]) -> None:
        self._message = message
        if self._on_change is not None:
            self._on_change(message)


class LinkActions:
    """Copy / open actions for one universal link."""

    def __init__(
        self,
        link: str,
        notifier: Notifier,
        clipboard: Optional[Clipboard] = None,
        opener: Optional[ExternalOpener] = None,
        copied_ms: int = COPIED_INDICATOR_MS,
    ) -> None:
        self.link = link
        self.notifier = notifier
        self.clipboard = clipboard
        self.opener = opener or WebbrowserOpener()
        self.copied_ms = copied_ms
        self._copied = False
        self._copied_timer: Optional[asyncio.TimerHandle] = None

    @property
    def copied(self) -> bool:
        """True while the "Copied!" indicator is showing."""
        return self._copied

    async def copy_link(self) -> bool:
        """Write the link to the clipboard.

        Returns:
            True on success. On failure the indicator is left untouched.
        """
        if not self.link:
            return False
        try:
            if self.clipboard is None:
                raise RuntimeError("no clipboard available")
            await self.clipboard.write_text(self.link)
        except Exception as e:
            failure = UtilityFailure.clipboard(str(e))
            log.warning(failure.message, extra={"error_code": failure.code})
            self.notifier.notify(MSG_COPY_FAILED)
            return False

        loop = asyncio.get_running_loop()
        self._copied = True
        if self._copied_timer is not None:
            self._copied_timer.cancel()
        self._copied_timer = loop.call_later(self.copied_ms / 1000, self._reset_copied)
        self.notifier.notify(MSG_COPIED)
        return True

    def open_external(self) -> None:
        """Ask the host to open the link; always notifies.

        The host's result does not gate the toast. A False result or an
        opener exception is logged for operators.
        """
        if not self.link:
            return
        try:
            opened = self.opener.open(self.link)
        except Exception as e:
            failure = UtilityFailure.open_external(str(e))
            log.warning(failure.message, extra={"error_code": failure.code})
        else:
            if opened is False:
                log.warning("Host reported it could not open the universal link")
        self.notifier.notify(MSG_OPENING)

    def close(self) -> None:
        if self._copied_timer is not None:
            self._copied_timer.cancel()
            self._copied_timer = None

    def _reset_copied(self) -> None:
        self._copied = False
        self._copied_timer = None
