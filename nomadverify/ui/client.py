"""HTTP client for the session lookup endpoint.

Used by hosts that are not colocated with the session store. Maps the
endpoint's status codes back onto ResolveError so the verification flow
handles remote and local lookups identically.
"""

import logging
from typing import Optional, Protocol
from urllib.parse import quote

import httpx

from nomadverify.core.config import API_BASE_URL
from nomadverify.exceptions import ResolveError
from nomadverify.logging_config import short_id
from nomadverify.session.models import ErrorCode, VerificationSession

log = logging.getLogger(__name__)


class SessionSource(Protocol):
    """Anything that resolves a session id (SessionResolver, HttpSessionClient)."""

    async def resolve(self, session_id: Optional[str]) -> VerificationSession: ...


class HttpSessionClient:
    """Resolves sessions through GET /api/user/{uuid}.

    Args:
        base_url: Service root, e.g. "https://verify.example.com".
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def resolve(self, session_id: Optional[str]) -> VerificationSession:
        if session_id is None or not session_id.strip():
            raise ResolveError.invalid_input()

        url = f"{self.base_url}/api/user/{quote(session_id, safe='')}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url)
            body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.error(f"Session lookup request failed for {short_id(session_id)}: {e}")
            raise ResolveError.backend() from e

        if resp.status_code == 200 and body.get("success"):
            try:
                return VerificationSession.model_validate(body["data"])
            except (KeyError, ValueError) as e:
                log.error(f"Malformed session payload for {short_id(session_id)}: {e}")
                raise ResolveError.backend() from e

        code = body.get("code")
        if resp.status_code == 404 or code == ErrorCode.SESSION_NOT_FOUND:
            raise ResolveError.not_found()
        if resp.status_code == 400:
            raise ResolveError.invalid_input()

        log.error(
            f"Session lookup for {short_id(session_id)} returned {resp.status_code}: "
            f"{body.get('error')}"
        )
        raise ResolveError.backend()
