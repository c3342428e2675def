"""Proof SDK capability.

The Self Protocol verifies proofs; this service only asks it for a request
and a universal link. ProofSdk is that boundary. SelfProofSdk implements it
locally with the same validation rules as Self's app builder and the same
link format as its universal-link helper.

Building a request mints a new Self session id, so neither call may be
cached across page visits.
"""

import json
import re
import uuid
from abc import ABC, abstractmethod
from typing import Callable
from urllib.parse import quote

from nomadverify.core.config import SELF_REDIRECT_URL
from nomadverify.exceptions import ProofSdkError
from nomadverify.proof.models import DisclosurePolicy, ProofRequest

# Self caps scope length so it fits in one field element
MAX_SCOPE_LENGTH = 31

HEX_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]+$")

# Endpoint types that are plain web backends rather than contracts
HTTPS_ENDPOINT_TYPES = frozenset({"https", "staging_https"})
CONTRACT_ENDPOINT_TYPES = frozenset({"celo", "staging_celo"})


class ProofSdk(ABC):
    """Request construction and link derivation capability."""

    @abstractmethod
    def build_request(
        self,
        *,
        version: int,
        app_name: str,
        scope: str,
        endpoint: str,
        chain_id: int,
        endpoint_type: str,
        user_id: str,
        user_id_type: str,
        user_defined_data: str,
        disclosures: DisclosurePolicy,
        logo_base64: str = "",
        dev_mode: bool = False,
    ) -> ProofRequest:
        """Validate the app config and mint a ProofRequest.

        Raises:
            ProofSdkError: If the config is rejected.
        """
        ...

    @abstractmethod
    def derive_link(self, request: ProofRequest) -> str:
        """Derive the universal link that opens the request in the Self app.

        Raises:
            ProofSdkError: If the link cannot be derived.
        """
        ...


class SelfProofSdk(ProofSdk):
    """Local implementation of the Self app builder and universal link."""

    def __init__(
        self,
        redirect_url: str = SELF_REDIRECT_URL,
        session_id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self.redirect_url = redirect_url
        self._new_session_id = session_id_factory

    def build_request(
        self,
        *,
        version: int,
        app_name: str,
        scope: str,
        endpoint: str,
        chain_id: int,
        endpoint_type: str,
        user_id: str,
        user_id_type: str,
        user_defined_data: str,
        disclosures: DisclosurePolicy,
        logo_base64: str = "",
        dev_mode: bool = False,
    ) -> ProofRequest:
        if not app_name:
            raise ProofSdkError("appName is required")
        if not scope:
            raise ProofSdkError("scope is required")
        if not endpoint:
            raise ProofSdkError("endpoint is required")
        if len(scope) > MAX_SCOPE_LENGTH:
            raise ProofSdkError(f"scope must be at most {MAX_SCOPE_LENGTH} characters")
        if not scope.isascii():
            raise ProofSdkError("scope must only contain ASCII characters")

        if endpoint_type in HTTPS_ENDPOINT_TYPES:
            if not endpoint.startswith("https://"):
                raise ProofSdkError("endpoint must start with https://")
            if "localhost" in endpoint or "127.0.0.1" in endpoint:
                raise ProofSdkError("localhost endpoints are not allowed")
        elif endpoint_type in CONTRACT_ENDPOINT_TYPES:
            if not HEX_ADDRESS_RE.match(endpoint):
                raise ProofSdkError("endpoint must be a contract address for contract endpoint types")
        else:
            raise ProofSdkError(f"unsupported endpointType: {endpoint_type}")

        if user_id_type == "hex":
            if not HEX_ADDRESS_RE.match(user_id or ""):
                raise ProofSdkError("userId must be a 0x-prefixed hex string")
        elif user_id_type == "uuid":
            try:
                uuid.UUID(user_id)
            except (TypeError, ValueError) as e:
                raise ProofSdkError("userId must be a valid UUID") from e
        else:
            raise ProofSdkError(f"unsupported userIdType: {user_id_type}")

        return ProofRequest(
            version=version,
            app_name=app_name,
            scope=scope,
            endpoint=endpoint,
            chain_id=chain_id,
            endpoint_type=endpoint_type,
            user_id=user_id,
            user_id_type=user_id_type,
            user_defined_data=user_defined_data,
            disclosures=disclosures,
            session_id=self._new_session_id(),
            logo_base64=logo_base64,
            dev_mode=dev_mode,
        )

    def derive_link(self, request: ProofRequest) -> str:
        if not self.redirect_url:
            raise ProofSdkError("redirect URL is not configured")
        try:
            payload = json.dumps(request.to_self_app(), separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise ProofSdkError(f"request is not serializable: {e}") from e
        # Same escaping as JavaScript's encodeURIComponent
        encoded = quote(payload, safe="!*'()")
        return f"{self.redirect_url}?selfApp={encoded}"
