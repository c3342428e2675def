"""Proof request builder.

Derives the Self proof request for a resolved session. The request binds
the user's wallet (``userId``) and carries the Discord user id in
``userDefinedData`` so the verification callback can be correlated back to
the Discord user without a second lookup.
"""

import logging
from typing import Optional

from nomadverify.exceptions import BuildError, ProofSdkError
from nomadverify.logging_config import short_id
from nomadverify.proof.models import BuildResult, DisclosurePolicy, StaticConfig
from nomadverify.proof.sdk import HEX_ADDRESS_RE, ProofSdk, SelfProofSdk
from nomadverify.session.models import VerificationSession

log = logging.getLogger(__name__)


def build_disclosure_policy(config: StaticConfig) -> DisclosurePolicy:
    """Disclosure policy for this deployment. Pure; rebuilt on every call."""
    return DisclosurePolicy(
        minimum_age=config.minimum_age,
        excluded_countries=frozenset(config.excluded_countries),
        nationality=config.disclose_nationality,
        gender=config.disclose_gender,
        ofac=config.ofac,
    )


def build(
    session: VerificationSession,
    config: StaticConfig,
    sdk: Optional[ProofSdk] = None,
) -> BuildResult:
    """Build the proof request and universal link for a session.

    Args:
        session: Resolved session.
        config: Static proof request settings.
        sdk: Proof SDK capability; defaults to SelfProofSdk.

    Returns:
        BuildResult with the request and its universal link.

    Raises:
        BuildError: missing_identity when the session has no well-formed
            wallet address or no Discord user id; link_derivation_failed when
            the SDK rejects the config or cannot derive the link.
    """
    wallet = session.wallet_address
    if not wallet:
        raise BuildError.missing_identity("session has no wallet address")
    if not HEX_ADDRESS_RE.match(wallet):
        raise BuildError.missing_identity(f"wallet address is not a hex address: {wallet!r}")
    if not session.discord_user_id:
        raise BuildError.missing_identity("session has no Discord user id")

    sdk = sdk or SelfProofSdk()

    try:
        request = sdk.build_request(
            version=config.version,
            app_name=config.app_name,
            scope=config.scope,
            endpoint=config.endpoint,
            chain_id=config.chain_id,
            endpoint_type=config.endpoint_type,
            user_id=wallet,
            user_id_type=config.user_id_type,
            user_defined_data=session.discord_user_id,
            disclosures=build_disclosure_policy(config),
            logo_base64=config.logo_url,
            dev_mode=config.dev_mode,
        )
        link = sdk.derive_link(request)
    except ProofSdkError as e:
        log.error(
            f"Proof request initialization failed for {short_id(session.session_id)}: {e}",
            extra={"session_id": short_id(session.session_id), "error_code": "LINK_DERIVATION_FAILED"},
        )
        raise BuildError.link_derivation_failed(str(e)) from e

    log.info(f"Proof request initialized with wallet {wallet}")
    return BuildResult(request=request, link=link)
