"""
Proof request models.

A ProofRequest is the Self Protocol "SelfApp" for one page visit: the
deployment-wide app settings plus the wallet and Discord user it is bound
to. It is rebuilt on every visit and never stored.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Tuple


@dataclass(frozen=True)
class StaticConfig:
    """Deployment-wide proof request settings, read once at startup."""

    app_name: str
    scope: str
    endpoint: str
    chain_id: int
    endpoint_type: str
    user_id_type: str
    version: int
    logo_url: str = ""
    dev_mode: bool = False
    minimum_age: int = 18
    excluded_countries: Tuple[str, ...] = ("PAK",)
    disclose_nationality: bool = True
    disclose_gender: bool = True
    ofac: bool = False


@dataclass(frozen=True)
class DisclosurePolicy:
    """What a proof must reveal or satisfy.

    Attributes:
        minimum_age: Holder must be at least this old.
        excluded_countries: ISO 3166-1 alpha-3 nationalities that are refused.
        nationality: Reveal nationality.
        gender: Reveal gender.
        ofac: Require OFAC sanctions screening.
    """

    minimum_age: int
    excluded_countries: FrozenSet[str]
    nationality: bool
    gender: bool
    ofac: bool

    def to_dict(self) -> Dict[str, Any]:
        """Self disclosure config shape."""
        return {
            "minimumAge": self.minimum_age,
            "excludedCountries": sorted(self.excluded_countries),
            "ofac": self.ofac,
            "nationality": self.nationality,
            "gender": self.gender,
        }


@dataclass(frozen=True)
class ProofRequest:
    """One Self verification request bound to a single user.

    ``session_id`` is minted by the proof SDK on every build, so two
    requests for the same user are never equal.
    """

    version: int
    app_name: str
    scope: str
    endpoint: str
    chain_id: int
    endpoint_type: str
    user_id: str
    user_id_type: str
    user_defined_data: str
    disclosures: DisclosurePolicy
    session_id: str
    logo_base64: str = ""
    dev_mode: bool = False
    header: str = ""
    deeplink_callback: str = ""

    def to_self_app(self) -> Dict[str, Any]:
        """Serialize in the camelCase SelfApp shape the Self app expects."""
        return {
            "appName": self.app_name,
            "logoBase64": self.logo_base64,
            "endpointType": self.endpoint_type,
            "endpoint": self.endpoint,
            "deeplinkCallback": self.deeplink_callback,
            "header": self.header,
            "scope": self.scope,
            "sessionId": self.session_id,
            "userId": self.user_id,
            "userIdType": self.user_id_type,
            "devMode": self.dev_mode,
            "disclosures": self.disclosures.to_dict(),
            "version": self.version,
            "chainID": self.chain_id,
            "userDefinedData": self.user_defined_data,
        }


@dataclass(frozen=True)
class BuildResult:
    """Proof request plus the universal link derived from it."""

    request: ProofRequest
    link: str
