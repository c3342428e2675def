"""
nomadverify configuration constants.

Constants are organized into:
- PROTOCOL: Fixed by the Self Protocol app contract, not deployment tunable
- CONFIGURABLE: Defaults that may be overridden by deployment (env vars)
- UI TIMING: Notification and redirect delays used by the verification flow
- OPERATIONAL: Deployment-specific settings (env vars)

All values are read once, at import time.
"""

import os

from nomadverify.proof.models import StaticConfig

# =============================================================================
# PROTOCOL CONSTANTS (fixed by the Self app contract)
# =============================================================================

# SelfApp payload version understood by the Self mobile app
SELF_APP_VERSION: int = 2

# Celo mainnet
SELF_CHAIN_ID: int = 42220

# Verification contract lives on Celo; the Self relayer posts there
SELF_ENDPOINT_TYPE: str = "celo"

# Wallet addresses are bound as 0x-prefixed hex
SELF_USER_ID_TYPE: str = "hex"

# Self's universal-link redirector
SELF_REDIRECT_URL: str = "https://redirect.self.xyz"


# =============================================================================
# CONFIGURABLE DEFAULTS
# =============================================================================

SELF_APP_NAME: str = os.getenv("NOMAD_SELF_APP_NAME", "CryptoNomads Verification")
SELF_SCOPE: str = os.getenv("NOMAD_SELF_SCOPE", "crypto-nomads")

# Empty endpoint is allowed here; request construction reports it as a
# BuildError rather than failing at startup.
SELF_ENDPOINT: str = os.getenv("NOMAD_SELF_ENDPOINT", "")

SELF_LOGO_URL: str = os.getenv(
    "NOMAD_SELF_LOGO_URL", "https://i.postimg.cc/mrmVf9hm/self.png"
)

SELF_DEV_MODE: bool = os.getenv("NOMAD_SELF_DEV_MODE", "false").lower() == "true"

# Disclosure policy
MINIMUM_AGE: int = int(os.getenv("NOMAD_MINIMUM_AGE", "18"))
DISCLOSE_NATIONALITY: bool = os.getenv("NOMAD_DISCLOSE_NATIONALITY", "true").lower() == "true"
DISCLOSE_GENDER: bool = os.getenv("NOMAD_DISCLOSE_GENDER", "true").lower() == "true"
OFAC_CHECK: bool = os.getenv("NOMAD_OFAC_CHECK", "false").lower() == "true"


def _parse_excluded_countries() -> tuple[str, ...]:
    """Parse comma-separated ISO 3166-1 alpha-3 country codes from environment.

    Environment variable format:
        NOMAD_EXCLUDED_COUNTRIES=PAK,PRK

    Returns:
        Tuple of upper-cased country codes. Defaults to Pakistan only.
    """
    env_value = os.getenv("NOMAD_EXCLUDED_COUNTRIES")
    if env_value is None:
        return ("PAK",)
    return tuple(c.strip().upper() for c in env_value.split(",") if c.strip())


EXCLUDED_COUNTRIES: tuple[str, ...] = _parse_excluded_countries()


# =============================================================================
# UI TIMING
# =============================================================================

# How long a toast stays visible
TOAST_DURATION_MS: int = 4000

# How long the "Copied!" indicator stays on after a clipboard write
COPIED_INDICATOR_MS: int = 2000

# Delay between the success toast and the redirect to the verified view
REDIRECT_DELAY_SECONDS: float = 2.0

VERIFIED_PATH: str = "/verified"

# How often the verification page polls for proof status
PROOF_STATUS_POLL_MS: int = 1000


# =============================================================================
# OPERATIONAL SETTINGS
# =============================================================================

# SQLAlchemy URL of the session store written by the Discord bot
DATABASE_URL: str = os.getenv("NOMAD_DATABASE_URL", "sqlite:///./nomadverify.db")

SESSION_TABLE: str = os.getenv("NOMAD_SESSION_TABLE", "user_verifications")

# Base URL used by HttpSessionClient when talking to the lookup endpoint
API_BASE_URL: str = os.getenv("NOMAD_API_BASE_URL", "http://localhost:8000")

# How long a rendered page's flow accepts proof callbacks
FLOW_TTL_SECONDS: float = float(os.getenv("NOMAD_FLOW_TTL_SECONDS", "900"))

# Controls whether /admin endpoint returns configuration data
ADMIN_ENDPOINT_ENABLED: bool = os.getenv("ADMIN_ENDPOINT_ENABLED", "true").lower() == "true"


def load_static_config() -> StaticConfig:
    """Snapshot the proof-request configuration for this process."""
    return StaticConfig(
        app_name=SELF_APP_NAME,
        scope=SELF_SCOPE,
        endpoint=SELF_ENDPOINT,
        chain_id=SELF_CHAIN_ID,
        endpoint_type=SELF_ENDPOINT_TYPE,
        user_id_type=SELF_USER_ID_TYPE,
        version=SELF_APP_VERSION,
        logo_url=SELF_LOGO_URL,
        dev_mode=SELF_DEV_MODE,
        minimum_age=MINIMUM_AGE,
        excluded_countries=EXCLUDED_COUNTRIES,
        disclose_nationality=DISCLOSE_NATIONALITY,
        disclose_gender=DISCLOSE_GENDER,
        ofac=OFAC_CHECK,
    )
