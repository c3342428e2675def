"""Pytest fixtures for nomadverify tests."""
import os
import tempfile
from datetime import datetime

# Keep the operator log out of the working tree
os.environ.setdefault("NOMAD_LOG_FILE", os.path.join(tempfile.gettempdir(), "nomadverify-test.log"))

import pytest

from nomadverify.proof.models import StaticConfig
from nomadverify.session.db import reset_engine
from nomadverify.session.store import InMemorySessionStore, reset_session_store
from nomadverify.ui.channel import reset_flow_registry


# =============================================================================
# Test identities
# =============================================================================

SESSION_UUID = "3f0c2a9e-7b41-4c55-9d0e-2d7b8f1e6a10"
DISCORD_USER_ID = "412345678901234567"
WALLET_ADDRESS = "0x8ba1f109551bD432803012645Ac136ddd64DBA72"
CONTRACT_ADDRESS = "0x1234567890abcdef1234567890abcdef12345678"


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset the store, engine and flow registry singletons around each test."""
    reset_session_store()
    reset_engine()
    reset_flow_registry()
    yield
    reset_session_store()
    reset_engine()
    reset_flow_registry()


@pytest.fixture
def static_config():
    return StaticConfig(
        app_name="CryptoNomads Verification",
        scope="crypto-nomads",
        endpoint=CONTRACT_ADDRESS,
        chain_id=42220,
        endpoint_type="celo",
        user_id_type="hex",
        version=2,
        logo_url="https://example.com/self.png",
    )


@pytest.fixture
def session_record():
    """A pending session as written by the Discord bot."""
    return {
        "verifyUuid": SESSION_UUID,
        "userId": DISCORD_USER_ID,
        "username": "nomad_alice",
        "walletAddress": WALLET_ADDRESS,
        "guildId": "998877665544332211",
        "verified": False,
        "onChainVerified": False,
        "createdAt": datetime(2026, 3, 1, 12, 0, 0),
        "updatedAt": datetime(2026, 3, 1, 12, 0, 0),
    }


@pytest.fixture
def verified_record(session_record):
    record = dict(session_record)
    record.update(
        verifyUuid="a1b2c3d4-0000-4000-8000-000000000001",
        verified=True,
        selectedCountry="PRT",
        gender="female",
        isAdult=True,
        ensName="alice.eth",
        verifiedAt=datetime(2026, 3, 1, 12, 5, 0),
    )
    return record


@pytest.fixture
def store(session_record, verified_record):
    return InMemorySessionStore([session_record, verified_record])
