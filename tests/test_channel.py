"""Tests for live proof channels and the flow registry.

Coverage target: nomadverify/ui/channel.py
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from conftest import SESSION_UUID
from nomadverify.session.resolver import SessionResolver
from nomadverify.ui.channel import (
    STATE_PENDING,
    STATE_READY,
    STATE_VERIFIED,
    FlowRegistry,
    ProofChannel,
    get_flow_registry,
    reset_flow_registry,
)
from nomadverify.ui.flow import MSG_PROOF_FAILED, MSG_VERIFIED, VerificationFlow
from nomadverify.ui.notify import Notifier


@pytest.fixture
def channel_with_flow(store, static_config):
    channel = ProofChannel()
    flow = VerificationFlow(
        SessionResolver(store),
        config=static_config,
        notifier=Notifier(on_change=channel.on_toast),
        navigate=channel.on_navigate,
        redirect_delay=0.02,
    )
    channel.flow = flow
    yield channel
    flow.close()


class TestProofChannel:

    @pytest.mark.asyncio
    async def test_state_follows_flow(self, channel_with_flow):
        channel = channel_with_flow
        assert channel.state == STATE_PENDING

        await channel.flow.start(SESSION_UUID)
        assert channel.state == STATE_READY

        channel.flow.handle_proof_success()
        assert channel.toast == MSG_VERIFIED
        assert channel.state == STATE_READY

        await asyncio.sleep(0.06)
        assert channel.state == STATE_VERIFIED
        assert channel.redirect == "/verified"

    @pytest.mark.asyncio
    async def test_toast_sequence_counts_shown_messages(self, channel_with_flow):
        channel = channel_with_flow
        await channel.flow.start(SESSION_UUID)

        channel.flow.handle_proof_error("rejected")
        channel.flow.handle_proof_error("rejected again")

        assert channel.toast == MSG_PROOF_FAILED
        assert channel.toast_seq == 2

    def test_dismiss_does_not_count(self):
        channel = ProofChannel()
        channel.on_toast("hello")
        channel.on_toast(None)
        assert channel.toast == "hello"
        assert channel.toast_seq == 1


class TestFlowRegistry:

    def test_register_and_get(self):
        registry = FlowRegistry(ttl_seconds=60)
        channel = ProofChannel()

        registry.register("r1", channel)

        assert registry.get("r1") is channel
        assert registry.get("r2") is None
        assert len(registry) == 1

    def test_expired_channel_is_closed_and_dropped(self):
        registry = FlowRegistry(ttl_seconds=60)
        channel = ProofChannel()
        channel.flow = MagicMock()
        registry.register("r1", channel)

        with patch("nomadverify.ui.channel.time.monotonic", return_value=channel.created + 61):
            assert registry.get("r1") is None

        channel.flow.close.assert_called_once()
        assert len(registry) == 0

    def test_register_prunes_expired(self):
        registry = FlowRegistry(ttl_seconds=60)
        old = ProofChannel()
        registry.register("old", old)

        with patch("nomadverify.ui.channel.time.monotonic", return_value=old.created + 61):
            fresh = ProofChannel()
            fresh.created = old.created + 61
            registry.register("fresh", fresh)

            assert registry.get("old") is None
            assert registry.get("fresh") is fresh

    def test_discard_closes_flow(self):
        registry = FlowRegistry()
        channel = ProofChannel()
        channel.flow = MagicMock()
        registry.register("r1", channel)

        registry.discard("r1")
        registry.discard("r1")

        channel.flow.close.assert_called_once()


class TestSingleton:

    def test_get_returns_same_instance(self):
        assert get_flow_registry() is get_flow_registry()

    def test_reset_closes_live_flows(self):
        channel = ProofChannel()
        channel.flow = MagicMock()
        get_flow_registry().register("r1", channel)

        reset_flow_registry()

        channel.flow.close.assert_called_once()
        assert len(get_flow_registry()) == 0
