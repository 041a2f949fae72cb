"""Tests for routing raw reaction events to the support and vote pipelines."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from AgoraPact.cogs.Governance.listeners.ReactionListener import ReactionListener
from AgoraPact.cogs.Governance.ProposalParser import ProposalParser
from tests.fakes import BOT_ID, POLICY_DEBATE, POLICY_VOTE

GUILD_ID = 555
USER_ID = 777


def _make_payload(channel_id: int, message_id: int, emoji: str = "✅", **overrides):
    data = dict(
        guild_id=GUILD_ID,
        user_id=USER_ID,
        channel_id=channel_id,
        message_id=message_id,
        emoji=emoji,
    )
    data.update(overrides)
    return SimpleNamespace(**data)


@pytest.fixture
def logic(governance_config, gateway):
    logic = MagicMock()
    logic.parser = ProposalParser(governance_config)
    logic.gateway = gateway
    logic.on_support_signal = AsyncMock()
    logic.on_vote_signal = AsyncMock(return_value=True)
    return logic


@pytest.fixture
def listener(logic) -> ReactionListener:
    bot = MagicMock()
    bot.guild_id = GUILD_ID
    bot.user.id = BOT_ID
    return ReactionListener(bot, logic)


class TestReactionListener:
    @pytest.mark.asyncio
    async def test_support_reaction_in_debate_channel(self, listener, logic, gateway):
        post = gateway.seed_message(POLICY_DEBATE, "**Policy**: Quiet hours")
        gateway.react(POLICY_DEBATE, post.id, "✅", users=2)

        await listener.on_raw_reaction_add(_make_payload(POLICY_DEBATE, post.id))

        logic.on_support_signal.assert_awaited_once()
        candidate, support = logic.on_support_signal.await_args.args
        assert candidate.id == post.id
        assert support == 2
        logic.on_vote_signal.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_support_removal_is_ignored(self, listener, logic, gateway):
        post = gateway.seed_message(POLICY_DEBATE, "**Policy**: Quiet hours")
        await listener.on_raw_reaction_remove(_make_payload(POLICY_DEBATE, post.id))
        logic.on_support_signal.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("added", [True, False])
    async def test_vote_reaction_in_vote_channel(self, listener, logic, added):
        payload = _make_payload(POLICY_VOTE, 42, emoji="❌")
        if added:
            await listener.on_raw_reaction_add(payload)
        else:
            await listener.on_raw_reaction_remove(payload)

        logic.on_vote_signal.assert_awaited_once_with(42, "❌", added)
        logic.on_support_signal.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ignores_other_emoji(self, listener, logic):
        await listener.on_raw_reaction_add(_make_payload(POLICY_VOTE, 42, emoji="🎉"))
        logic.on_vote_signal.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ignores_own_reactions(self, listener, logic):
        await listener.on_raw_reaction_add(_make_payload(POLICY_VOTE, 42, user_id=BOT_ID))
        logic.on_vote_signal.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ignores_other_guilds_and_channels(self, listener, logic):
        await listener.on_raw_reaction_add(_make_payload(POLICY_VOTE, 42, guild_id=1))
        await listener.on_raw_reaction_add(_make_payload(POLICY_VOTE, 42, guild_id=None))
        await listener.on_raw_reaction_add(_make_payload(31337, 42))
        logic.on_vote_signal.assert_not_awaited()
        logic.on_support_signal.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pipeline_errors_are_contained(self, listener, logic):
        logic.on_vote_signal.side_effect = RuntimeError("database locked")
        await listener.on_raw_reaction_add(_make_payload(POLICY_VOTE, 42))
        logic.on_vote_signal.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_debate_message_is_contained(self, listener, logic):
        await listener.on_raw_reaction_add(_make_payload(POLICY_DEBATE, 404))
        logic.on_support_signal.assert_not_awaited()
