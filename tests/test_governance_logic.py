"""End-to-end lifecycle tests: debate -> voting -> resolution, against the fake gateway."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from AgoraPact.cogs.Governance.dto.PendingProposalDto import PendingProposalDto
from AgoraPact.cogs.Governance.GovernanceLogic import GovernanceLogic
from AgoraPact.share.enums.ProposalStatus import ProposalStatus
from AgoraPact.share.enums.VoteOption import VoteOption
from AgoraPact.share.UnitOfWork import UnitOfWork
from tests.fakes import (
    AUTHOR_ID,
    BOT_ID,
    MODERATOR_DEBATE,
    MODERATOR_ROLE_ID,
    MODERATOR_VOTE,
    POLICY_DEBATE,
    POLICY_VOTE,
    RESOLUTIONS,
    START,
)

POLICY_TEXT = "**Policy**: Quiet hours after midnight\nNo voice chat events after 00:00 UTC."
MEMBER_ID = 123456789012345678


async def _advance(logic, gateway, content=POLICY_TEXT, channel_id=POLICY_DEBATE, support=3):
    candidate = gateway.seed_message(channel_id, content)
    gateway.react(channel_id, candidate.id, VoteOption.SUPPORT, users=support)
    return candidate, await logic.on_support_signal(candidate, support)


def _vote(gateway, proposal, yes: int = 0, no: int = 0):
    if yes:
        gateway.react(proposal.vote_channel_id, proposal.vote_message_id, VoteOption.YES, yes)
    if no:
        gateway.react(proposal.vote_channel_id, proposal.vote_message_id, VoteOption.NO, no)


class TestSupportPhase:
    @pytest.mark.asyncio
    async def test_below_threshold_stays_in_debate(self, logic, gateway):
        _, proposal = await _advance(logic, gateway, support=2)
        assert proposal is None
        assert gateway.posts_in(POLICY_VOTE) == []

    @pytest.mark.asyncio
    async def test_threshold_moves_proposal_to_vote(self, logic, gateway, transitions):
        candidate, proposal = await _advance(logic, gateway)

        assert proposal is not None
        assert proposal.status == ProposalStatus.VOTING
        assert proposal.original_message_id == candidate.id
        assert proposal.proposal_type == "policy"
        assert proposal.start_time == START
        assert proposal.end_time == START + timedelta(hours=24)

        [vote_message] = gateway.posts_in(POLICY_VOTE)
        assert vote_message.id == proposal.vote_message_id
        assert vote_message.content.startswith("🗳️ **POLICY VOTING PHASE**")
        assert vote_message.signals.bot_participated(VoteOption.YES)
        assert vote_message.signals.bot_participated(VoteOption.NO)

        # the bot cannot edit a member's post, so the notice goes out as a reply
        assert gateway.replies == [
            (
                POLICY_DEBATE,
                candidate.id,
                f"**This proposal has been moved to voting in <#{POLICY_VOTE}>**",
            )
        ]
        assert [(t.from_status, t.to_status) for t in transitions] == [
            (ProposalStatus.NONE, ProposalStatus.VOTING)
        ]

    @pytest.mark.asyncio
    async def test_repeated_signals_advance_once(self, logic, gateway):
        candidate, first = await _advance(logic, gateway)
        second = await logic.on_support_signal(candidate, 4)

        assert first is not None
        assert second is None
        assert len(gateway.posts_in(POLICY_VOTE)) == 1

    @pytest.mark.asyncio
    async def test_losing_a_concurrent_advance_deletes_its_vote_message(self, logic, gateway):
        candidate = gateway.seed_message(POLICY_DEBATE, POLICY_TEXT)
        match = logic.parser.classify(POLICY_DEBATE, candidate.content)

        winner = await logic.advance_to_vote(candidate, match)
        loser = await logic.advance_to_vote(candidate, match)

        assert winner is not None
        assert loser is None
        [survivor] = gateway.posts_in(POLICY_VOTE)
        assert survivor.id == winner.vote_message_id
        assert len(gateway.deleted) == 1

    @pytest.mark.asyncio
    async def test_unformatted_message_is_ignored(self, logic, gateway):
        _, proposal = await _advance(logic, gateway, content="I think we should have quiet hours")
        assert proposal is None
        assert gateway.replies == []

    @pytest.mark.asyncio
    async def test_scheduler_is_rescheduled_on_new_vote(self, logic, gateway):
        scheduler = MagicMock()
        logic.bind_scheduler(scheduler)
        await _advance(logic, gateway)
        scheduler.reschedule.assert_called_once()

    @pytest.mark.asyncio
    async def test_failing_transition_observer_does_not_break_advance(
        self, db_handler, gateway, governance_config, clock
    ):
        observer = MagicMock(side_effect=RuntimeError("observer down"))
        logic = GovernanceLogic(
            db_handler, gateway, governance_config, clock=clock, on_transition=observer
        )
        _, proposal = await _advance(logic, gateway)
        assert proposal is not None
        observer.assert_called_once()


class TestVotingPhase:
    @pytest.mark.asyncio
    async def test_vote_counts_discount_bot_reactions(self, logic, gateway):
        _, proposal = await _advance(logic, gateway)
        _vote(gateway, proposal, yes=2, no=1)

        assert await logic.on_vote_signal(proposal.vote_message_id, VoteOption.YES, True)

        info = await logic.get_vote_info(proposal.vote_message_id)
        assert (info.yes_votes, info.no_votes) == (2, 1)

    @pytest.mark.asyncio
    async def test_signals_after_end_time_are_ignored(self, logic, gateway, clock):
        _, proposal = await _advance(logic, gateway)
        _vote(gateway, proposal, yes=2)
        await logic.on_vote_signal(proposal.vote_message_id)

        clock.advance(timedelta(hours=24))
        _vote(gateway, proposal, no=5)
        assert not await logic.on_vote_signal(proposal.vote_message_id)

        async with UnitOfWork(logic.db_handler) as uow:
            stored = await uow.proposal.get_by_vote_message_id(proposal.vote_message_id)
        assert (stored.yes_votes, stored.no_votes) == (2, 0)

    @pytest.mark.asyncio
    async def test_unknown_vote_message_is_ignored(self, logic):
        assert not await logic.on_vote_signal(42)

    @pytest.mark.asyncio
    async def test_vote_info_by_original_message(self, logic, gateway):
        candidate, proposal = await _advance(logic, gateway)
        info = await logic.get_vote_info(candidate.id)
        assert info is not None
        assert info.vote_message_id == proposal.vote_message_id
        assert await logic.get_vote_info(1) is None


class TestFinalize:
    @pytest.mark.asyncio
    async def test_tie_fails_without_resolution(self, logic, gateway, clock, transitions):
        _, proposal = await _advance(logic, gateway)
        _vote(gateway, proposal, yes=1, no=1)
        clock.advance(timedelta(hours=24))

        completed = await logic.finalize(proposal)

        assert completed.status == ProposalStatus.FAILED
        assert (completed.final_yes, completed.final_no) == (1, 1)
        assert gateway.posts_in(RESOLUTIONS) == []
        vote_message = gateway.channels[POLICY_VOTE][proposal.vote_message_id]
        assert vote_message.content.endswith(
            "**VOTING COMPLETED**\n❌ **FAILED**\n✅ Support: 1\n❌ Oppose: 1"
        )
        assert transitions[-1].to_status == ProposalStatus.FAILED

    @pytest.mark.asyncio
    async def test_pass_publishes_resolution(self, logic, gateway, clock):
        _, proposal = await _advance(logic, gateway)
        _vote(gateway, proposal, yes=2, no=1)
        clock.advance(timedelta(hours=24))

        completed = await logic.finalize(proposal)

        assert completed.status == ProposalStatus.PASSED
        assert completed.completed_at == START + timedelta(hours=24)
        [resolution] = gateway.posts_in(RESOLUTIONS)
        assert resolution.content.startswith("**PASSED POLICY RESOLUTION**")
        assert f"**Proposed by:** <@{AUTHOR_ID}>" in resolution.content
        assert "**Final Vote:** ✅ 2 - ❌ 1" in resolution.content
        assert f"**Resolution:**\n{POLICY_TEXT}" in resolution.content
        vote_message = gateway.channels[POLICY_VOTE][proposal.vote_message_id]
        assert "This proposal has been moved to resolutions." in vote_message.content

    @pytest.mark.asyncio
    async def test_finalize_is_applied_once(self, logic, gateway, clock, transitions):
        _, proposal = await _advance(logic, gateway)
        _vote(gateway, proposal, yes=2)
        clock.advance(timedelta(hours=24))

        assert await logic.finalize(proposal) is not None
        assert await logic.finalize(proposal) is None
        assert len(gateway.posts_in(RESOLUTIONS)) == 1
        assert len(transitions) == 2

    @pytest.mark.asyncio
    async def test_unreadable_vote_message_uses_last_recorded_counts(self, logic, gateway, clock):
        _, proposal = await _advance(logic, gateway)
        _vote(gateway, proposal, yes=2)
        await logic.on_vote_signal(proposal.vote_message_id)

        gateway.unreadable.add(POLICY_VOTE)
        clock.advance(timedelta(hours=24))
        async with UnitOfWork(logic.db_handler) as uow:
            [due] = await uow.proposal.get_due_proposals(clock())

        completed = await logic.finalize(due)

        assert completed.status == ProposalStatus.PASSED
        assert (completed.final_yes, completed.final_no) == (2, 0)
        assert len(gateway.posts_in(RESOLUTIONS)) == 1

    @pytest.mark.asyncio
    async def test_finalize_due_only_touches_expired_votes(self, logic, gateway, clock):
        _, proposal = await _advance(logic, gateway)
        _vote(gateway, proposal, yes=1)

        assert await logic.finalize_due() == 0
        assert (await logic.get_vote_info(proposal.vote_message_id)) is not None

        assert await logic.get_next_deadline() == START + timedelta(hours=24)
        clock.advance(timedelta(hours=24))
        assert await logic.finalize_due() == 0
        assert await logic.get_vote_info(proposal.vote_message_id) is None
        assert await logic.get_next_deadline() is None

        stats = await logic.get_stats()
        assert (stats.total, stats.passed) == (1, 1)


class TestWithdrawal:
    RESOLUTION_POST = (
        "**PASSED POLICY RESOLUTION**\n\n"
        "**Resolution:**\n**Policy**: Ban spam links in general chat\n\n"
        "*This resolution is now active policy policy.*"
    )

    @pytest.mark.asyncio
    async def test_missing_target_replies_and_aborts(self, logic, gateway):
        candidate, proposal = await _advance(logic, gateway, content="**Withdraw**: Free pizza fridays")

        assert proposal is None
        assert gateway.posts_in(POLICY_VOTE) == []
        [(_, replied_to, text)] = gateway.replies
        assert replied_to == candidate.id
        assert text.startswith("Could not find the target resolution to withdraw.")

    @pytest.mark.asyncio
    async def test_passed_withdrawal_removes_resolution(self, logic, gateway, clock):
        resolution = gateway.seed_message(RESOLUTIONS, self.RESOLUTION_POST, author_id=BOT_ID)
        _, proposal = await _advance(logic, gateway, content="**Withdraw**: Ban spam links")

        assert proposal is not None
        assert proposal.is_withdrawal
        assert proposal.target_resolution.message_id == resolution.id
        [vote_message] = gateway.posts_in(POLICY_VOTE)
        assert vote_message.content.startswith("🗳️ **POLICY WITHDRAWAL VOTING PHASE**")
        assert gateway.replies[-1][2] == (
            f"**This withdrawal proposal has been moved to voting in <#{POLICY_VOTE}>**"
        )

        _vote(gateway, proposal, yes=3)
        clock.advance(timedelta(hours=24))
        await logic.finalize(proposal)

        assert (RESOLUTIONS, resolution.id) in gateway.deleted
        [notice] = gateway.posts_in(RESOLUTIONS)
        assert notice.content.startswith("🗑️ **WITHDRAWN POLICY RESOLUTION**")


class TestModeratorProposals:
    @pytest.mark.asyncio
    async def test_invalid_directive_replies_and_aborts(self, logic, gateway):
        _, proposal = await _advance(
            logic, gateway, content="**Add Moderator**: bob", channel_id=MODERATOR_DEBATE, support=2
        )
        assert proposal is None
        assert gateway.posts_in(MODERATOR_VOTE) == []
        assert "**Add Moderator**: @user" in gateway.replies[-1][2]

    @pytest.mark.asyncio
    async def test_passed_directive_grants_role(self, logic, gateway, clock):
        gateway.member_roles[MEMBER_ID] = set()
        _, proposal = await _advance(
            logic,
            gateway,
            content=f"**Add Moderator**: <@{MEMBER_ID}>",
            channel_id=MODERATOR_DEBATE,
            support=2,
        )
        assert proposal is not None
        assert proposal.end_time == START + timedelta(hours=1)

        _vote(gateway, proposal, yes=2)
        clock.advance(timedelta(hours=1))
        await logic.finalize(proposal)

        assert MODERATOR_ROLE_ID in gateway.member_roles[MEMBER_ID]
        assert gateway.posts_in(RESOLUTIONS) == []


class TestForceAdvance:
    @pytest.mark.asyncio
    async def test_force_ignores_support(self, logic, gateway):
        candidate = gateway.seed_message(POLICY_DEBATE, POLICY_TEXT)
        result = await logic.force_advance(candidate.id)
        assert result.success
        assert result.proposal.original_message_id == candidate.id

    @pytest.mark.asyncio
    async def test_force_already_voting(self, logic, gateway):
        candidate, _ = await _advance(logic, gateway)
        result = await logic.force_advance(candidate.id)
        assert not result.success
        assert result.error == "This proposal is already in voting."

    @pytest.mark.asyncio
    async def test_force_unknown_message(self, logic):
        result = await logic.force_advance(404)
        assert not result.success
        assert result.error == "Proposal message not found in any debate channel."

    @pytest.mark.asyncio
    async def test_force_unformatted_message(self, logic, gateway):
        candidate = gateway.seed_message(POLICY_DEBATE, "just chatting")
        result = await logic.force_advance(candidate.id)
        assert not result.success
        assert result.error == "Message is not a valid proposal format."


class TestPendingProposals:
    @pytest.mark.asyncio
    async def test_lists_candidates_below_threshold(self, logic, gateway):
        one = gateway.seed_message(POLICY_DEBATE, "**Policy**: one")
        gateway.react(POLICY_DEBATE, one.id, VoteOption.SUPPORT, 1)
        two = gateway.seed_message(POLICY_DEBATE, "**Policy**: two")
        gateway.react(POLICY_DEBATE, two.id, VoteOption.SUPPORT, 2)
        gateway.seed_message(POLICY_DEBATE, "**Policy**: nobody cares")
        chatter = gateway.seed_message(POLICY_DEBATE, "random chatter")
        gateway.react(POLICY_DEBATE, chatter.id, VoteOption.SUPPORT, 2)
        await _advance(logic, gateway)

        pending = await logic.get_pending_proposals()

        assert [p.message_id for p in pending] == [two.id, one.id]
        assert pending[0].required_support == 3

    def _pending(self, message_id: int, support: int, required: int, minutes: int) -> PendingProposalDto:
        return PendingProposalDto(
            message_id=message_id,
            channel_id=POLICY_DEBATE,
            content=f"**Policy**: {message_id}",
            author_name="alice",
            created_at=START + timedelta(minutes=minutes),
            support_count=support,
            required_support=required,
            proposal_type="policy",
            is_withdrawal=False,
        )

    def test_select_featured_mixes_closest_and_newest(self):
        pending = [
            self._pending(1, 9, 10, 0),
            self._pending(2, 1, 10, 50),
            self._pending(3, 8, 10, 10),
            self._pending(4, 1, 2, 20),
            self._pending(5, 1, 10, 30),
            self._pending(6, 1, 10, 40),
            self._pending(7, 1, 10, 5),
        ]
        featured = GovernanceLogic.select_featured(pending)
        assert [p.message_id for p in featured] == [1, 3, 4, 2, 6]

    def test_select_featured_with_few_candidates(self):
        pending = [self._pending(1, 1, 3, 0), self._pending(2, 2, 3, 1)]
        assert [p.message_id for p in GovernanceLogic.select_featured(pending)] == [2, 1]
