from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

from AgoraPact.cogs.Governance.dto.ForceVoteResultDto import ForceVoteResultDto
from AgoraPact.cogs.Governance.dto.MessageSnapshotDto import MessageSnapshotDto
from AgoraPact.cogs.Governance.dto.PendingProposalDto import PendingProposalDto
from AgoraPact.cogs.Governance.dto.ProposalMatchDto import ProposalMatchDto
from AgoraPact.cogs.Governance.dto.ProposalStatsDto import ProposalStatsDto
from AgoraPact.cogs.Governance.dto.TransitionRecordDto import TransitionRecordDto
from AgoraPact.cogs.Governance.ModeratorResolver import ModeratorResolver
from AgoraPact.cogs.Governance.ProposalParser import ProposalParser
from AgoraPact.cogs.Governance.qo.CompleteProposalQo import CompleteProposalQo
from AgoraPact.cogs.Governance.qo.CreateProposalQo import CreateProposalQo
from AgoraPact.cogs.Governance.ResolutionPublisher import ResolutionPublisher
from AgoraPact.cogs.Governance.views.ProposalMessageBuilder import ProposalMessageBuilder
from AgoraPact.cogs.Governance.VoteTally import VoteTally
from AgoraPact.cogs.Governance.WithdrawalResolver import WithdrawalResolver
from AgoraPact.dto.GovernanceConfigDto import GovernanceConfigDto
from AgoraPact.dto.ProposalDto import ProposalDto
from AgoraPact.dto.TargetResolutionDto import TargetResolutionDto
from AgoraPact.share.ApiScheduler import Priority
from AgoraPact.share.enums.ProposalStatus import ProposalStatus
from AgoraPact.share.enums.VoteOption import VoteOption
from AgoraPact.share.exceptions.AlreadyExists import AlreadyExists
from AgoraPact.share.exceptions.CollaboratorUnavailable import CollaboratorUnavailable
from AgoraPact.share.exceptions.ConfigurationMissing import ConfigurationMissing
from AgoraPact.share.exceptions.InvalidModeratorDirective import InvalidModeratorDirective
from AgoraPact.share.exceptions.TargetNotFound import TargetNotFound
from AgoraPact.share.TimeUtils import TimeUtils
from AgoraPact.share.UnitOfWork import UnitOfWork

if TYPE_CHECKING:
    from AgoraPact.cogs.Governance.PlatformGateway import PlatformGateway
    from AgoraPact.cogs.Governance.tasks.VoteScheduler import VoteScheduler
    from AgoraPact.share.DatabaseHandler import DatabaseHandler

logger = logging.getLogger(__name__)

FEATURED_CLOSEST = 3
FEATURED_TOTAL = 5


class GovernanceLogic:
    """
    提案生命周期: 讨论 -> 投票 -> 决议。

    - 讨论阶段的候选不入库，每次从频道历史和反应数实时推导；
    - 进入投票时写入提案，依赖唯一约束保证同一原帖只会推进一次；
    - 计票和结算都是以 "仍在投票中" 为条件的更新，重复执行不会产生副作用。
    """

    def __init__(
        self,
        db_handler: Optional["DatabaseHandler"],
        gateway: "PlatformGateway",
        config: GovernanceConfigDto,
        clock: Callable[[], datetime] = TimeUtils.utc_now,
        on_transition: Optional[Callable[[TransitionRecordDto], None]] = None,
    ):
        self.db_handler = db_handler
        self.gateway = gateway
        self.config = config
        self.clock = clock
        self.on_transition = on_transition

        self.parser = ProposalParser(config)
        self.withdrawal = WithdrawalResolver(gateway, config)
        self.moderator = ModeratorResolver(gateway)
        self.publisher = ResolutionPublisher(gateway)
        self._scheduler: Optional["VoteScheduler"] = None

    def bind_scheduler(self, scheduler: "VoteScheduler"):
        self._scheduler = scheduler

    def _emit(self, message_id: int, from_status: ProposalStatus, to_status: ProposalStatus):
        record = TransitionRecordDto(
            message_id=message_id,
            from_status=from_status,
            to_status=to_status,
            timestamp=self.clock(),
        )
        logger.info(f"提案 {message_id} 状态变更: {from_status.name} -> {to_status.name}")
        if self.on_transition is None:
            return
        try:
            self.on_transition(record)
        except Exception as e:
            logger.error(f"分派状态变更事件时出错: {e}", exc_info=True)

    # --- 讨论阶段 ---

    async def on_support_signal(
        self, candidate: MessageSnapshotDto, support_count: int
    ) -> Optional[ProposalDto]:
        """
        讨论帖的支持数发生变化。

        Returns:
            达到门槛并成功进入投票时返回新提案，否则返回 None。
        """
        async with UnitOfWork(self.db_handler) as uow:
            if await uow.proposal.is_tracked(candidate.id):
                return None

        match = self.parser.classify(candidate.channel_id, candidate.content)
        if match is None:
            return None

        threshold = match.config.support_threshold
        if support_count < threshold:
            logger.debug(
                f"{match.type_name} 提案 {candidate.id} 支持数 {support_count}/{threshold}，未达门槛。"
            )
            return None

        logger.info(f"{match.type_name} 提案 {candidate.id} 支持数达到门槛 ({support_count}/{threshold})。")
        return await self.advance_to_vote(candidate, match)

    async def _reply_to_author(self, candidate: MessageSnapshotDto, content: str):
        try:
            await self.gateway.reply(candidate.channel_id, candidate.id, content)
        except CollaboratorUnavailable as e:
            logger.warning(f"无法回复提案 {candidate.id}: {e}")

    async def advance_to_vote(
        self, candidate: MessageSnapshotDto, match: ProposalMatchDto
    ) -> Optional[ProposalDto]:
        """
        将讨论帖推进到投票阶段。

        撤回目标找不到或管理员指令无效时回复作者并放弃；
        与另一次推进并发时，输掉的一方删除自己发出的投票消息。

        Raises:
            CollaboratorUnavailable: 投票消息发送失败。
        """
        target: Optional[TargetResolutionDto] = None
        if match.is_withdrawal:
            try:
                target = await self.withdrawal.resolve(candidate.content, match.config)
            except TargetNotFound as e:
                logger.info(f"撤回提案 {candidate.id} 找不到目标决议，放弃推进。")
                await self._reply_to_author(candidate, str(e))
                return None
        elif match.config.moderator_action:
            try:
                ModeratorResolver.require(candidate.content)
            except InvalidModeratorDirective as e:
                logger.info(f"管理员提案 {candidate.id} 格式无效，放弃推进。")
                await self._reply_to_author(candidate, str(e))
                return None

        now = self.clock()
        vote_channel_id = match.config.vote_channel_id
        content = ProposalMessageBuilder.compose_vote_message(
            author_name=candidate.author_name,
            content=candidate.content,
            type_name=match.type_name,
            config=match.config,
            is_withdrawal=match.is_withdrawal,
            now=now,
        )
        vote_message = await self.gateway.post_message(vote_channel_id, content, Priority.VOTE_PANEL)

        for option in (VoteOption.YES, VoteOption.NO):
            try:
                await self.gateway.add_reaction(vote_channel_id, vote_message.id, option)
            except CollaboratorUnavailable as e:
                logger.warning(f"为投票消息 {vote_message.id} 添加 {option} 失败: {e}")

        qo = CreateProposalQo(
            original_message_id=candidate.id,
            original_channel_id=candidate.channel_id,
            vote_message_id=vote_message.id,
            vote_channel_id=vote_channel_id,
            author_id=candidate.author_id,
            content=candidate.content,
            proposal_type=match.type_name,
            is_withdrawal=match.is_withdrawal,
            target_resolution=target,
            start_time=now,
            end_time=now + match.config.vote_duration,
        )
        proposal: Optional[ProposalDto] = None
        async with UnitOfWork(self.db_handler) as uow:
            try:
                proposal = await uow.proposal.create_proposal(qo)
            except AlreadyExists:
                logger.debug(f"原帖 {candidate.id} 已被另一次推进处理，删除多余的投票消息。")
            else:
                await uow.commit()

        if proposal is None:
            try:
                await self.gateway.delete_message(vote_channel_id, vote_message.id)
            except CollaboratorUnavailable as e:
                logger.warning(f"删除多余的投票消息 {vote_message.id} 失败: {e}")
            return None

        self._emit(proposal.vote_message_id, ProposalStatus.NONE, ProposalStatus.VOTING)
        if self._scheduler is not None:
            self._scheduler.reschedule()

        notice = ProposalMessageBuilder.render_moved_notice(vote_channel_id, match.is_withdrawal)
        try:
            await self.gateway.edit_message(
                candidate.channel_id, candidate.id, f"{candidate.content}\n\n{notice}"
            )
        except CollaboratorUnavailable:
            logger.debug(f"无法编辑原帖 {candidate.id}，改为回复。")
            await self._reply_to_author(candidate, notice)

        logger.info(
            f"{match.type_name} {'撤回' if match.is_withdrawal else ''}提案已进入投票: {vote_message.id}"
        )
        return proposal

    # --- 投票阶段 ---

    async def on_vote_signal(
        self, vote_message_id: int, option: Optional[str] = None, added: Optional[bool] = None
    ) -> bool:
        """
        投票消息的反应发生变化时重新计票。

        Returns:
            是否写入了新的票数。提案不存在、已结算或已过截止时间时返回 False。
        """
        async with UnitOfWork(self.db_handler) as uow:
            proposal = await uow.proposal.get_by_vote_message_id(vote_message_id)

        if proposal is None or proposal.status != ProposalStatus.VOTING:
            return False
        if self.clock() >= proposal.end_time:
            logger.debug(f"投票 {vote_message_id} 已过截止时间，等待结算，忽略反应 {option}。")
            return False

        signals = await self.gateway.read_signal_counts(proposal.vote_channel_id, vote_message_id)
        yes_votes, no_votes = VoteTally.tally_signals(signals)

        async with UnitOfWork(self.db_handler) as uow:
            updated = await uow.proposal.update_vote_counts(vote_message_id, yes_votes, no_votes)
            await uow.commit()

        if updated:
            logger.debug(f"投票 {vote_message_id} 当前票数: ✅ {yes_votes} / ❌ {no_votes}")
        return updated

    async def finalize(self, proposal: ProposalDto) -> Optional[ProposalDto]:
        """
        结算一个到期的投票。

        Returns:
            结算后的提案；提案已被其他流程结算时返回 None。
        """
        try:
            signals = await self.gateway.read_signal_counts(
                proposal.vote_channel_id, proposal.vote_message_id, Priority.BACKGROUND
            )
            yes_votes, no_votes = VoteTally.tally_signals(signals)
        except CollaboratorUnavailable as e:
            logger.warning(
                f"无法读取投票消息 {proposal.vote_message_id}，使用最后一次记录的票数: {e}"
            )
            yes_votes, no_votes = proposal.yes_votes, proposal.no_votes

        passed = VoteTally.is_passed(yes_votes, no_votes)
        qo = CompleteProposalQo(
            vote_message_id=proposal.vote_message_id,
            status=ProposalStatus.PASSED if passed else ProposalStatus.FAILED,
            final_yes=yes_votes,
            final_no=no_votes,
            completed_at=self.clock(),
        )

        completed: Optional[ProposalDto] = None
        async with UnitOfWork(self.db_handler) as uow:
            try:
                completed = await uow.proposal.complete_proposal(qo)
            except AlreadyExists:
                logger.debug(f"投票 {proposal.vote_message_id} 已经结算，跳过。")
            else:
                await uow.commit()

        if completed is None:
            return None

        self._emit(completed.vote_message_id, ProposalStatus.VOTING, completed.status)
        await self._append_result(completed, passed)
        if passed:
            await self._carry_out(completed)

        logger.info(
            f"投票 {completed.vote_message_id} 已结算: {'PASSED' if passed else 'FAILED'} "
            f"(✅ {yes_votes} / ❌ {no_votes})"
        )
        return completed

    async def _append_result(self, proposal: ProposalDto, passed: bool):
        block = ProposalMessageBuilder.build_result_block(
            passed, proposal.final_yes or 0, proposal.final_no or 0, proposal.is_withdrawal
        )
        try:
            vote_message = await self.gateway.fetch_message(
                proposal.vote_channel_id, proposal.vote_message_id
            )
            await self.gateway.edit_message(
                proposal.vote_channel_id,
                proposal.vote_message_id,
                ProposalMessageBuilder.append_result(vote_message.content, block),
            )
        except CollaboratorUnavailable as e:
            logger.warning(f"无法更新投票消息 {proposal.vote_message_id} 的结果: {e}")

    async def _carry_out(self, proposal: ProposalDto):
        """执行已通过提案的后续动作，失败只记录日志，不回滚提案状态。"""
        try:
            type_config = self.config.get_type(proposal.proposal_type)
        except ConfigurationMissing as e:
            logger.error(f"提案 {proposal.vote_message_id} 已通过，但无法执行: {e}")
            return

        try:
            if proposal.is_withdrawal:
                await self.withdrawal.process_withdrawal(proposal, type_config)
            elif type_config.moderator_action:
                await self._apply_moderator_change(proposal)
            else:
                await self.publisher.publish(proposal, type_config)
        except CollaboratorUnavailable as e:
            logger.error(f"提案 {proposal.vote_message_id} 已通过，但后续动作失败: {e}")

    async def _apply_moderator_change(self, proposal: ProposalDto):
        directive = ModeratorResolver.parse(proposal.content)
        if directive is None:
            logger.error(f"管理员提案 {proposal.vote_message_id} 无法解析任免指令。")
            return
        if self.config.moderator_role_id is None:
            logger.error("未配置管理员身份组，无法执行管理员提案。")
            return

        if await self.moderator.apply(directive, self.config.moderator_role_id):
            logger.info(f"管理员提案 {proposal.vote_message_id} 执行成功。")
        else:
            logger.error(f"管理员提案 {proposal.vote_message_id} 执行失败。")

    async def finalize_due(self) -> int:
        """
        结算所有已到截止时间的投票，每个投票单独处理。

        Returns:
            结算失败的数量。
        """
        async with UnitOfWork(self.db_handler) as uow:
            due = await uow.proposal.get_due_proposals(self.clock())

        if not due:
            return 0

        logger.info(f"发现 {len(due)} 个已到期的投票，正在结算...")
        failures = 0
        for proposal in due:
            try:
                await self.finalize(proposal)
            except Exception as e:
                failures += 1
                logger.error(f"结算投票 {proposal.vote_message_id} 时出错: {e}", exc_info=True)
        return failures

    async def get_next_deadline(self) -> Optional[datetime]:
        async with UnitOfWork(self.db_handler) as uow:
            return await uow.proposal.get_earliest_end_time()

    # --- 管理员操作 ---

    async def force_advance(self, message_id: int) -> ForceVoteResultDto:
        """
        无视支持门槛，强制把讨论频道中的一条提案推进到投票。
        """
        async with UnitOfWork(self.db_handler) as uow:
            if await uow.proposal.is_tracked(message_id):
                return ForceVoteResultDto(success=False, error="This proposal is already in voting.")

        candidate: Optional[MessageSnapshotDto] = None
        for _, type_config in self.parser.debate_channels():
            try:
                candidate = await self.gateway.fetch_message(
                    type_config.debate_channel_id, message_id, Priority.INTERACTION
                )
                break
            except CollaboratorUnavailable:
                continue

        if candidate is None:
            return ForceVoteResultDto(
                success=False, error="Proposal message not found in any debate channel."
            )

        match = self.parser.classify(candidate.channel_id, candidate.content)
        if match is None:
            return ForceVoteResultDto(success=False, error="Message is not a valid proposal format.")

        logger.info(f"管理员强制推进提案 {message_id}。")
        try:
            proposal = await self.advance_to_vote(candidate, match)
        except CollaboratorUnavailable as e:
            return ForceVoteResultDto(success=False, error=f"Could not post the vote message: {e.detail}")

        if proposal is None:
            return ForceVoteResultDto(
                success=False, error="The vote could not be started. See the reply under the proposal."
            )
        return ForceVoteResultDto(success=True, proposal=proposal)

    # --- 查询 ---

    async def get_pending_proposals(self) -> List[PendingProposalDto]:
        """
        扫描各讨论频道最近的消息，找出正在收集支持、尚未达到门槛的提案。
        按支持数从高到低排序。
        """
        candidates: List[PendingProposalDto] = []
        for type_name, type_config in self.parser.debate_channels():
            try:
                messages = await self.gateway.fetch_recent_messages(
                    type_config.debate_channel_id, self.config.pending_scan_limit
                )
            except CollaboratorUnavailable as e:
                logger.warning(f"无法读取 {type_name} 的讨论频道: {e}")
                continue

            for message in messages:
                match = self.parser.classify(message.channel_id, message.content)
                if match is None:
                    continue
                support = VoteTally.support_count(message.signals)
                if not 0 < support < type_config.support_threshold:
                    continue
                candidates.append(
                    PendingProposalDto(
                        message_id=message.id,
                        channel_id=message.channel_id,
                        content=message.content,
                        author_name=message.author_name,
                        created_at=message.created_at,
                        support_count=support,
                        required_support=type_config.support_threshold,
                        proposal_type=type_name,
                        is_withdrawal=match.is_withdrawal,
                    )
                )

        async with UnitOfWork(self.db_handler) as uow:
            pending = [c for c in candidates if not await uow.proposal.is_tracked(c.message_id)]

        pending.sort(key=lambda p: p.support_count, reverse=True)
        return pending

    @staticmethod
    def select_featured(pending: Sequence[PendingProposalDto]) -> List[PendingProposalDto]:
        """
        最接近通过的 3 个，加上其余提案中最新的至多 2 个。
        """
        closest = sorted(pending, key=lambda p: p.progress, reverse=True)[:FEATURED_CLOSEST]
        chosen = {p.message_id for p in closest}
        recent = sorted(
            (p for p in pending if p.message_id not in chosen),
            key=lambda p: p.created_at,
            reverse=True,
        )
        return (closest + recent[: FEATURED_TOTAL - len(closest)])[:FEATURED_TOTAL]

    async def get_active_votes(self) -> Sequence[ProposalDto]:
        async with UnitOfWork(self.db_handler) as uow:
            return await uow.proposal.get_by_status(ProposalStatus.VOTING)

    async def get_vote_info(self, message_id: int) -> Optional[ProposalDto]:
        """
        按投票消息ID或原帖ID查找正在进行的投票。
        """
        async with UnitOfWork(self.db_handler) as uow:
            proposal = await uow.proposal.get_by_message_id(message_id)
        if proposal is None or proposal.status != ProposalStatus.VOTING:
            return None
        return proposal

    async def get_stats(self) -> ProposalStatsDto:
        async with UnitOfWork(self.db_handler) as uow:
            return await uow.proposal.get_stats()
