import logging
from collections import Counter
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from AgoraPact.cogs.Governance.dto.ProposalStatsDto import ProposalStatsDto
from AgoraPact.cogs.Governance.qo.CompleteProposalQo import CompleteProposalQo
from AgoraPact.cogs.Governance.qo.CreateProposalQo import CreateProposalQo
from AgoraPact.dto.ProposalDto import ProposalDto
from AgoraPact.models.Proposal import Proposal
from AgoraPact.share.enums.ProposalStatus import ProposalStatus
from AgoraPact.share.exceptions.AlreadyExists import AlreadyExists
from AgoraPact.share.TimeUtils import TimeUtils

logger = logging.getLogger(__name__)


class ProposalService:
    """
    提供处理提案相关数据库操作的服务。

    所有改变状态的写入都是条件写入：
    - 创建依赖唯一约束，记录已存在时失败；
    - 计票和结算只作用于仍处于投票中的记录。
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_proposal(self, qo: CreateProposalQo) -> ProposalDto:
        """
        创建一个处于投票中状态的提案。

        Raises:
            AlreadyExists: 同一原帖或同一投票消息已经有提案记录。
        """
        target = (
            qo.target_resolution.model_dump(by_alias=True) if qo.target_resolution else None
        )
        new_proposal = Proposal(
            original_message_id=qo.original_message_id,
            original_channel_id=qo.original_channel_id,
            vote_message_id=qo.vote_message_id,
            vote_channel_id=qo.vote_channel_id,
            author_id=qo.author_id,
            content=qo.content,
            proposal_type=qo.proposal_type,
            is_withdrawal=qo.is_withdrawal,
            target_resolution=target,
            status=ProposalStatus.VOTING,
            start_time=qo.start_time,
            end_time=qo.end_time,
        )
        self.session.add(new_proposal)
        try:
            await self.session.flush()
            await self.session.refresh(new_proposal)
        except IntegrityError as e:
            logger.debug(f"原帖 {qo.original_message_id} 的提案已存在，回滚会话。")
            await self.session.rollback()
            raise AlreadyExists(qo.vote_message_id) from e

        logger.debug(
            f"成功为原帖 {qo.original_message_id} 创建提案，投票消息: {qo.vote_message_id}"
        )
        return ProposalDto.model_validate(new_proposal)

    async def get_by_vote_message_id(self, vote_message_id: int) -> Optional[ProposalDto]:
        """
        根据投票消息ID获取提案。
        """
        statement = select(Proposal).where(Proposal.vote_message_id == vote_message_id)
        result = await self.session.exec(statement)
        proposal = result.one_or_none()
        return ProposalDto.model_validate(proposal) if proposal else None

    async def get_by_original_message_id(self, original_message_id: int) -> Optional[ProposalDto]:
        """
        根据讨论频道原帖ID获取提案。
        """
        statement = select(Proposal).where(Proposal.original_message_id == original_message_id)
        result = await self.session.exec(statement)
        proposal = result.one_or_none()
        return ProposalDto.model_validate(proposal) if proposal else None

    async def get_by_message_id(self, message_id: int) -> Optional[ProposalDto]:
        """
        按投票消息ID或原帖ID查找提案。
        """
        return await self.get_by_vote_message_id(
            message_id
        ) or await self.get_by_original_message_id(message_id)

    async def is_tracked(self, original_message_id: int) -> bool:
        """原帖是否已经进入投票阶段。"""
        statement = select(Proposal.id).where(
            Proposal.original_message_id == original_message_id
        )
        result = await self.session.exec(statement)
        return result.first() is not None

    async def update_vote_counts(self, vote_message_id: int, yes_votes: int, no_votes: int) -> bool:
        """
        更新投票中提案的当前票数。

        Returns:
            是否有记录被更新。提案不存在或已结算时返回 False。
        """
        statement = (
            update(Proposal)
            .where(Proposal.vote_message_id == vote_message_id)  # type: ignore
            .where(Proposal.status == ProposalStatus.VOTING)  # type: ignore
            .values(yes_votes=yes_votes, no_votes=no_votes, updated_at=TimeUtils.utc_now())
            .returning(Proposal.id)  # type: ignore
        )
        result = await self.session.exec(statement)  # type: ignore
        updated_id = result.scalar_one_or_none()
        if updated_id is None:
            logger.debug(f"投票消息 {vote_message_id} 没有投票中的提案，忽略计票更新。")
            return False
        return True

    async def complete_proposal(self, qo: CompleteProposalQo) -> ProposalDto:
        """
        将投票中的提案结算为已通过或未通过，并冻结最终票数。

        Raises:
            ValueError: 目标状态不是终态。
            AlreadyExists: 提案不存在或已经结算过。
        """
        if qo.status not in (ProposalStatus.PASSED, ProposalStatus.FAILED):
            raise ValueError(f"无效的结算状态: {qo.status!r}")

        statement = (
            update(Proposal)
            .where(Proposal.vote_message_id == qo.vote_message_id)  # type: ignore
            .where(Proposal.status == ProposalStatus.VOTING)  # type: ignore
            .values(
                status=qo.status,
                yes_votes=qo.final_yes,
                no_votes=qo.final_no,
                final_yes=qo.final_yes,
                final_no=qo.final_no,
                completed_at=qo.completed_at,
                updated_at=TimeUtils.utc_now(),
            )
            .returning(Proposal.id)  # type: ignore
        )
        result = await self.session.exec(statement)  # type: ignore
        if result.scalar_one_or_none() is None:
            raise AlreadyExists(qo.vote_message_id)

        completed = await self.get_by_vote_message_id(qo.vote_message_id)
        assert completed is not None
        return completed

    async def get_by_status(self, status: ProposalStatus) -> Sequence[ProposalDto]:
        """
        获取指定状态的所有提案，按截止时间排序。
        """
        statement = (
            select(Proposal).where(Proposal.status == status).order_by(Proposal.end_time)  # type: ignore
        )
        result = await self.session.exec(statement)
        return [ProposalDto.model_validate(p) for p in result.all()]

    async def get_by_type(self, proposal_type: str) -> Sequence[ProposalDto]:
        """
        获取指定类型的所有提案，按创建时间排序。
        """
        statement = (
            select(Proposal)
            .where(Proposal.proposal_type == proposal_type.lower())
            .order_by(Proposal.created_at)  # type: ignore
        )
        result = await self.session.exec(statement)
        return [ProposalDto.model_validate(p) for p in result.all()]

    async def get_due_proposals(self, now: datetime) -> Sequence[ProposalDto]:
        """
        获取所有已到截止时间、但仍处于投票中的提案。
        """
        statement = (
            select(Proposal)
            .where(Proposal.status == ProposalStatus.VOTING)
            .where(Proposal.end_time <= now)  # type: ignore
            .order_by(Proposal.end_time)  # type: ignore
        )
        result = await self.session.exec(statement)
        return [ProposalDto.model_validate(p) for p in result.all()]

    async def get_earliest_end_time(self) -> Optional[datetime]:
        """
        获取所有投票中提案里最早的截止时间。没有投票中的提案时返回 None。
        """
        statement = select(func.min(Proposal.end_time)).where(
            Proposal.status == ProposalStatus.VOTING
        )
        result = await self.session.exec(statement)  # type: ignore
        return result.one_or_none()

    async def get_stats(self) -> ProposalStatsDto:
        """
        统计各状态与各类型的提案数量。
        """
        result = await self.session.exec(select(Proposal.status, Proposal.proposal_type))
        rows = result.all()
        statuses = Counter(status for status, _ in rows)
        return ProposalStatsDto(
            total=len(rows),
            active=statuses.get(ProposalStatus.VOTING, 0),
            passed=statuses.get(ProposalStatus.PASSED, 0),
            failed=statuses.get(ProposalStatus.FAILED, 0),
            by_type=dict(Counter(proposal_type for _, proposal_type in rows)),
        )
