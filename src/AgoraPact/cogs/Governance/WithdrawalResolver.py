from __future__ import annotations

import logging
import re
from fractions import Fraction
from typing import TYPE_CHECKING, Iterable, Optional

from AgoraPact.cogs.Governance.dto.MessageSnapshotDto import MessageSnapshotDto
from AgoraPact.cogs.Governance.views.ProposalMessageBuilder import ProposalMessageBuilder
from AgoraPact.dto.GovernanceConfigDto import GovernanceConfigDto
from AgoraPact.dto.ProposalDto import ProposalDto
from AgoraPact.dto.ProposalTypeConfigDto import ProposalTypeConfigDto
from AgoraPact.dto.TargetResolutionDto import TargetResolutionDto
from AgoraPact.share.exceptions.CollaboratorUnavailable import CollaboratorUnavailable
from AgoraPact.share.exceptions.TargetNotFound import TargetNotFound

if TYPE_CHECKING:
    from AgoraPact.cogs.Governance.PlatformGateway import PlatformGateway

logger = logging.getLogger(__name__)

KEYWORD_MATCH_THRESHOLD = Fraction(3, 5)
KEYWORD_MIN_LENGTH = 4

_REFERENCE = re.compile(r"\*\*Withdraw\*\*:\s*(.+)", re.IGNORECASE)
_POLICY_TEXT = re.compile(r"\*\*(?:Policy|Governance|Resolution)\*\*:\s*(.+?)(?:\n|$)", re.IGNORECASE)
_ORIGINAL_RESOLUTION = re.compile(r"\*\*Resolution:\*\*\s*(.+?)(?:\n\*|$)", re.DOTALL)


class WithdrawalResolver:
    """
    撤回提案的目标定位与执行。

    匹配逻辑全部是静态纯函数，只有 resolve 和 process_withdrawal 会访问 Discord。
    """

    def __init__(self, gateway: "PlatformGateway", config: GovernanceConfigDto):
        self.gateway = gateway
        self.config = config

    # --- 纯函数 ---

    @staticmethod
    def extract_reference(text: str) -> Optional[str]:
        """取 `**Withdraw**:` 同一行后面的引用文本。"""
        match = _REFERENCE.search(text)
        if not match:
            return None
        reference = match.group(1).strip()
        return reference or None

    @staticmethod
    def is_resolution_post(text: str) -> bool:
        return "PASSED" in text and "RESOLUTION" in text

    @staticmethod
    def extract_policy_text(text: str) -> Optional[str]:
        match = _POLICY_TEXT.search(text)
        return match.group(1).strip() if match else None

    @staticmethod
    def extract_original_resolution(text: str) -> str:
        """
        从决议记录中取出 `**Resolution:**` 之后的正文，找不到时返回整段文本。
        """
        match = _ORIGINAL_RESOLUTION.search(text)
        if match:
            return match.group(1).strip()
        return text

    @staticmethod
    def keyword_overlap(reference: str, resolution: str) -> Fraction:
        """
        引用中长度大于 3 的词有多大比例出现在决议的某个词里。
        没有可用关键词时返回 0。
        """
        keywords = [w for w in reference.lower().split() if len(w) >= KEYWORD_MIN_LENGTH]
        if not keywords:
            return Fraction(0)
        resolution_words = resolution.lower().split()
        hits = sum(1 for kw in keywords if any(kw in rw for rw in resolution_words))
        return Fraction(hits, len(keywords))

    @staticmethod
    def matches(resolution: str, reference: str) -> bool:
        """
        依次尝试三种匹配方式：
        1. 引用是决议的子串（忽略大小写）；
        2. 引用与决议中的政策文本互相包含；
        3. 关键词重合度达到 KEYWORD_MATCH_THRESHOLD。
        """
        resolution_lower = resolution.lower()
        reference_lower = reference.lower()
        if reference_lower in resolution_lower:
            return True

        policy_text = WithdrawalResolver.extract_policy_text(resolution)
        if policy_text:
            policy_lower = policy_text.lower()
            if reference_lower in policy_lower or policy_lower in reference_lower:
                return True

        return WithdrawalResolver.keyword_overlap(reference, resolution) >= KEYWORD_MATCH_THRESHOLD

    @staticmethod
    def select_target(
        reference: str, candidates: Iterable[MessageSnapshotDto]
    ) -> Optional[MessageSnapshotDto]:
        """按顺序返回第一条匹配的决议记录。"""
        for candidate in candidates:
            if not WithdrawalResolver.is_resolution_post(candidate.content):
                continue
            if WithdrawalResolver.matches(candidate.content, reference):
                return candidate
        return None

    # --- I/O ---

    async def resolve(self, text: str, type_config: ProposalTypeConfigDto) -> TargetResolutionDto:
        """
        在提案类型的决议频道中定位撤回目标。

        Raises:
            TargetNotFound: 没有引用文本、频道不可读或没有匹配的决议。
        """
        reference = self.extract_reference(text)
        if reference is None:
            logger.debug("撤回提案中没有找到引用文本。")
            raise TargetNotFound()

        logger.debug(f"正在查找要撤回的决议: '{reference}'")
        try:
            candidates = await self.gateway.fetch_recent_messages(
                type_config.resolutions_channel_id, self.config.resolution_scan_limit
            )
        except CollaboratorUnavailable as e:
            logger.warning(f"无法读取决议频道 {type_config.resolutions_channel_id}: {e}")
            raise TargetNotFound() from e

        target = self.select_target(reference, candidates)
        if target is None:
            logger.info(f"没有找到与 '{reference}' 匹配的决议。")
            raise TargetNotFound()

        logger.info(f"找到匹配的决议: {target.id}")
        return TargetResolutionDto(
            message_id=target.id,
            channel_id=target.channel_id,
            original_content=self.extract_original_resolution(target.content),
        )

    async def process_withdrawal(self, proposal: ProposalDto, type_config: ProposalTypeConfigDto):
        """
        撤回通过后：删除目标决议（尽力而为），并在决议频道发布撤回公告。
        """
        target = proposal.target_resolution
        if target is None:
            logger.error(f"撤回提案 {proposal.vote_message_id} 没有记录撤回目标，跳过。")
            return

        try:
            await self.gateway.delete_message(target.channel_id, target.message_id)
            logger.info(f"已删除被撤回的决议 {target.message_id}")
        except CollaboratorUnavailable as e:
            logger.warning(f"删除决议 {target.message_id} 失败，继续发布撤回公告: {e}")

        await self.gateway.post_message(
            type_config.resolutions_channel_id,
            ProposalMessageBuilder.render_withdrawal_notice(proposal),
        )
        logger.info(f"撤回公告已发布到频道 {type_config.resolutions_channel_id}")
