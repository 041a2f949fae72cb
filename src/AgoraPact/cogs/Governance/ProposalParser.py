import logging
import re
from typing import Dict, List, Optional, Pattern, Tuple

from AgoraPact.cogs.Governance.dto.ProposalMatchDto import ProposalMatchDto
from AgoraPact.dto.GovernanceConfigDto import GovernanceConfigDto
from AgoraPact.dto.ProposalTypeConfigDto import ProposalTypeConfigDto
from AgoraPact.share.enums.ProposalKind import ProposalKind
from AgoraPact.share.StringUtils import StringUtils

logger = logging.getLogger(__name__)

WITHDRAW_MARKER = "Withdraw"
_WITHDRAW_PATTERN = re.compile(r"^\*\*Withdraw\*\*:", re.IGNORECASE)
_MARKER_PREFIX = re.compile(r"^\*\*[^*]+\*\*:\s*")


class ProposalParser:
    """
    讨论频道消息的格式校验。

    频道到类型的映射在构造时建立，之后每次分类只需一次字典查找和一次正则匹配。
    """

    def __init__(self, config: GovernanceConfigDto):
        self.config = config
        self._debate_index: Dict[int, Tuple[str, ProposalTypeConfigDto, Pattern[str]]] = {}
        self._vote_index: Dict[int, str] = {}

        for type_name, type_config in config.proposal_types.items():
            markers = "|".join(re.escape(f) for f in type_config.formats)
            pattern = re.compile(rf"^\*\*(?:{markers}|{WITHDRAW_MARKER})\*\*:", re.IGNORECASE)
            self._debate_index[type_config.debate_channel_id] = (type_name, type_config, pattern)
            self._vote_index[type_config.vote_channel_id] = type_name

    def classify(self, channel_id: int, text: str) -> Optional[ProposalMatchDto]:
        """
        判断一条讨论频道消息是否为合规提案。

        Returns:
            匹配时返回 类型 × 变体；频道不是讨论频道或格式不符时返回 None。
        """
        entry = self._debate_index.get(channel_id)
        if entry is None:
            return None

        type_name, type_config, pattern = entry
        stripped = text.strip()
        if not pattern.match(stripped):
            return None

        kind = (
            ProposalKind.WITHDRAWAL if _WITHDRAW_PATTERN.match(stripped) else ProposalKind.STANDARD
        )
        return ProposalMatchDto(type_name=type_name, config=type_config, kind=kind)

    def type_for_vote_channel(self, channel_id: int) -> Optional[str]:
        """投票频道对应的提案类型名。"""
        return self._vote_index.get(channel_id)

    def is_debate_channel(self, channel_id: int) -> bool:
        return channel_id in self._debate_index

    def debate_channels(self) -> List[Tuple[str, ProposalTypeConfigDto]]:
        """所有讨论频道，按配置顺序。"""
        return [(name, cfg) for name, cfg, _ in self._debate_index.values()]

    @staticmethod
    def extract_title(text: str, limit: int = 100) -> str:
        """
        取提案首行并去掉 `**标记**:` 前缀，用于列表展示。
        """
        first_line = text.strip().split("\n", 1)[0]
        title = _MARKER_PREFIX.sub("", first_line).strip()
        return StringUtils.truncate(title, limit) if title else first_line[:limit]
