from typing import Dict

from pydantic import Field

from AgoraPact.share.BaseDto import BaseDto


class ProposalStatsDto(BaseDto):
    """
    提案统计。
    """

    total: int = 0
    active: int = 0
    passed: int = 0
    failed: int = 0
    by_type: Dict[str, int] = Field(default_factory=dict)
