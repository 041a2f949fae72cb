from typing import Optional

from AgoraPact.dto.ProposalDto import ProposalDto
from AgoraPact.share.BaseDto import BaseDto


class ForceVoteResultDto(BaseDto):
    """
    管理员强制推进投票的结果。
    """

    success: bool
    error: Optional[str] = None
    proposal: Optional[ProposalDto] = None
