from datetime import datetime
from typing import Optional

from AgoraPact.dto.TargetResolutionDto import TargetResolutionDto
from AgoraPact.share.BaseDto import BaseDto
from AgoraPact.share.enums.ProposalStatus import ProposalStatus


class ProposalDto(BaseDto):
    """
    提案的数据传输对象
    """

    id: int
    original_message_id: int
    original_channel_id: int
    vote_message_id: int
    vote_channel_id: int
    author_id: int
    content: str
    proposal_type: str
    is_withdrawal: bool
    target_resolution: Optional[TargetResolutionDto] = None
    status: ProposalStatus
    start_time: datetime
    end_time: datetime
    completed_at: Optional[datetime] = None
    yes_votes: int
    no_votes: int
    final_yes: Optional[int] = None
    final_no: Optional[int] = None
