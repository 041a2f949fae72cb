from datetime import datetime

from AgoraPact.share.BaseDto import BaseDto
from AgoraPact.share.enums.ProposalStatus import ProposalStatus


class CompleteProposalQo(BaseDto):
    """
    结算提案的查询对象
    """

    vote_message_id: int
    """投票消息ID"""
    status: ProposalStatus
    """结算后的状态，只能是 PASSED 或 FAILED"""
    final_yes: int
    """最终赞成票"""
    final_no: int
    """最终反对票"""
    completed_at: datetime
    """结算时间"""
