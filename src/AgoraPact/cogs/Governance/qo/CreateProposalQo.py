from datetime import datetime
from typing import Optional

from AgoraPact.dto.TargetResolutionDto import TargetResolutionDto
from AgoraPact.share.BaseDto import BaseDto


class CreateProposalQo(BaseDto):
    """
    创建提案（进入投票阶段）的查询对象
    """

    original_message_id: int
    """讨论频道原帖ID"""
    original_channel_id: int
    """讨论频道ID"""
    vote_message_id: int
    """投票消息ID"""
    vote_channel_id: int
    """投票频道ID"""
    author_id: int
    """作者ID"""
    content: str
    """原帖内容"""
    proposal_type: str
    """提案类型名"""
    is_withdrawal: bool = False
    """是否为撤回提案"""
    target_resolution: Optional[TargetResolutionDto] = None
    """撤回目标"""
    start_time: datetime
    """投票开始时间"""
    end_time: datetime
    """投票截止时间"""
