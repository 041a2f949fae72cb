from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, text

from AgoraPact.models.BaseModel import BaseModel
from AgoraPact.share.database_types import JSON_TYPE
from AgoraPact.share.enums.ProposalStatus import ProposalStatus
from AgoraPact.share.TimeUtils import TimeUtils

# 存储层保留期限，到期后可由运维清理
RETENTION_PERIOD = timedelta(days=90)


def _default_expiry() -> datetime:
    return TimeUtils.utc_now() + RETENTION_PERIOD


class Proposal(BaseModel, table=True):
    """
    提案表模型。
    只有进入投票阶段的提案才会入库，讨论阶段的候选由频道历史实时推导。
    """

    original_message_id: int = Field(unique=True, description="讨论频道中原帖的消息ID")
    original_channel_id: int = Field(description="讨论频道ID")
    vote_message_id: int = Field(unique=True, index=True, description="投票消息ID (业务主键)")
    vote_channel_id: int = Field(description="投票频道ID")
    author_id: int = Field(index=True, description="提案作者的Discord ID")
    content: str = Field(description="原帖内容")
    proposal_type: str = Field(index=True, description="提案类型名")
    is_withdrawal: bool = Field(default=False, description="是否为撤回提案")
    target_resolution: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON_TYPE, nullable=True),
        description="撤回目标: messageId, channelId, originalContent",
    )
    status: int = Field(
        default=ProposalStatus.VOTING,
        index=True,
        description="提案状态: 1-投票中, 2-已通过, 3-未通过",
    )
    # 时间列统一保存不带时区的 UTC
    start_time: datetime = Field(sa_type=DateTime, description="投票开始时间")
    end_time: datetime = Field(sa_type=DateTime, index=True, description="投票截止时间，创建后不可变")
    completed_at: Optional[datetime] = Field(default=None, sa_type=DateTime, description="结算时间")
    yes_votes: int = Field(default=0, description="当前赞成票")
    no_votes: int = Field(default=0, description="当前反对票")
    final_yes: Optional[int] = Field(default=None, description="最终赞成票")
    final_no: Optional[int] = Field(default=None, description="最终反对票")
    expires_at: datetime = Field(
        default_factory=_default_expiry, sa_type=DateTime, description="存储保留期限"
    )
    created_at: datetime = Field(
        default_factory=TimeUtils.utc_now,
        sa_type=DateTime,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
        description="创建时间",
    )
    updated_at: datetime = Field(
        default_factory=TimeUtils.utc_now,
        sa_type=DateTime,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
        description="最后更新时间",
    )
