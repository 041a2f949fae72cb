from datetime import datetime

from pydantic import Field

from AgoraPact.cogs.Governance.dto.SignalCountsDto import SignalCountsDto
from AgoraPact.share.BaseDto import BaseDto


class MessageSnapshotDto(BaseDto):
    """
    一条频道消息在某一时刻的快照，与 discord.py 对象解耦。
    """

    id: int
    channel_id: int
    author_id: int
    author_name: str
    content: str
    created_at: datetime
    signals: SignalCountsDto = Field(default_factory=SignalCountsDto)
