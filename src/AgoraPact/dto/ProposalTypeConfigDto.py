from datetime import timedelta
from typing import Any, List

from pydantic import Field, field_validator

from AgoraPact.share.BaseDto import BaseDto
from AgoraPact.share.TimeUtils import TimeUtils


class ProposalTypeConfigDto(BaseDto):
    """
    单个提案类型的静态配置，启动时从 config.json 加载。
    """

    debate_channel_id: int = Field(alias="debateChannelId")
    vote_channel_id: int = Field(alias="voteChannelId")
    resolutions_channel_id: int = Field(alias="resolutionsChannelId")
    support_threshold: int = Field(alias="supportThreshold", ge=1)
    vote_duration: timedelta = Field(alias="voteDuration")
    formats: List[str] = Field(min_length=1)
    moderator_action: bool = Field(default=False, alias="moderatorAction")

    @field_validator("vote_duration", mode="before")
    @classmethod
    def _parse_vote_duration(cls, value: Any) -> timedelta:
        return TimeUtils.parse_duration(value)

    @field_validator("formats")
    @classmethod
    def _strip_formats(cls, value: List[str]) -> List[str]:
        formats = [f.strip() for f in value if f and f.strip()]
        if not formats:
            raise ValueError("formats 至少需要一个非空标记")
        return formats
